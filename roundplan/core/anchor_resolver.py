"""Anchor date resolver — pure business logic.

Works out the next visit date a service plan should start from: the
earliest pending job on or after today, or else the legacy "next visit"
seed rolled forward by whole frequency periods.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from roundplan.data.models import Job

logger = logging.getLogger(__name__)

SOURCE_PENDING_JOB = "pending_job"
SOURCE_ROLLED_SEED = "rolled_seed"
SOURCE_MISSING = "missing"


class InvalidFrequencyError(ValueError):
    """Frequency is not a positive whole number of weeks."""


@dataclass(frozen=True)
class AnchorResult:
    """Resolved anchor date and where it came from."""

    date: date | None
    source: str                # SOURCE_PENDING_JOB | SOURCE_ROLLED_SEED | SOURCE_MISSING

    @property
    def is_missing(self) -> bool:
        return self.date is None

    @property
    def iso(self) -> str | None:
        return self.date.isoformat() if self.date else None


def parse_frequency(value: object) -> int:
    """Convert a stored frequency (int, float or numeric string) into weeks.

    Raises InvalidFrequencyError for anything that isn't a finite,
    positive, whole number.
    """
    if value is None or isinstance(value, bool):
        raise InvalidFrequencyError(f"Invalid frequency: {value!r}")

    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidFrequencyError(f"Invalid frequency: {value!r}") from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise InvalidFrequencyError(f"Invalid frequency: {value!r}")

    if not math.isfinite(number) or number <= 0 or not number.is_integer():
        raise InvalidFrequencyError(f"Invalid frequency: {value!r}")
    return int(number)


def _today(today: date | None) -> date:
    return today if today is not None else date.today()


def _local_date(moment: datetime) -> date:
    """Calendar date of a timestamp in local time."""
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def _as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return _local_date(value)
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def find_earliest_pending_anchor(
    jobs: Iterable[Job],
    service_id: str | None = None,
    today: date | None = None,
) -> date | None:
    """Return the earliest pending job date on or after today, or None.

    Jobs without a scheduled time are ignored, as are jobs for a different
    service when `service_id` is given. Ties on the date are broken by job
    id so the same input always picks the same job.
    """
    boundary = _today(today)
    candidates: list[tuple[date, str]] = []
    for job in jobs:
        if not job.is_pending or job.scheduled_time is None:
            continue
        if service_id is not None and job.service_id != service_id:
            continue
        day = _local_date(job.scheduled_time)
        if day >= boundary:
            candidates.append((day, job.id))

    if not candidates:
        return None
    return min(candidates)[0]


def roll_forward_to_today(
    seed: date | str,
    frequency_weeks: int,
    today: date | None = None,
) -> date:
    """Advance `seed` by whole periods of `frequency_weeks` until it is >= today.

    A seed already on or after today comes back unchanged.

    Raises:
        InvalidFrequencyError: frequency is zero, negative or not a whole number.
        ValueError: seed is not an ISO date.
    """
    weeks = parse_frequency(frequency_weeks)
    start = _as_date(seed)
    boundary = _today(today)

    if start >= boundary:
        return start

    period_days = weeks * 7
    periods = math.ceil((boundary - start).days / period_days)
    return start + timedelta(days=periods * period_days)


def resolve_anchor(
    jobs: Iterable[Job],
    service_id: str | None,
    seed: date | str | None,
    frequency_weeks: int | None,
    today: date | None = None,
) -> AnchorResult:
    """Pick the anchor for one service: pending job, else rolled seed, else missing."""
    boundary = _today(today)

    pending = find_earliest_pending_anchor(jobs, service_id, boundary)
    if pending is not None:
        return AnchorResult(pending, SOURCE_PENDING_JOB)

    if seed:
        try:
            rolled = roll_forward_to_today(seed, frequency_weeks, boundary)
        except InvalidFrequencyError:
            logger.warning(
                "Cannot roll seed %s for '%s': invalid frequency %r",
                seed, service_id, frequency_weeks,
            )
        else:
            return AnchorResult(rolled, SOURCE_ROLLED_SEED)

    return AnchorResult(None, SOURCE_MISSING)
