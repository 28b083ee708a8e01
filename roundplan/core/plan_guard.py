"""Plan upsert guard — at most one service plan per
(owner, client, service type, schedule type).

The existence check and the insert run under a per-key lock so concurrent
workers in one process can't both miss the check and double-insert.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import date

from roundplan.data.models import SCHEDULE_ONE_OFF, SCHEDULE_RECURRING, Client, ServicePlan
from roundplan.ports.store_port import ServicePlanStore

logger = logging.getLogger(__name__)

DEFAULT_PLAN_PRICE = 25.0

_locks: dict[tuple[str, str, str, str], threading.Lock] = {}
_locks_guard = threading.Lock()


@dataclass(frozen=True)
class EnsureResult:
    created: bool
    id: str


def _lock_for(key: tuple[str, str, str, str]) -> threading.Lock:
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_price(
    price: object, client: Client, default_price: float = DEFAULT_PLAN_PRICE,
) -> float:
    """Service price if usable, else the client's quote, else the default."""
    try:
        amount = float(price)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        amount = 0.0
    if math.isfinite(amount) and amount > 0:
        return amount
    if _is_number(client.quote) and math.isfinite(client.quote):
        return float(client.quote)
    return float(default_price)


def _first_plan(plans: list[ServicePlan]) -> ServicePlan:
    return min(plans, key=lambda p: (p.created_at or "", str(p.id)))


def ensure_plan(
    plans: ServicePlanStore,
    account_id: str,
    client: Client,
    service_type: str,
    schedule_type: str,
    frequency_weeks: int | None,
    anchor_date: date | str,
    price: object = None,
    default_price: float = DEFAULT_PLAN_PRICE,
) -> EnsureResult:
    """Create the plan for this key unless one already exists.

    Returns the existing plan's id with created=False, or the new plan's id
    with created=True. Pre-existing duplicates are reported, not repaired;
    the earliest-created one is returned.
    """
    if schedule_type not in (SCHEDULE_RECURRING, SCHEDULE_ONE_OFF):
        raise ValueError(f"Unknown schedule type: {schedule_type!r}")

    anchor = anchor_date.isoformat() if isinstance(anchor_date, date) else anchor_date
    key = (account_id, client.id, service_type, schedule_type)

    with _lock_for(key):
        existing = plans.find_plans(*key)
        if existing:
            first = _first_plan(existing)
            if len(existing) > 1:
                logger.warning(
                    "Found %d duplicate plans for %s/%s (%s); keeping %s",
                    len(existing), client.id, service_type, schedule_type, first.id,
                )
            return EnsureResult(created=False, id=first.id)

        plan = ServicePlan(
            id=None,
            owner_id=account_id,
            client_id=client.id,
            service_type=service_type,
            schedule_type=schedule_type,
            price=resolve_price(price, client, default_price),
            is_active=True,
            last_service_date=None,
        )
        if schedule_type == SCHEDULE_RECURRING:
            plan.frequency_weeks = frequency_weeks
            plan.start_date = anchor
        else:
            plan.scheduled_date = anchor

        saved = plans.add_plan(plan)

    logger.info(
        "Created %s plan %s for client %s: %s from %s",
        schedule_type, saved.id, client.id, service_type, anchor,
    )
    return EnsureResult(created=True, id=saved.id)
