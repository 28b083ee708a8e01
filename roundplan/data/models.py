"""
Round Plans — Data Models.

Clients and jobs are owned by the round-management app and are read-only
inputs here. Service plans are the records this toolkit creates: one plan
per (owner, client, service type, schedule type).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

ONE_OFF = "one-off"  # legacy Client.frequency sentinel for non-recurring clients

SCHEDULE_RECURRING = "recurring"
SCHEDULE_ONE_OFF = "one_off"

JOB_STATUSES = ("pending", "scheduled", "in_progress", "completed", "cancelled")
PENDING_STATUSES = ("pending", "scheduled", "in_progress")


@dataclass
class AdditionalService:
    """An extra service sold alongside the base round, e.g. gutter cleaning."""

    id: str
    service_type: str                 # e.g. "gutter", "Solar panel cleaning"
    frequency: int | str | None       # weeks between visits
    price: float | None = None
    next_visit: str | None = None     # ISO date YYYY-MM-DD, legacy seed
    is_active: bool = True


@dataclass
class Client:
    """A customer on the round.

    `frequency` is the legacy routine field: weeks between visits (stored
    as a number or a numeric string), the ONE_OFF sentinel, or None.
    """

    id: str
    owner_id: str
    name: str = ""
    frequency: int | str | None = None
    next_visit: str | None = None     # ISO date YYYY-MM-DD, legacy seed
    quote: float | None = None
    additional_services: list[AdditionalService] = field(default_factory=list)

    @property
    def is_recurring(self) -> bool:
        if self.frequency is None:
            return False
        if isinstance(self.frequency, str):
            value = self.frequency.strip()
            return bool(value) and value != ONE_OFF
        return True


@dataclass
class Job:
    """A scheduled visit. Never modified by this toolkit."""

    id: str
    client_id: str
    service_id: str | None
    scheduled_time: datetime | None
    status: str = "pending"
    owner_id: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES


@dataclass
class ServicePlan:
    """A standalone recurring or one-off service for a client."""

    id: str | None
    owner_id: str
    client_id: str
    service_type: str
    schedule_type: str                # SCHEDULE_RECURRING | SCHEDULE_ONE_OFF
    price: float
    frequency_weeks: int | None = None   # recurring only
    start_date: str | None = None        # recurring only, next future anchor
    scheduled_date: str | None = None    # one-off only
    last_service_date: str | None = None
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.owner_id, self.client_id, self.service_type, self.schedule_type)
