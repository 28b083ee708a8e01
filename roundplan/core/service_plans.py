"""Service-plan queries used outside the migration pass."""

from __future__ import annotations

import logging
from datetime import date

from roundplan.core.anchor_resolver import InvalidFrequencyError, roll_forward_to_today
from roundplan.data.models import SCHEDULE_ONE_OFF, ServicePlan
from roundplan.ports.store_port import ServicePlanStore

logger = logging.getLogger(__name__)


def list_plans_for_client(
    plans: ServicePlanStore, owner_id: str, client_id: str,
) -> list[ServicePlan]:
    return plans.list_plans(owner_id=owner_id, client_id=client_id)


def next_future_anchor(plan: ServicePlan, today: date | None = None) -> date | None:
    """Next date to generate visits from, never in the past.

    One-off plans return their scheduled date as-is. Recurring plans roll
    their start date forward; without a frequency or start date there is
    no anchor.
    """
    if plan.schedule_type == SCHEDULE_ONE_OFF:
        return date.fromisoformat(plan.scheduled_date) if plan.scheduled_date else None

    if not plan.frequency_weeks or not plan.start_date:
        return None
    try:
        return roll_forward_to_today(plan.start_date, plan.frequency_weeks, today)
    except InvalidFrequencyError:
        logger.warning("Plan %s has invalid frequency %r", plan.id, plan.frequency_weeks)
        return None
