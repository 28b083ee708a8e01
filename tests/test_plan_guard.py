"""Tests for roundplan.core.plan_guard — idempotent plan creation."""

import threading
import time
from datetime import date

import pytest

from roundplan.adapters.memory_store import InMemoryServicePlanStore
from roundplan.core.plan_guard import EnsureResult, ensure_plan, resolve_price
from roundplan.data.models import SCHEDULE_ONE_OFF, SCHEDULE_RECURRING, Client, ServicePlan


@pytest.fixture
def client():
    return Client(id="c1", owner_id="owner-1", name="Smith", frequency="4", quote=18.0)


@pytest.fixture
def plans():
    return InMemoryServicePlanStore()


class TestEnsurePlanIdempotence:
    def test_creates_then_skips(self, plans, client):
        first = ensure_plan(plans, "owner-1", client, "window-cleaning",
                            SCHEDULE_RECURRING, 4, date(2024, 3, 25), 18.0)
        second = ensure_plan(plans, "owner-1", client, "window-cleaning",
                             SCHEDULE_RECURRING, 4, date(2024, 3, 25), 18.0)
        assert first.created is True
        assert second == EnsureResult(created=False, id=first.id)
        assert len(plans.list_plans()) == 1

    def test_existing_plan_not_modified(self, plans, client):
        ensure_plan(plans, "owner-1", client, "window-cleaning",
                    SCHEDULE_RECURRING, 4, "2024-03-25", 18.0)
        ensure_plan(plans, "owner-1", client, "window-cleaning",
                    SCHEDULE_RECURRING, 8, "2024-04-01", 30.0)
        [plan] = plans.list_plans()
        assert plan.frequency_weeks == 4
        assert plan.start_date == "2024-03-25"
        assert plan.price == 18.0

    @pytest.mark.parametrize("account, service, schedule", [
        ("owner-2", "window-cleaning", SCHEDULE_RECURRING),
        ("owner-1", "gutter", SCHEDULE_RECURRING),
        ("owner-1", "window-cleaning", SCHEDULE_ONE_OFF),
    ])
    def test_each_key_part_distinguishes_plans(self, plans, client, account, service, schedule):
        ensure_plan(plans, "owner-1", client, "window-cleaning",
                    SCHEDULE_RECURRING, 4, "2024-03-25")
        result = ensure_plan(plans, account, client, service, schedule, 4, "2024-03-25")
        assert result.created is True
        assert len(plans.list_plans()) == 2

    def test_duplicates_tolerated_and_earliest_returned(self, plans, client, caplog):
        for created_at in ("2023-05-02T10:00:00", "2023-05-01T10:00:00"):
            plans.add_plan(ServicePlan(
                id=None, owner_id="owner-1", client_id="c1",
                service_type="window-cleaning", schedule_type=SCHEDULE_RECURRING,
                price=20.0, frequency_weeks=4, start_date="2023-06-01",
                created_at=created_at,
            ))
        result = ensure_plan(plans, "owner-1", client, "window-cleaning",
                             SCHEDULE_RECURRING, 4, "2024-03-25")
        assert result == EnsureResult(created=False, id="plan-000002")
        assert "duplicate" in caplog.text
        assert len(plans.list_plans()) == 2

    def test_concurrent_callers_create_one_plan(self, client):
        class SlowPlanStore(InMemoryServicePlanStore):
            def find_plans(self, *key):
                found = super().find_plans(*key)
                time.sleep(0.01)
                return found

        plans = SlowPlanStore()
        results: list[EnsureResult] = []

        def worker():
            results.append(ensure_plan(plans, "owner-1", client, "solar",
                                       SCHEDULE_RECURRING, 6, "2024-04-01"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.created for r in results) == 1
        assert len({r.id for r in results}) == 1
        assert len(plans.list_plans()) == 1


class TestEnsurePlanShape:
    def test_recurring_plan_fields(self, plans, client):
        result = ensure_plan(plans, "owner-1", client, "window-cleaning",
                             SCHEDULE_RECURRING, 4, date(2024, 3, 25), 22.5)
        [plan] = plans.list_plans()
        assert plan.id == result.id
        assert plan.owner_id == "owner-1"
        assert plan.client_id == "c1"
        assert plan.frequency_weeks == 4
        assert plan.start_date == "2024-03-25"
        assert plan.scheduled_date is None
        assert plan.last_service_date is None
        assert plan.is_active is True
        assert plan.price == 22.5
        assert plan.created_at and plan.updated_at

    def test_one_off_plan_fields(self, plans, client):
        ensure_plan(plans, "owner-1", client, "gutter",
                    SCHEDULE_ONE_OFF, None, "2024-04-02", 60)
        [plan] = plans.list_plans()
        assert plan.scheduled_date == "2024-04-02"
        assert plan.start_date is None
        assert plan.frequency_weeks is None

    def test_unknown_schedule_type_rejected(self, plans, client):
        with pytest.raises(ValueError, match="schedule type"):
            ensure_plan(plans, "owner-1", client, "gutter", "weekly", 1, "2024-04-02")
        assert plans.list_plans() == []


class TestResolvePrice:
    def test_uses_given_price(self, client):
        assert resolve_price(30, client) == 30.0

    def test_numeric_string_price(self, client):
        assert resolve_price("12.50", client) == 12.5

    @pytest.mark.parametrize("price", [None, 0, "", "n/a", float("nan")])
    def test_falls_back_to_quote(self, client, price):
        assert resolve_price(price, client) == 18.0

    def test_falls_back_to_default(self):
        client = Client(id="c2", owner_id="o", quote=None)
        assert resolve_price(None, client) == 25.0
        assert resolve_price(None, client, default_price=40) == 40.0
