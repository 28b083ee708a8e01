"""In-memory store adapters.

Same contracts as the SQLite stores, held in plain lists. Used for dry runs
and as test doubles for the core.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from datetime import datetime

from roundplan.data.models import Client, Job, ServicePlan

logger = logging.getLogger(__name__)


class InMemoryClientStore:
    def __init__(self, clients: list[Client] | None = None) -> None:
        self._clients: list[Client] = list(clients or [])

    def add_client(self, client: Client) -> Client:
        self._clients.append(client)
        return client

    def list_clients(self, owner_id: str | None = None) -> list[Client]:
        return [
            c for c in self._clients
            if owner_id is None or c.owner_id == owner_id
        ]


class InMemoryJobStore:
    def __init__(self, jobs: list[Job] | None = None) -> None:
        self._jobs: list[Job] = list(jobs or [])

    def add_job(self, job: Job) -> Job:
        self._jobs.append(job)
        return job

    def list_pending_jobs(self, client_id: str) -> list[Job]:
        return [j for j in self._jobs if j.client_id == client_id and j.is_pending]


class InMemoryServicePlanStore:
    """Plan store backed by a list; ids are sequential ("plan-000001", ...)."""

    def __init__(self, plans: list[ServicePlan] | None = None) -> None:
        self._plans: list[ServicePlan] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for plan in plans or []:
            self.add_plan(plan)

    def find_plans(
        self,
        owner_id: str,
        client_id: str,
        service_type: str,
        schedule_type: str,
    ) -> list[ServicePlan]:
        key = (owner_id, client_id, service_type, schedule_type)
        with self._lock:
            return [copy.copy(p) for p in self._plans if p.key == key]

    def add_plan(self, plan: ServicePlan) -> ServicePlan:
        now = datetime.now().isoformat()
        with self._lock:
            plan.id = plan.id or f"plan-{next(self._ids):06d}"
            plan.created_at = plan.created_at or now
            plan.updated_at = plan.updated_at or now
            self._plans.append(copy.copy(plan))
        logger.debug("Service plan stored in memory: %s", plan.id)
        return plan

    def list_plans(
        self, owner_id: str | None = None, client_id: str | None = None,
    ) -> list[ServicePlan]:
        with self._lock:
            return [
                copy.copy(p) for p in self._plans
                if (owner_id is None or p.owner_id == owner_id)
                and (client_id is None or p.client_id == client_id)
            ]
