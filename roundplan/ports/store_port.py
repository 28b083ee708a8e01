"""Store ports — abstract interfaces over the client, job and plan collections.

Core modules depend on these protocols, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol

from roundplan.data.models import Client, Job, ServicePlan


class StoreError(Exception):
    """Raised when any store operation fails."""


class StoreReadError(StoreError):
    """A query against the store failed."""


class StoreWriteError(StoreError):
    """An insert or update against the store failed."""


class ClientStore(Protocol):
    """Read access to client records."""

    def list_clients(self, owner_id: str | None = None) -> list[Client]: ...


class JobStore(Protocol):
    """Read access to job records."""

    def list_pending_jobs(self, client_id: str) -> list[Job]: ...


class ServicePlanStore(Protocol):
    """Query and insert access to service plans."""

    def find_plans(
        self,
        owner_id: str,
        client_id: str,
        service_type: str,
        schedule_type: str,
    ) -> list[ServicePlan]: ...

    def add_plan(self, plan: ServicePlan) -> ServicePlan: ...

    def list_plans(
        self, owner_id: str | None = None, client_id: str | None = None,
    ) -> list[ServicePlan]: ...
