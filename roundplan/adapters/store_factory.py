"""Store factory — creates the store adapters based on config."""

from __future__ import annotations

from dataclasses import dataclass

from roundplan.config import settings
from roundplan.ports.store_port import ClientStore, JobStore, ServicePlanStore


@dataclass
class Stores:
    """The three collections a migration pass reads and writes."""

    clients: ClientStore
    jobs: JobStore
    plans: ServicePlanStore


def create_stores(backend: str | None = None, db_path: str | None = None) -> Stores:
    """Return the store adapters matching STORE_BACKEND.

    Args:
        backend: Overrides the STORE_BACKEND setting.
        db_path: SQLite file path. Defaults to DATABASE_PATH.
    """
    backend = (backend or settings.STORE_BACKEND).lower()

    if backend == "sqlite":
        from roundplan.data.db import ClientDB, JobDB, ServicePlanDB

        path = db_path or settings.DATABASE_PATH
        return Stores(
            clients=ClientDB(db_path=path),
            jobs=JobDB(db_path=path),
            plans=ServicePlanDB(db_path=path),
        )

    if backend == "memory":
        from roundplan.adapters.memory_store import (
            InMemoryClientStore,
            InMemoryJobStore,
            InMemoryServicePlanStore,
        )

        return Stores(
            clients=InMemoryClientStore(),
            jobs=InMemoryJobStore(),
            plans=InMemoryServicePlanStore(),
        )

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")
