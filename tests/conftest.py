"""Shared test fixtures and configuration.

Sets up fake environment variables before any roundplan imports and
provides stores backed by temp SQLite files or memory.
"""

import os

# Patch env vars BEFORE any roundplan imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("STORE_BACKEND", "sqlite")
os.environ.setdefault("OWNER_ID", "")
os.environ.setdefault("MAX_WORKERS", "1")

from datetime import date, datetime

import pytest

TODAY = date(2024, 3, 15)


def make_job(job_id, client_id="c1", service_id="window-cleaning",
             when="2024-03-20T09:00:00", status="pending"):
    from roundplan.data.models import Job
    return Job(
        id=job_id,
        client_id=client_id,
        service_id=service_id,
        scheduled_time=datetime.fromisoformat(when) if when else None,
        status=status,
    )


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_roundplan.db")


@pytest.fixture
def client_db(tmp_db_path):
    from roundplan.data.db import ClientDB
    return ClientDB(db_path=tmp_db_path)


@pytest.fixture
def job_db(tmp_db_path):
    from roundplan.data.db import JobDB
    return JobDB(db_path=tmp_db_path)


@pytest.fixture
def plan_db(tmp_db_path):
    from roundplan.data.db import ServicePlanDB
    return ServicePlanDB(db_path=tmp_db_path)


@pytest.fixture
def sqlite_stores(tmp_db_path):
    """Stores bundle backed by one temp SQLite file."""
    from roundplan.adapters.store_factory import create_stores
    return create_stores(backend="sqlite", db_path=tmp_db_path)


@pytest.fixture
def memory_stores():
    from roundplan.adapters.store_factory import create_stores
    return create_stores(backend="memory")
