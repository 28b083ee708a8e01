"""
Round Plans — SQLite storage.

Local mirror of the hosted document collections: clients (with their
additional services), jobs and service plans. Implements the store ports.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from roundplan.data.models import (
    PENDING_STATUSES,
    AdditionalService,
    Client,
    Job,
    ServicePlan,
)
from roundplan.ports.store_port import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


def _to_text(value: int | str | None) -> str | None:
    return None if value is None else str(value)


class _SQLiteStore:
    """Connection handling shared by the SQLite-backed stores."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from roundplan.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError

    def _fetch(self, query: str, params: list | tuple = ()) -> list[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreReadError(f"Query failed on {self._db_path}: {exc}") from exc


class ClientDB(_SQLiteStore):
    """SQLite-backed client records and their additional services."""

    def _init_db(self) -> None:
        """Create the client tables if they don't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS clients (
                    id          TEXT PRIMARY KEY,
                    owner_id    TEXT NOT NULL,
                    name        TEXT NOT NULL DEFAULT '',
                    frequency   TEXT,
                    next_visit  TEXT,
                    quote       REAL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS additional_services (
                    id            TEXT NOT NULL,
                    client_id     TEXT NOT NULL,
                    position      INTEGER NOT NULL,
                    service_type  TEXT NOT NULL,
                    frequency     TEXT,
                    price         REAL,
                    next_visit    TEXT,
                    is_active     INTEGER NOT NULL DEFAULT 1,
                    PRIMARY KEY (client_id, id)
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(clients)").fetchall()
            }
            if "quote" not in existing_cols:
                conn.execute("ALTER TABLE clients ADD COLUMN quote REAL")
        logger.debug("Client tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_service(row: sqlite3.Row) -> AdditionalService:
        return AdditionalService(
            id=row["id"],
            service_type=row["service_type"],
            frequency=row["frequency"],
            price=row["price"],
            next_visit=row["next_visit"],
            is_active=bool(row["is_active"]),
        )

    def add_client(self, client: Client) -> Client:
        """Insert a client together with its additional services."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO clients (id, owner_id, name, frequency, next_visit, quote)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        client.id, client.owner_id, client.name,
                        _to_text(client.frequency), client.next_visit, client.quote,
                    ),
                )
                for position, service in enumerate(client.additional_services):
                    conn.execute(
                        """
                        INSERT INTO additional_services
                            (id, client_id, position, service_type, frequency,
                             price, next_visit, is_active)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            service.id, client.id, position, service.service_type,
                            _to_text(service.frequency), service.price,
                            service.next_visit, int(service.is_active),
                        ),
                    )
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to insert client {client.id}: {exc}") from exc

        logger.info(
            "Client added: %s '%s' (%d additional services)",
            client.id, client.name, len(client.additional_services),
        )
        return client

    def list_clients(self, owner_id: str | None = None) -> list[Client]:
        """Return all clients, optionally scoped to one owner."""
        query = "SELECT * FROM clients"
        params: list = []
        if owner_id is not None:
            query += " WHERE owner_id = ?"
            params.append(owner_id)
        query += " ORDER BY id"

        rows = self._fetch(query, params)
        service_rows = self._fetch(
            "SELECT * FROM additional_services ORDER BY client_id, position"
        )

        services: dict[str, list[AdditionalService]] = {}
        for row in service_rows:
            services.setdefault(row["client_id"], []).append(self._row_to_service(row))

        return [
            Client(
                id=row["id"],
                owner_id=row["owner_id"],
                name=row["name"],
                frequency=row["frequency"],
                next_visit=row["next_visit"],
                quote=row["quote"],
                additional_services=services.get(row["id"], []),
            )
            for row in rows
        ]


class JobDB(_SQLiteStore):
    """SQLite-backed job records (read-only for the migration)."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    id              TEXT PRIMARY KEY,
                    client_id       TEXT NOT NULL,
                    owner_id        TEXT,
                    service_id      TEXT,
                    scheduled_time  TEXT,
                    status          TEXT NOT NULL DEFAULT 'pending'
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_jobs_client ON jobs (client_id, status)"
            )
        logger.debug("Jobs table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_job(row: sqlite3.Row) -> Job:
        raw = row["scheduled_time"]
        return Job(
            id=row["id"],
            client_id=row["client_id"],
            owner_id=row["owner_id"],
            service_id=row["service_id"],
            scheduled_time=datetime.fromisoformat(raw) if raw else None,
            status=row["status"],
        )

    def add_job(self, job: Job) -> Job:
        """Insert a job record."""
        scheduled = job.scheduled_time.isoformat() if job.scheduled_time else None
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO jobs
                        (id, client_id, owner_id, service_id, scheduled_time, status)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (job.id, job.client_id, job.owner_id, job.service_id, scheduled, job.status),
                )
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to insert job {job.id}: {exc}") from exc
        logger.debug("Job added: %s for client %s", job.id, job.client_id)
        return job

    def list_pending_jobs(self, client_id: str) -> list[Job]:
        """Return the client's jobs whose status counts as pending."""
        placeholders = ", ".join("?" for _ in PENDING_STATUSES)
        rows = self._fetch(
            f"SELECT * FROM jobs WHERE client_id = ? AND status IN ({placeholders}) "
            "ORDER BY id",
            [client_id, *PENDING_STATUSES],
        )
        return [self._row_to_job(r) for r in rows]


class ServicePlanDB(_SQLiteStore):
    """SQLite-backed service plans."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS service_plans (
                    id               TEXT PRIMARY KEY,
                    owner_id         TEXT NOT NULL,
                    client_id        TEXT NOT NULL,
                    service_type     TEXT NOT NULL,
                    schedule_type    TEXT NOT NULL,
                    frequency_weeks  INTEGER,
                    start_date       TEXT,
                    scheduled_date   TEXT,
                    price            REAL NOT NULL,
                    is_active        INTEGER NOT NULL DEFAULT 1,
                    last_service_date TEXT,
                    created_at       TEXT NOT NULL,
                    updated_at       TEXT NOT NULL
                )
            """)
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_service_plans_key
                ON service_plans (owner_id, client_id, service_type, schedule_type)
                """
            )
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(service_plans)").fetchall()
            }
            if "is_active" not in existing_cols:
                conn.execute(
                    "ALTER TABLE service_plans ADD COLUMN is_active INTEGER NOT NULL DEFAULT 1"
                )
            if "last_service_date" not in existing_cols:
                conn.execute("ALTER TABLE service_plans ADD COLUMN last_service_date TEXT")
        logger.debug("Service plans table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_plan(row: sqlite3.Row) -> ServicePlan:
        return ServicePlan(
            id=row["id"],
            owner_id=row["owner_id"],
            client_id=row["client_id"],
            service_type=row["service_type"],
            schedule_type=row["schedule_type"],
            price=row["price"],
            frequency_weeks=row["frequency_weeks"],
            start_date=row["start_date"],
            scheduled_date=row["scheduled_date"],
            last_service_date=row["last_service_date"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def find_plans(
        self,
        owner_id: str,
        client_id: str,
        service_type: str,
        schedule_type: str,
    ) -> list[ServicePlan]:
        """Return every plan matching the four-part key, oldest first."""
        rows = self._fetch(
            """
            SELECT * FROM service_plans
            WHERE owner_id = ? AND client_id = ? AND service_type = ? AND schedule_type = ?
            ORDER BY created_at, id
            """,
            (owner_id, client_id, service_type, schedule_type),
        )
        return [self._row_to_plan(r) for r in rows]

    def add_plan(self, plan: ServicePlan) -> ServicePlan:
        """Insert a plan, assigning an id and timestamps when missing."""
        now = datetime.now().isoformat()
        plan.id = plan.id or uuid.uuid4().hex
        plan.created_at = plan.created_at or now
        plan.updated_at = plan.updated_at or now

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO service_plans
                        (id, owner_id, client_id, service_type, schedule_type,
                         frequency_weeks, start_date, scheduled_date, price,
                         is_active, last_service_date, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        plan.id, plan.owner_id, plan.client_id, plan.service_type,
                        plan.schedule_type, plan.frequency_weeks, plan.start_date,
                        plan.scheduled_date, plan.price, int(plan.is_active),
                        plan.last_service_date, plan.created_at, plan.updated_at,
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to insert service plan {plan.id}: {exc}") from exc

        logger.info(
            "Service plan added: %s %s/%s (%s)",
            plan.id, plan.client_id, plan.service_type, plan.schedule_type,
        )
        return plan

    def list_plans(
        self, owner_id: str | None = None, client_id: str | None = None,
    ) -> list[ServicePlan]:
        """List plans, optionally filtered by owner and/or client."""
        conditions: list[str] = []
        params: list = []
        if owner_id is not None:
            conditions.append("owner_id = ?")
            params.append(owner_id)
        if client_id is not None:
            conditions.append("client_id = ?")
            params.append(client_id)

        query = "SELECT * FROM service_plans"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at, id"

        return [self._row_to_plan(r) for r in self._fetch(query, params)]
