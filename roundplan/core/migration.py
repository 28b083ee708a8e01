"""
Round Plans — Service-plan migration.

Moves client-coupled routines (legacy frequency, next-visit seed and
additional services) onto standalone service plans.

Audit: resolve an anchor for every recurring service and report it,
without writing anything.

Migrate: resolve the same anchors and create one recurring plan per
service through the upsert guard. Safe to re-run; already-migrated
services are left alone.

This module is backend-agnostic: it depends on the store ports, not on
SQLite or any hosted database.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Callable, TypeVar

from roundplan.core.anchor_resolver import (
    SOURCE_MISSING,
    AnchorResult,
    InvalidFrequencyError,
    parse_frequency,
    resolve_anchor,
)
from roundplan.core.plan_guard import DEFAULT_PLAN_PRICE, ensure_plan
from roundplan.data.models import SCHEDULE_RECURRING, Client

if TYPE_CHECKING:
    from roundplan.adapters.store_factory import Stores
    from roundplan.ports.store_port import JobStore

logger = logging.getLogger(__name__)

BASE_SERVICE_TYPE = "window-cleaning"
MISSING = "MISSING"

SOURCE_INVALID_FREQUENCY = "invalid_frequency"
SOURCE_INVALID_SEED = "invalid_seed"

T = TypeVar("T")


@dataclass
class ServiceCandidate:
    """One recurring service of a client that should become a plan."""

    service_type: str
    frequency: object
    seed: str | None
    price: object


@dataclass
class Resolution:
    """Outcome of anchor resolution for one candidate."""

    candidate: ServiceCandidate
    frequency_weeks: int | None
    anchor: AnchorResult


@dataclass
class ReportEntry:
    client_id: str
    client_name: str
    service_type: str
    frequency_weeks: int | None
    anchor: str                # ISO date or MISSING
    source: str


@dataclass
class AuditReport:
    entries: list[ReportEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def missing(self) -> int:
        return sum(1 for e in self.entries if e.source == SOURCE_MISSING)

    @property
    def invalid(self) -> int:
        return sum(
            1 for e in self.entries
            if e.source in (SOURCE_INVALID_FREQUENCY, SOURCE_INVALID_SEED)
        )


@dataclass
class MigrationSummary:
    total: int = 0
    created: int = 0
    existing: int = 0
    missing: int = 0
    invalid: int = 0

    @property
    def skipped(self) -> int:
        return self.missing + self.invalid

    def merge(self, other: MigrationSummary) -> None:
        self.total += other.total
        self.created += other.created
        self.existing += other.existing
        self.missing += other.missing
        self.invalid += other.invalid


def service_candidates(
    client: Client, base_service_type: str = BASE_SERVICE_TYPE,
) -> list[ServiceCandidate]:
    """Recurring services of a client: the base round plus active extras."""
    candidates: list[ServiceCandidate] = []
    if client.is_recurring:
        candidates.append(ServiceCandidate(
            service_type=base_service_type,
            frequency=client.frequency,
            seed=client.next_visit,
            price=client.quote,
        ))
    for service in client.additional_services:
        if service is None or not service.is_active:
            continue
        candidates.append(ServiceCandidate(
            service_type=service.service_type,
            frequency=service.frequency,
            seed=service.next_visit,
            price=service.price,
        ))
    return candidates


def resolve_client(
    client: Client,
    jobs: JobStore,
    today: date | None = None,
    base_service_type: str = BASE_SERVICE_TYPE,
) -> list[Resolution]:
    """Resolve anchors for every recurring service of one client.

    Jobs are fetched once per client. Bad frequencies and unreadable seeds
    are recorded per service instead of aborting the run.
    """
    candidates = service_candidates(client, base_service_type)
    if not candidates:
        return []

    pending = jobs.list_pending_jobs(client.id)
    today = today or date.today()

    results: list[Resolution] = []
    for candidate in candidates:
        try:
            weeks = parse_frequency(candidate.frequency)
        except InvalidFrequencyError:
            logger.warning(
                "Client %s '%s': invalid frequency %r",
                client.id, candidate.service_type, candidate.frequency,
            )
            results.append(Resolution(
                candidate, None, AnchorResult(None, SOURCE_INVALID_FREQUENCY),
            ))
            continue

        try:
            anchor = resolve_anchor(
                pending, candidate.service_type, candidate.seed, weeks, today,
            )
        except ValueError:
            logger.warning(
                "Client %s '%s': unreadable next visit %r",
                client.id, candidate.service_type, candidate.seed,
            )
            anchor = AnchorResult(None, SOURCE_INVALID_SEED)

        if anchor.is_missing and anchor.source == SOURCE_MISSING:
            logger.warning(
                "Client %s '%s': no pending job and no next visit to roll forward",
                client.id, candidate.service_type,
            )
        results.append(Resolution(candidate, weeks, anchor))
    return results


def _map_clients(
    func: Callable[[Client], T], clients: list[Client], max_workers: int,
) -> list[T]:
    if max_workers <= 1 or len(clients) <= 1:
        return [func(c) for c in clients]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(func, clients))


def audit_service_plans(
    stores: Stores,
    owner_id: str | None = None,
    today: date | None = None,
    base_service_type: str = BASE_SERVICE_TYPE,
    max_workers: int = 1,
) -> AuditReport:
    """Read-only pass: report the anchor every recurring service would get."""
    clients = stores.clients.list_clients(owner_id)
    logger.info("Auditing %d clients (owner: %s)", len(clients), owner_id or "all")

    def audit_client(client: Client) -> list[ReportEntry]:
        return [
            ReportEntry(
                client_id=client.id,
                client_name=client.name,
                service_type=r.candidate.service_type,
                frequency_weeks=r.frequency_weeks,
                anchor=r.anchor.iso or MISSING,
                source=r.anchor.source,
            )
            for r in resolve_client(client, stores.jobs, today, base_service_type)
        ]

    report = AuditReport()
    for entries in _map_clients(audit_client, clients, max_workers):
        report.entries.extend(entries)

    logger.info(
        "Audit finished: %d candidates, %d missing anchors, %d invalid",
        report.total, report.missing, report.invalid,
    )
    return report


def migrate_service_plans(
    stores: Stores,
    owner_id: str | None = None,
    today: date | None = None,
    base_service_type: str = BASE_SERVICE_TYPE,
    default_price: float = DEFAULT_PLAN_PRICE,
    max_workers: int = 1,
) -> MigrationSummary:
    """Write pass: create one recurring plan per resolvable service.

    Store failures propagate and abort the run. Re-running is safe.
    """
    clients = stores.clients.list_clients(owner_id)
    logger.info("Migrating %d clients (owner: %s)", len(clients), owner_id or "all")

    def migrate_client(client: Client) -> MigrationSummary:
        summary = MigrationSummary()
        account_id = owner_id or client.owner_id
        for r in resolve_client(client, stores.jobs, today, base_service_type):
            summary.total += 1
            if r.anchor.is_missing:
                if r.anchor.source == SOURCE_MISSING:
                    summary.missing += 1
                else:
                    summary.invalid += 1
                continue

            result = ensure_plan(
                stores.plans,
                account_id,
                client,
                r.candidate.service_type,
                SCHEDULE_RECURRING,
                r.frequency_weeks,
                r.anchor.date,
                r.candidate.price,
                default_price,
            )
            if result.created:
                summary.created += 1
            else:
                summary.existing += 1
        return summary

    total = MigrationSummary()
    for summary in _map_clients(migrate_client, clients, max_workers):
        total.merge(summary)

    logger.info(
        "Migration finished: %d created, %d already present, %d skipped",
        total.created, total.existing, total.skipped,
    )
    return total
