"""Command line entry point for the service-plan migration."""

from __future__ import annotations

import argparse
import logging
import sys

from roundplan.adapters.store_factory import Stores, create_stores
from roundplan.config import settings
from roundplan.core.migration import audit_service_plans, migrate_service_plans
from roundplan.core.report import format_report, format_summary
from roundplan.core.service_plans import list_plans_for_client, next_future_anchor
from roundplan.ports.store_port import StoreError

logger = logging.getLogger(__name__)


def _stores(args: argparse.Namespace) -> Stores:
    return create_stores(backend=args.backend, db_path=args.db)


def _cmd_audit(args: argparse.Namespace) -> int:
    report = audit_service_plans(
        _stores(args),
        owner_id=args.owner_id or None,
        base_service_type=settings.BASE_SERVICE_TYPE,
        max_workers=args.workers,
    )
    print(format_report(report, limit=args.limit))
    return 0


def _cmd_migrate(args: argparse.Namespace) -> int:
    summary = migrate_service_plans(
        _stores(args),
        owner_id=args.owner_id or None,
        base_service_type=settings.BASE_SERVICE_TYPE,
        default_price=settings.DEFAULT_PLAN_PRICE,
        max_workers=args.workers,
    )
    print(format_summary(summary))
    return 0


def _cmd_plans(args: argparse.Namespace) -> int:
    if not args.owner_id:
        raise ValueError("--owner-id (or OWNER_ID) is required to list plans")

    plans = list_plans_for_client(_stores(args).plans, args.owner_id, args.client_id)
    if not plans:
        print(f"No service plans for client {args.client_id}")
        return 0
    for plan in plans:
        anchor = next_future_anchor(plan)
        print(
            f"{plan.id}  {plan.service_type}  {plan.schedule_type}  "
            f"every {plan.frequency_weeks or '-'} wk  "
            f"next {anchor.isoformat() if anchor else '-'}  "
            f"£{plan.price:.2f}{'' if plan.is_active else '  (inactive)'}"
        )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--owner-id",
        default=settings.OWNER_ID,
        help="Only process this owner's clients (default: OWNER_ID env, else all owners)",
    )
    common.add_argument("--db", help="SQLite database path (default: DATABASE_PATH env)")
    common.add_argument(
        "--backend",
        choices=("sqlite", "memory"),
        help="Store backend (default: STORE_BACKEND env)",
    )

    parser = argparse.ArgumentParser(
        prog="roundplan",
        description="Migrate client routines onto standalone service plans.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit_parser = subparsers.add_parser(
        "audit", parents=[common], help="Report candidate anchors without writing."
    )
    audit_parser.add_argument(
        "--limit", type=int, default=settings.AUDIT_TABLE_LIMIT,
        help="Maximum rows shown in the table",
    )
    audit_parser.add_argument("--workers", type=int, default=settings.MAX_WORKERS)
    audit_parser.set_defaults(func=_cmd_audit)

    migrate_parser = subparsers.add_parser(
        "migrate", parents=[common], help="Create service plans (idempotent)."
    )
    migrate_parser.add_argument(
        "--workers", type=int, default=settings.MAX_WORKERS,
        help="Clients processed in parallel (default: MAX_WORKERS env)",
    )
    migrate_parser.set_defaults(func=_cmd_migrate)

    plans_parser = subparsers.add_parser(
        "plans", parents=[common], help="List a client's plans and next anchors."
    )
    plans_parser.add_argument("--client-id", required=True)
    plans_parser.set_defaults(func=_cmd_plans)

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except StoreError as exc:
        logger.error("Store failure, aborting run: %s", exc)
    except ValueError as exc:
        logger.error("%s", exc)
    return 1


if __name__ == "__main__":
    sys.exit(main())
