"""Plain-text rendering of audit reports and migration summaries."""

from __future__ import annotations

from roundplan.core.migration import AuditReport, MigrationSummary

_COLUMNS = (
    ("client_id", "Client ID"),
    ("client_name", "Client"),
    ("service_type", "Service"),
    ("frequency_weeks", "Weeks"),
    ("anchor", "Anchor"),
    ("source", "Source"),
)


def _cell(value: object) -> str:
    return "" if value is None else str(value)


def format_table(rows: list[dict]) -> str:
    """Render dict rows as a fixed-width table with a header line."""
    widths = {
        key: max([len(title)] + [len(_cell(r.get(key))) for r in rows])
        for key, title in _COLUMNS
    }
    lines = [
        "  ".join(title.ljust(widths[key]) for key, title in _COLUMNS).rstrip(),
        "  ".join("-" * widths[key] for key, _ in _COLUMNS),
    ]
    for row in rows:
        lines.append(
            "  ".join(_cell(row.get(key)).ljust(widths[key]) for key, _ in _COLUMNS).rstrip()
        )
    return "\n".join(lines)


def format_report(report: AuditReport, limit: int = 100) -> str:
    """Audit output: title, first `limit` rows, totals and warnings."""
    rows = [vars(entry) for entry in report.entries[:limit]]
    lines = ["Service Plans Migration Audit", format_table(rows)]
    if report.total > limit:
        lines.append(f"... {report.total - limit} more not shown")
    lines.append(f"Total candidates: {report.total}")
    if report.missing:
        lines.append(f"WARNING: Missing anchors: {report.missing}")
    if report.invalid:
        lines.append(f"WARNING: Invalid frequency or next visit: {report.invalid}")
    return "\n".join(lines)


def format_summary(summary: MigrationSummary) -> str:
    return (
        f"Migration complete. Plans created: {summary.created}. "
        f"Already present: {summary.existing}. "
        f"Missing anchors (skipped): {summary.skipped}."
    )
