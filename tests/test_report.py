"""Tests for roundplan.core.report — text rendering."""

from roundplan.core.migration import AuditReport, MigrationSummary, ReportEntry
from roundplan.core.report import format_report, format_summary, format_table


def _entry(client_id="c1", anchor="2024-03-25", source="rolled_seed"):
    return ReportEntry(
        client_id=client_id, client_name="Smith", service_type="window-cleaning",
        frequency_weeks=4, anchor=anchor, source=source,
    )


class TestFormatTable:
    def test_header_and_rows_aligned(self):
        text = format_table([vars(_entry()), vars(_entry("client-long-id"))])
        lines = text.splitlines()
        assert lines[0].startswith("Client ID")
        assert set(lines[1].replace(" ", "")) == {"-"}
        assert len(lines) == 4
        assert lines[2].index("Smith") == lines[3].index("Smith")

    def test_empty_rows(self):
        assert len(format_table([]).splitlines()) == 2


class TestFormatReport:
    def test_totals_and_missing_warning(self):
        report = AuditReport([_entry(), _entry("c2", anchor="MISSING", source="missing")])
        text = format_report(report)
        assert text.startswith("Service Plans Migration Audit")
        assert "Total candidates: 2" in text
        assert "Missing anchors: 1" in text

    def test_no_warning_when_all_resolved(self):
        text = format_report(AuditReport([_entry()]))
        assert "WARNING" not in text

    def test_invalid_warning(self):
        report = AuditReport([_entry(anchor="MISSING", source="invalid_frequency")])
        assert "Invalid frequency or next visit: 1" in format_report(report)

    def test_limit_truncates_table_not_totals(self):
        report = AuditReport([_entry(f"c{i}") for i in range(5)])
        text = format_report(report, limit=2)
        assert "c3" not in text
        assert "... 3 more not shown" in text
        assert "Total candidates: 5" in text


def test_format_summary():
    summary = MigrationSummary(total=6, created=3, existing=1, missing=1, invalid=1)
    assert format_summary(summary) == (
        "Migration complete. Plans created: 3. Already present: 1. "
        "Missing anchors (skipped): 2."
    )
