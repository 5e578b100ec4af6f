"""
Tests for report generation and console output
"""

import io

from rich.console import Console

from podlogai.classifier import ClassificationResult, LogClassifier
from podlogai.reporting import (
    NO_CRITICAL_EVENTS,
    NO_PERFORMANCE_ISSUES,
    ReportingSystem,
    generate_detailed_report,
)
from podlogai.retrieval import RetrievalError, RetrievalSummary


def _recording_reporter():
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None)
    return ReportingSystem(console), buffer


class TestDetailedReport:
    """Test the Markdown report"""

    def test_empty_result_has_placeholders(self):
        report = generate_detailed_report(ClassificationResult())

        assert "- **Total Log Entries:** 0" in report
        assert "- **Error Count:** 0" in report
        assert "- **Warning Count:** 0" in report
        assert NO_CRITICAL_EVENTS in report
        assert NO_PERFORMANCE_ISSUES in report

    def test_event_lines(self, make_entry):
        result = LogClassifier().classify([
            make_entry("ERROR db down", pod_name="api-0", container="app"),
            make_entry("slow query", pod_name="db-0", container="postgres"),
            make_entry("WARN retrying"),
        ])

        report = generate_detailed_report(result)

        assert "- **Total Log Entries:** 3" in report
        assert "- **Error Count:** 1" in report
        assert "- **Warning Count:** 1" in report
        assert "- `2024-05-01T12:00:00+00:00 | api-0 | app`: ERROR db down" in report
        assert "- `2024-05-01T12:00:00+00:00 | db-0 | postgres`: slow query" in report
        assert NO_CRITICAL_EVENTS not in report
        assert NO_PERFORMANCE_ISSUES not in report

    def test_sections_are_in_order(self, make_entry):
        report = generate_detailed_report(LogClassifier().classify([make_entry("panic")]))

        assert report.index("### Kubernetes Log Analysis Report") \
            < report.index("#### Critical Events") \
            < report.index("#### Performance Issues")

    def test_report_is_deterministic(self, make_entry):
        result = LogClassifier().classify([make_entry("fatal"), make_entry("latency spike")])

        assert generate_detailed_report(result) == generate_detailed_report(result)


class TestReportingSystem:
    """Test rich console output"""

    def test_print_raw_logs(self, make_entry):
        reporter, buffer = _recording_reporter()

        reporter.print_raw_logs([make_entry("hello world", pod_name="web-0", container="app")])

        assert "2024-05-01T12:00:00+00:00 | web-0 | app | hello world" in buffer.getvalue()

    def test_print_error(self):
        reporter, buffer = _recording_reporter()

        reporter.print_error("failed to list containers for pod p: [forbidden]")

        assert "Error: failed to list containers for pod p: [forbidden]" in buffer.getvalue()

    def test_retrieval_summary_table(self):
        reporter, buffer = _recording_reporter()
        summary = RetrievalSummary(
            namespace="prod",
            pods=["a", "b"],
            entries_collected=42,
            errors=[RetrievalError("prod", "b", "app", "gone")]
        )

        reporter.display_retrieval_summary(summary)

        output = buffer.getvalue()
        assert "prod" in output
        assert "42" in output
        assert "partial" in output

    def test_render_insights(self):
        reporter, buffer = _recording_reporter()

        reporter.render_insights("**Summary of Key Events:** nothing unusual")

        assert "Summary of Key Events:" in buffer.getvalue()

    def test_default_console(self):
        reporter = ReportingSystem()

        assert isinstance(reporter.console, Console)
