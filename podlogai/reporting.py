"""
Report generation and console output for classified logs
"""

from typing import Iterable, List, Optional
import structlog
from rich.console import Console
from rich.table import Table
from rich.markdown import Markdown
from rich.text import Text
from rich import box

from .classifier import ClassificationResult
from .log_collector import LogEntry
from .retrieval import RetrievalSummary

logger = structlog.get_logger(__name__)

NO_CRITICAL_EVENTS = "- No critical events detected."
NO_PERFORMANCE_ISSUES = "- No significant performance issues detected."


def _format_event_line(entry: LogEntry) -> str:
    return f"- `{entry.timestamp_str} | {entry.pod_name} | {entry.container}`: {entry.content}"


def generate_detailed_report(result: ClassificationResult) -> str:
    """Render a classification result as a Markdown report"""
    md_lines: List[str] = []

    md_lines.append("### Kubernetes Log Analysis Report")
    md_lines.append("")
    md_lines.append(f"- **Total Log Entries:** {result.total_entries}")
    md_lines.append(f"- **Error Count:** {result.error_count}")
    md_lines.append(f"- **Warning Count:** {result.warning_count}")
    md_lines.append("")

    md_lines.append("#### Critical Events")
    if result.critical_events:
        md_lines.extend(_format_event_line(event) for event in result.critical_events)
    else:
        md_lines.append(NO_CRITICAL_EVENTS)
    md_lines.append("")

    md_lines.append("#### Performance Issues")
    if result.performance_issues:
        md_lines.extend(_format_event_line(issue) for issue in result.performance_issues)
    else:
        md_lines.append(NO_PERFORMANCE_ISSUES)

    return "\n".join(md_lines) + "\n"


class ReportingSystem:
    """Terminal output for retrieval results, reports and insights"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_error(self, message: str):
        """Sink for non-fatal errors raised while the run continues"""
        self.console.print(Text(f"Error: {message}", style="red"))

    def print_raw_logs(self, entries: Iterable[LogEntry]):
        """Print every entry as a coloured 'timestamp | pod | container | content' line"""
        for entry in entries:
            line = Text()
            line.append(entry.timestamp_str, style="green")
            line.append(" | ")
            line.append(entry.pod_name, style="blue")
            line.append(" | ")
            line.append(entry.container, style="magenta")
            line.append(" | ")
            line.append(entry.content)
            self.console.print(line)

    def display_retrieval_summary(self, summary: RetrievalSummary):
        """Show how much was collected and how many pods/containers failed"""
        table = Table(title="Log Retrieval Summary", box=box.ROUNDED)
        table.add_column("Metric", style="bold")
        table.add_column("Value")

        status_color = "green" if summary.succeeded else "yellow"
        status = "complete" if summary.succeeded else "partial"

        table.add_row("Namespace", summary.namespace)
        table.add_row("Status", f"[{status_color}]{status}[/{status_color}]")
        table.add_row("Pods", str(len(summary.pods)))
        table.add_row("Log Entries", str(summary.entries_collected))
        table.add_row("Errors", str(len(summary.errors)))
        table.add_row("Duration", f"{summary.duration_seconds:.2f} seconds")

        self.console.print(table)

    def display_report(self, report: str):
        self.console.print(Markdown(report))

    def render_insights(self, insights: str):
        """Render Claude's Markdown insights"""
        self.console.print(Markdown(insights))
        logger.debug("Rendered insights", chars=len(insights))
