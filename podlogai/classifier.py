"""
Rule-based classification of collected log lines

Each line is tested against the rules in priority order and the first match
decides what happens to it, so a line is never counted twice.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence

from .log_collector import LogEntry

RESTART_PREFIX = "Restart Event: "


class LogCategory(Enum):
    """Buckets a log line can fall into"""
    ERROR = "error"
    WARNING = "warning"
    PERFORMANCE = "performance"
    RESTART = "restart"


@dataclass(frozen=True)
class ClassificationRule:
    category: LogCategory
    pattern: Pattern

    def matches(self, content: str) -> bool:
        return self.pattern.search(content) is not None


DEFAULT_RULES = (
    ClassificationRule(LogCategory.ERROR, re.compile(r"error|critical|fatal|panic", re.IGNORECASE)),
    ClassificationRule(LogCategory.WARNING, re.compile(r"warning|warn", re.IGNORECASE)),
    ClassificationRule(LogCategory.PERFORMANCE, re.compile(r"timeout|latency|slow|high load", re.IGNORECASE)),
    ClassificationRule(LogCategory.RESTART, re.compile(r"(?:pod|container).*restart|restart.*(?:pod|container)", re.IGNORECASE)),
)


@dataclass
class ClassificationResult:
    """Counts and event lists derived from one batch of log entries"""

    total_entries: int = 0
    error_count: int = 0
    warning_count: int = 0
    critical_events: List[LogEntry] = field(default_factory=list)
    performance_issues: List[LogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_entries': self.total_entries,
            'error_count': self.error_count,
            'warning_count': self.warning_count,
            'critical_events': [e.to_dict() for e in self.critical_events],
            'performance_issues': [e.to_dict() for e in self.performance_issues]
        }


class LogClassifier:
    """Partitions log entries into critical events and performance issues"""

    def __init__(self, rules: Sequence[ClassificationRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def categorize(self, entry: LogEntry) -> Optional[LogCategory]:
        """Return the category of the first matching rule, or None"""
        for rule in self.rules:
            if rule.matches(entry.content):
                return rule.category
        return None

    def classify(self, entries: Iterable[LogEntry]) -> ClassificationResult:
        """
        Classify a batch of entries from scratch

        Errors and restarts become critical events, warnings are only
        counted, and performance matches are listed separately. Both lists
        keep the input order. Restart events are copies with a prefix; the
        entries passed in are never modified.
        """
        result = ClassificationResult()

        for entry in entries:
            result.total_entries += 1
            category = self.categorize(entry)

            if category is LogCategory.ERROR:
                result.error_count += 1
                result.critical_events.append(entry)
            elif category is LogCategory.WARNING:
                result.warning_count += 1
            elif category is LogCategory.PERFORMANCE:
                result.performance_issues.append(entry)
            elif category is LogCategory.RESTART:
                result.critical_events.append(entry.with_content_prefix(RESTART_PREFIX))

        return result
