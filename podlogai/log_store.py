"""
Thread-safe, append-only storage for collected log entries
"""

import threading
from typing import Iterable, Tuple

from .log_collector import LogEntry


class LogStore:
    """
    Ordered collection of LogEntry objects shared by concurrent producers

    The sequence only grows or is cleared as a whole. snapshot() hands out an
    immutable copy, so readers never see a half-applied write.
    """

    def __init__(self):
        self._entries = []
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        batch = list(entries)
        with self._lock:
            self._entries.extend(batch)

    def snapshot(self) -> Tuple[LogEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
