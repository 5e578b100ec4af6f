"""
Shared fixtures for Pod Log AI tests
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import pytest

from podlogai.log_collector import ClusterClient, ClusterCommandError, LogEntry


class FakeCluster(ClusterClient):
    """In-memory cluster: pod -> container -> raw log bytes (or an exception to raise)"""

    def __init__(self,
                 pods: Dict[str, Dict[str, Union[bytes, Exception]]],
                 pod_listing_error: Optional[Exception] = None,
                 broken_pods: Optional[List[str]] = None,
                 delay: float = 0.0):
        self.pods = pods
        self.pod_listing_error = pod_listing_error
        self.broken_pods = set(broken_pods or [])
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _enter(self, call):
        self.calls.append(call)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)
        self.in_flight -= 1

    async def list_pods(self, namespace: str) -> List[str]:
        await self._enter(('list_pods', namespace))
        if self.pod_listing_error is not None:
            raise self.pod_listing_error
        return list(self.pods)

    async def list_containers(self, namespace: str, pod_name: str) -> List[str]:
        await self._enter(('list_containers', pod_name))
        if pod_name in self.broken_pods:
            raise ClusterCommandError(f'pods "{pod_name}" not found')
        return list(self.pods[pod_name])

    async def fetch_logs(self, namespace: str, pod_name: str, container: str) -> bytes:
        await self._enter(('fetch_logs', pod_name, container))
        value = self.pods[pod_name][container]
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_calls(self):
        return [c for c in self.calls if c[0] == 'fetch_logs']


@pytest.fixture
def fake_cluster():
    """Factory for FakeCluster instances"""
    return FakeCluster


@pytest.fixture
def make_entry():
    """Factory for LogEntry objects with sensible defaults"""
    stamp = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def _make(content: str, pod_name: str = "web-0", container: str = "app",
              namespace: str = "production") -> LogEntry:
        return LogEntry(
            namespace=namespace,
            pod_name=pod_name,
            container=container,
            content=content,
            timestamp=stamp
        )

    return _make
