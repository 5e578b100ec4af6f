"""
Concurrent log retrieval across pods and containers

One task per pod, one nested task per container, all feeding a single event
queue that one consumer drains into the LogStore. Every cluster call runs
under a shared semaphore so the fan-out stays bounded however large the
namespace is.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence
import structlog

from .log_collector import ClusterClient, LogEntry, entries_from_stream
from .log_store import LogStore

logger = structlog.get_logger(__name__)

# Enqueued once, after every producer has finished
_END_OF_STREAM = object()


class PodListingError(Exception):
    """Pods could not be enumerated, so there is nothing to retrieve"""


@dataclass(frozen=True)
class RetrievalError:
    """A non-fatal failure scoped to one pod or one container"""

    namespace: str
    pod: str
    container: Optional[str]
    reason: str

    def __str__(self) -> str:
        if self.container is None:
            return f"failed to list containers for pod {self.pod}: {self.reason}"
        return (f"failed to retrieve logs for pod {self.pod}, "
                f"container {self.container}: {self.reason}")


@dataclass(frozen=True)
class RetrievalEvent:
    """One message on the event queue: exactly one of entry or error is set"""

    entry: Optional[LogEntry] = None
    error: Optional[RetrievalError] = None


@dataclass
class RetrievalSummary:
    """Outcome of a retrieve() call"""

    namespace: str
    pods: List[str] = field(default_factory=list)
    entries_collected: int = 0
    errors: List[RetrievalError] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.errors


class RetrievalOrchestrator:
    """Fans out log collection over a namespace and fans the results into a LogStore"""

    def __init__(self,
                 cluster: ClusterClient,
                 store: LogStore,
                 max_concurrency: int = 10,
                 queue_size: int = 100,
                 on_error: Optional[Callable[[str], None]] = None,
                 log=None):
        """
        Args:
            cluster: Source of pod/container names and raw logs
            store: Destination for every collected entry
            max_concurrency: Maximum number of cluster calls in flight
            queue_size: Event queue buffer (0 means unbounded)
            on_error: Sink for human-readable non-fatal errors
            log: structlog logger to use instead of the module logger
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.cluster = cluster
        self.store = store
        self.max_concurrency = max_concurrency
        self.queue_size = queue_size
        self.on_error = on_error
        self.log = log or logger

    async def retrieve(self,
                       namespace: str,
                       pod: Optional[str] = None,
                       container: Optional[str] = None) -> RetrievalSummary:
        """
        Collect every log line reachable under the given filters

        Returns only once all pod and container tasks are done and every
        event has been consumed. Raises PodListingError if the namespace's
        pods cannot be listed; any other cluster failure is isolated to its
        pod or container and reported through on_error. An exception from the
        store is re-raised once every producer has finished.
        """
        if not namespace:
            raise ValueError("namespace is required")

        start_time = datetime.now()
        pods = await self._resolve_pods(namespace, pod)

        self.log.info("Starting log retrieval",
                      namespace=namespace,
                      pods=len(pods),
                      container=container,
                      max_concurrency=self.max_concurrency)

        summary = RetrievalSummary(namespace=namespace, pods=list(pods))
        queue = asyncio.Queue(maxsize=self.queue_size)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        consumer = asyncio.create_task(self._consume(queue, summary))
        producers = asyncio.ensure_future(asyncio.gather(*(
            self._collect_pod(queue, semaphore, namespace, pod_name, container)
            for pod_name in pods
        )))
        try:
            await asyncio.wait({consumer, producers}, return_when=asyncio.FIRST_COMPLETED)
            if consumer.done():
                # The sentinel has not been sent, so the consumer was cancelled or failed
                consumer.result()
                raise RuntimeError("event consumer stopped before the end of the stream")

            await producers
            await queue.put(_END_OF_STREAM)
            await consumer
        finally:
            await _cancel_and_wait(producers, consumer)

        summary.duration_seconds = (datetime.now() - start_time).total_seconds()
        self.log.info("Completed log retrieval",
                      namespace=namespace,
                      entries=summary.entries_collected,
                      errors=len(summary.errors),
                      duration=summary.duration_seconds)
        return summary

    async def _resolve_pods(self, namespace: str, pod: Optional[str]) -> Sequence[str]:
        if pod:
            return [pod]

        try:
            return await self.cluster.list_pods(namespace)
        except Exception as e:
            self.log.error("Failed to list pods", namespace=namespace, error=str(e))
            raise PodListingError(f"failed to list pods in namespace {namespace}: {e}") from e

    async def _collect_pod(self,
                           queue: asyncio.Queue,
                           semaphore: asyncio.Semaphore,
                           namespace: str,
                           pod_name: str,
                           container: Optional[str]) -> None:
        if container:
            containers = [container]
        else:
            # The permit is released before the container tasks start.
            try:
                async with semaphore:
                    containers = await self.cluster.list_containers(namespace, pod_name)
            except Exception as e:
                await queue.put(RetrievalEvent(
                    error=RetrievalError(namespace, pod_name, None, str(e))
                ))
                return

        await asyncio.gather(*(
            self._collect_container(queue, semaphore, namespace, pod_name, name)
            for name in containers
        ))

    async def _collect_container(self,
                                 queue: asyncio.Queue,
                                 semaphore: asyncio.Semaphore,
                                 namespace: str,
                                 pod_name: str,
                                 container: str) -> None:
        try:
            async with semaphore:
                raw = await self.cluster.fetch_logs(namespace, pod_name, container)
        except Exception as e:
            await queue.put(RetrievalEvent(
                error=RetrievalError(namespace, pod_name, container, str(e))
            ))
            return

        entries = entries_from_stream(namespace, pod_name, container, raw)
        self.log.debug("Fetched container logs",
                       pod=pod_name, container=container, lines=len(entries))

        for entry in entries:
            await queue.put(RetrievalEvent(entry=entry))

    async def _consume(self, queue: asyncio.Queue, summary: RetrievalSummary) -> None:
        """
        Drain the queue until the end-of-stream sentinel

        If storing an event fails the remaining events are still drained, so
        producers blocked on a full queue can finish, and the failure is
        raised once the stream ends.
        """
        failure = None
        while True:
            event = await queue.get()
            if event is _END_OF_STREAM:
                break
            if failure is not None:
                continue

            try:
                self._handle_event(event, summary)
            except Exception as e:
                self.log.error("Failed to store retrieved log entry", error=str(e))
                failure = e

        if failure is not None:
            raise failure

    def _handle_event(self, event: RetrievalEvent, summary: RetrievalSummary) -> None:
        if event.error is None:
            self.store.append(event.entry)
            summary.entries_collected += 1
            return

        summary.errors.append(event.error)
        self.log.warning("Partial retrieval failure",
                         pod=event.error.pod,
                         container=event.error.container,
                         error=event.error.reason)

        if self.on_error is not None:
            try:
                self.on_error(str(event.error))
            except Exception as e:
                self.log.error("Error sink failed", error=str(e))


async def _cancel_and_wait(*tasks: "asyncio.Future") -> None:
    """Cancel whatever is still running and wait for it to settle"""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
