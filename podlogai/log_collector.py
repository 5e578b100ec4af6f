"""
Kubernetes log collection module
Interfaces with kubectl to enumerate pods/containers and snapshot their logs
"""

import abc
import asyncio
import json
import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Union
import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """A single line of container output plus where and when it was collected"""

    namespace: str
    pod_name: str
    container: str
    content: str
    timestamp: datetime

    @property
    def timestamp_str(self) -> str:
        return self.timestamp.isoformat(timespec="seconds")

    def with_content_prefix(self, prefix: str) -> "LogEntry":
        """Return a copy whose content is prefixed; the original is left untouched"""
        return replace(self, content=prefix + self.content)

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary"""
        return {
            'timestamp': self.timestamp.isoformat(),
            'namespace': self.namespace,
            'pod_name': self.pod_name,
            'container': self.container,
            'content': self.content
        }


def entries_from_stream(namespace: str,
                        pod_name: str,
                        container: str,
                        raw: Union[bytes, str],
                        now: Optional[datetime] = None) -> List[LogEntry]:
    """
    Split a raw log stream into LogEntry objects

    kubectl output carries no per-line timestamp unless asked to, so every
    line is stamped with the ingestion time. Empty lines are dropped and
    file order is kept.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    stamp = now or datetime.now(timezone.utc)
    entries = []

    for line in raw.split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        entries.append(LogEntry(
            namespace=namespace,
            pod_name=pod_name,
            container=container,
            content=line,
            timestamp=stamp
        ))

    return entries


class ClusterCommandError(Exception):
    """Raised when a cluster call fails or returns something unusable"""

    def __init__(self, message: str, cmd: Optional[List[str]] = None,
                 returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.cmd = cmd or []
        self.returncode = returncode
        self.stderr = stderr


class ClusterClient(abc.ABC):
    """What the retrieval pipeline needs from a Kubernetes cluster"""

    @abc.abstractmethod
    async def list_pods(self, namespace: str) -> List[str]:
        ...

    @abc.abstractmethod
    async def list_containers(self, namespace: str, pod_name: str) -> List[str]:
        ...

    @abc.abstractmethod
    async def fetch_logs(self, namespace: str, pod_name: str, container: str) -> bytes:
        ...

    async def test_connection(self) -> bool:
        return True


class KubectlClusterClient(ClusterClient):
    """Talks to the cluster by shelling out to kubectl"""

    def __init__(self,
                 kubeconfig_path: Optional[str] = None,
                 context: Optional[str] = None,
                 kubectl_path: str = "kubectl"):
        """
        Initialize the cluster client

        Args:
            kubeconfig_path: Path to kubeconfig file
            context: Kubernetes context to use
            kubectl_path: kubectl binary to run
        """
        self.kubeconfig_path = os.path.expanduser(kubeconfig_path) if kubeconfig_path else None
        self.context = context
        self.kubectl_path = kubectl_path

        logger.info("Initialized kubectl cluster client",
                    kubeconfig=self.kubeconfig_path,
                    context=context)

    def _build_kubectl_cmd(self, cmd_args: List[str]) -> List[str]:
        """Build kubectl command with proper context and kubeconfig"""
        cmd = [self.kubectl_path]

        if self.kubeconfig_path:
            cmd.extend(['--kubeconfig', str(self.kubeconfig_path)])

        if self.context:
            cmd.extend(['--context', self.context])

        cmd.extend(cmd_args)
        return cmd

    async def _run_kubectl_command(self, cmd_args: List[str]) -> bytes:
        """Run kubectl and return raw stdout, raising ClusterCommandError on failure"""
        cmd = self._build_kubectl_cmd(cmd_args)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise ClusterCommandError(f"failed to run {cmd[0]}: {e}", cmd=cmd) from e

        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace").strip()
            raise ClusterCommandError(
                stderr_text or f"kubectl exited with status {process.returncode}",
                cmd=cmd,
                returncode=process.returncode,
                stderr=stderr_text
            )

        return stdout

    async def list_pods(self, namespace: str) -> List[str]:
        """Get the names of every pod in a namespace"""
        stdout = await self._run_kubectl_command([
            'get', 'pods', '-n', namespace, '-o', 'jsonpath={.items[*].metadata.name}'
        ])

        pods = stdout.decode("utf-8", errors="replace").split()
        logger.debug("Found pods in namespace", namespace=namespace, count=len(pods))
        return pods

    async def list_containers(self, namespace: str, pod_name: str) -> List[str]:
        """Get the container names from a pod's spec"""
        stdout = await self._run_kubectl_command([
            'get', 'pod', pod_name, '-n', namespace, '-o', 'json'
        ])

        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ClusterCommandError(f"failed to parse pod JSON: {e}") from e

        spec = data.get('spec', {})
        return [c.get('name', '') for c in spec.get('containers', []) if c.get('name')]

    async def fetch_logs(self, namespace: str, pod_name: str, container: str) -> bytes:
        """Get the full current log of one container"""
        return await self._run_kubectl_command([
            'logs', pod_name, '-n', namespace, '-c', container
        ])

    async def test_connection(self) -> bool:
        """Test if kubectl connection is working"""
        try:
            await self._run_kubectl_command(['cluster-info'])
        except ClusterCommandError as e:
            logger.error("Kubectl connection test failed", error=str(e))
            return False

        logger.info("Kubectl connection test successful")
        return True
