from __future__ import annotations
import logging
import os
import re
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import docker
import requests
from docker.errors import DockerException

from ..config import DEFAULT_DOCKER_TIMEOUT
from ..errors import RegistryUnavailableError
from ..models import Container, Process
from .linux import PROC_ROOT, read_ns_inode

log = logging.getLogger(__name__)

# cgroup v1: /docker/<id>, cgroup v2: /system.slice/docker-<id>.scope
CONTAINER_ID_RE = re.compile(r"(?<![0-9a-f])[0-9a-f]{64}(?![0-9a-f])")

Matcher = Callable[[Container, Process], bool]

def cgroup_container_ids(cgroup: str) -> set[str]:
    return set(CONTAINER_ID_RE.findall(cgroup))

def match_cgroup(container: Container, process: Process) -> bool:
    return container.id in cgroup_container_ids(process.cgroup)

def match_root_pid(container: Container, process: Process) -> bool:
    return bool(container.root_pid) and process.pid == container.root_pid

def match_pid_namespace(container: Container, process: Process) -> bool:
    # pid_namespace is None for containers sharing our own namespace
    return (container.pid_namespace is not None
            and process.pid_namespace == container.pid_namespace)

DEFAULT_MATCHERS: tuple[Matcher, ...] = (match_root_pid, match_cgroup, match_pid_namespace)

class DockerRegistry:
    """Running containers, queried live from the Docker daemon."""

    def __init__(self, client: Optional[docker.DockerClient] = None,
                 base_url: Optional[str] = None,
                 timeout: float = DEFAULT_DOCKER_TIMEOUT,
                 matchers: Sequence[Matcher] = DEFAULT_MATCHERS,
                 proc_root: str | os.PathLike = PROC_ROOT):
        self._client = client
        self._owns_client = client is None
        self.base_url = base_url
        self.timeout = timeout
        self.matchers = tuple(matchers)
        self.proc_root = Path(proc_root)

    def _connect(self) -> docker.DockerClient:
        if self._client is None:
            try:
                client = None
                if self.base_url:
                    client = docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
                else:
                    client = docker.from_env(timeout=self.timeout)
                client.ping()
            except (DockerException, requests.exceptions.RequestException) as e:
                if client is not None:
                    client.close()
                raise RegistryUnavailableError(f"cannot reach Docker daemon: {e}") from e
            self._client = client
        return self._client

    def _pid_namespace(self, root_pid: int, own: Optional[int]) -> Optional[int]:
        if not root_pid:
            return None
        ns = read_ns_inode(self.proc_root / str(root_pid) / "ns" / "pid")
        return None if ns == own else ns

    def list_running_containers(self) -> List[Container]:
        client = self._connect()
        try:
            raw = client.containers.list(ignore_removed=True)
        except (DockerException, requests.exceptions.RequestException) as e:
            raise RegistryUnavailableError(f"cannot list containers: {e}") from e

        own = read_ns_inode(self.proc_root / "self" / "ns" / "pid")
        out: List[Container] = []
        for c in raw:
            root_pid = int((c.attrs.get("State") or {}).get("Pid") or 0)
            out.append(Container(
                name=(c.name or c.id).lstrip("/"),
                id=c.id,
                root_pid=root_pid,
                pid_namespace=self._pid_namespace(root_pid, own),
            ))
        log.debug("docker: %d running container(s)", len(out))
        return out

    def contains(self, container: Container, process: Process) -> bool:
        return any(m(container, process) for m in self.matchers)

    def close(self) -> None:
        # injected clients belong to the caller
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
