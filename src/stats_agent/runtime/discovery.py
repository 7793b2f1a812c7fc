"""Docker runtime discovery client.

Thin wrapper around the Docker SDK's low-level API exposing the three calls
the supervisor and consumers need: list running containers, inspect one
container, and stream its stats. SDK and transport exceptions are translated
into the agent's error types here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import docker
import requests
from docker.errors import APIError, DockerException, NotFound

from stats_agent.core.errors import (
    ContainerNotFoundError,
    QueryError,
    RuntimeConnectionError,
    StreamError,
)
from stats_agent.core.schemas import ContainerDescriptor

logger = logging.getLogger(__name__)


class DockerDiscoveryClient:
    """Runtime discovery client backed by the Docker SDK.

    Example:
        ```python
        discovery = DockerDiscoveryClient()
        for container_id in discovery.list_running_containers():
            descriptor = discovery.inspect_container(container_id)
            for frame in discovery.stream_stats(container_id):
                ...
        ```
    """

    def __init__(
        self,
        docker_url: str | None = None,
        client: docker.DockerClient | None = None,
    ) -> None:
        """Initialize the discovery client.

        Args:
            docker_url: Daemon URL (e.g. 'unix:///var/run/docker.sock').
                None uses DOCKER_HOST and friends via ``docker.from_env()``.
            client: Pre-built client, mainly for tests
        """
        self._docker_url = docker_url
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        """Docker client, created on first use."""
        if self._client is None:
            try:
                if self._docker_url:
                    self._client = docker.DockerClient(base_url=self._docker_url)
                else:
                    self._client = docker.from_env()
            except DockerException as e:
                raise RuntimeConnectionError(f"new docker client failed: {e}") from e
        return self._client

    def ping(self) -> bool:
        """Check that the Docker daemon answers."""
        try:
            return bool(self.client.ping())
        except (RuntimeConnectionError, DockerException, requests.RequestException) as e:
            logger.debug(f"Docker ping failed: {e}")
            return False

    def list_running_containers(self) -> list[str]:
        """List the ids of all running containers.

        Raises:
            RuntimeConnectionError: If the daemon cannot be reached
            QueryError: If the daemon rejects the query
        """
        try:
            containers = self.client.api.containers(filters={"status": "running"})
        except requests.ConnectionError as e:
            raise RuntimeConnectionError(f"cannot reach docker daemon: {e}") from e
        except (APIError, requests.RequestException) as e:
            raise QueryError(f"list containers failed: {e}") from e

        return [c["Id"] for c in containers if c.get("Id")]

    def inspect_container(self, container_id: str) -> ContainerDescriptor:
        """Inspect a container and return its name and declared environment.

        Labels are left at their defaults; the caller extracts them.

        Raises:
            ContainerNotFoundError: If the container is gone
            QueryError: If the inspect call fails otherwise
        """
        try:
            info: dict[str, Any] = self.client.api.inspect_container(container_id)
        except NotFound as e:
            raise ContainerNotFoundError(container_id) from e
        except (APIError, requests.RequestException) as e:
            raise QueryError(f"inspect container {container_id} failed: {e}") from e

        config = info.get("Config") or {}
        return ContainerDescriptor(
            id=info.get("Id") or container_id,
            name=info.get("Name") or "",
            env=list(config.get("Env") or []),
        )

    def stream_stats(self, container_id: str) -> Iterator[dict[str, Any]]:
        """Yield decoded stats frames until the container stops.

        The stream ends cleanly when the daemon closes it (container stopped
        or removed).

        Raises:
            StreamError: If the stream cannot be opened or breaks
        """
        try:
            stream = self.client.api.stats(container_id, stream=True, decode=True)
            for frame in stream:
                yield frame
        except (RuntimeConnectionError, DockerException, requests.RequestException, ValueError) as e:
            raise StreamError(container_id, str(e)) from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
