"""Monitoring supervisor.

Periodically reconciles the set of monitored containers with the containers
the runtime reports as running, and starts one StatsConsumer per newly seen
container.

Containers are only released by their own consumer when its stats stream
ends. A container that vanishes while its stream stays open keeps its slot;
reconciliation never removes entries on its own.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from stats_agent.core.constants import (
    APP_ID_ENV_KEY,
    DEFAULT_POLL_INTERVAL_SECONDS,
    HOST_ENV_KEY,
)
from stats_agent.core.errors import QueryError, RuntimeConnectionError
from stats_agent.monitoring.consumer import StatsConsumer
from stats_agent.monitoring.metrics import extract_labels
from stats_agent.monitoring.tracking import TrackedContainers

if TYPE_CHECKING:
    from stats_agent.core.config import AgentConfig
    from stats_agent.core.schemas import ContainerDescriptor
    from stats_agent.publishing.publisher import HttpMetricPublisher
    from stats_agent.runtime.discovery import DockerDiscoveryClient

logger = logging.getLogger(__name__)


class MonitoringSupervisor:
    """Owns the tracked-container set and the stats consumers.

    Example:
        ```python
        supervisor = MonitoringSupervisor(discovery, publisher, poll_interval_seconds=5.0)
        supervisor.run_forever()
        ```
    """

    def __init__(
        self,
        discovery: DockerDiscoveryClient,
        publisher: HttpMetricPublisher,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        app_id_env_key: str = APP_ID_ENV_KEY,
        host_env_key: str = HOST_ENV_KEY,
        tracked: TrackedContainers | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            discovery: Runtime discovery client
            publisher: Publisher handed to every consumer
            poll_interval_seconds: Delay between reconciliation passes
            app_id_env_key: Container env key for the appID label
            host_env_key: Container env key for the host label
            tracked: Tracked set to use (a new empty one by default)
        """
        self._discovery = discovery
        self._publisher = publisher
        self.poll_interval_seconds = poll_interval_seconds
        self._app_id_env_key = app_id_env_key
        self._host_env_key = host_env_key
        self._tracked = tracked if tracked is not None else TrackedContainers()
        # a restarted container can briefly have two live consumers
        self._consumers: list[StatsConsumer] = []
        self._consumers_lock = threading.Lock()
        self._stop_event = threading.Event()

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        discovery: DockerDiscoveryClient,
        publisher: HttpMetricPublisher,
    ) -> MonitoringSupervisor:
        return cls(
            discovery,
            publisher,
            poll_interval_seconds=config.poll_interval_seconds,
            app_id_env_key=config.app_id_env_key,
            host_env_key=config.host_env_key,
        )

    @property
    def tracked(self) -> TrackedContainers:
        return self._tracked

    def reconcile(self) -> int:
        """Run one reconciliation pass.

        Lists running containers, skips those already tracked, and starts a
        consumer for each new one. Listing failures abort the pass; an
        inspect failure only skips that container until the next pass.

        Returns:
            Number of consumers started
        """
        logger.debug("listing all containers")

        try:
            container_ids = self._discovery.list_running_containers()
        except RuntimeConnectionError as e:
            logger.error(f"docker client connection failed, {e}")
            return 0
        except QueryError as e:
            logger.error(f"list containers err, {e}")
            return 0

        started = 0
        for container_id in container_ids:
            if container_id in self._tracked:
                logger.debug(f"container {container_id} already in checking")
                continue

            try:
                descriptor = self._discovery.inspect_container(container_id)
            except (QueryError, RuntimeConnectionError) as e:
                logger.error(f"inspect container {container_id} error, {e}")
                continue

            host, app_id = extract_labels(
                descriptor.env,
                app_id_key=self._app_id_env_key,
                host_key=self._host_env_key,
            )
            descriptor = descriptor.model_copy(update={"host": host, "app_id": app_id})

            if self._start_consumer(descriptor):
                started += 1

        return started

    def _start_consumer(self, descriptor: ContainerDescriptor) -> bool:
        # mark first: the consumer may finish (and discard) before start() returns
        if not self._tracked.add(descriptor.id):
            return False

        consumer = StatsConsumer(descriptor, self._discovery, self._publisher, self._tracked)
        try:
            consumer.start()
        except RuntimeError as e:
            self._tracked.discard(descriptor.id)
            logger.error(f"cannot start consumer for {descriptor.id}, {e}")
            return False

        with self._consumers_lock:
            self._consumers.append(consumer)
        return True

    def run_forever(self) -> None:
        """Reconcile every poll interval until ``stop()`` is called."""
        logger.info(f"Monitoring containers every {self.poll_interval_seconds:g}s")

        while not self._stop_event.is_set():
            try:
                started = self.reconcile()
                if started:
                    logger.info(f"Started monitoring {started} container(s), {len(self._tracked)} tracked")
            except Exception:
                logger.exception("Reconciliation pass failed")
            self._prune_finished()
            self._stop_event.wait(self.poll_interval_seconds)

        logger.info("Supervisor stopped")

    def stop(self) -> None:
        """Ask ``run_forever`` to return after the current pass.

        Running consumers are left alone.
        """
        self._stop_event.set()

    def active_consumers(self) -> list[StatsConsumer]:
        with self._consumers_lock:
            return [c for c in self._consumers if c.is_alive()]

    def wait_for_consumers(self, timeout: float | None = None) -> bool:
        """Block until all started consumers finish.

        Args:
            timeout: Overall limit in seconds, None waits forever

        Returns:
            True if no consumer is still running
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._consumers_lock:
            consumers = list(self._consumers)

        for consumer in consumers:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            consumer.join(timeout=remaining)

        self._prune_finished()
        return not self.active_consumers()

    def _prune_finished(self) -> None:
        with self._consumers_lock:
            self._consumers = [c for c in self._consumers if c.is_alive()]
