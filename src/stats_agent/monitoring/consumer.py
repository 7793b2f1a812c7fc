"""Per-container stats consumer.

A StatsConsumer follows one container's stats stream on its own thread,
derives a metric document from every frame and hands it to the publisher.
When the stream ends or breaks it releases the container from the tracked
set so a later reconciliation pass can pick the container up again.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from stats_agent.core.errors import StreamError
from stats_agent.core.schemas import RawStatsSample
from stats_agent.monitoring.metrics import build_metric_document

if TYPE_CHECKING:
    from stats_agent.core.schemas import ContainerDescriptor
    from stats_agent.monitoring.tracking import TrackedContainers
    from stats_agent.publishing.publisher import HttpMetricPublisher
    from stats_agent.runtime.discovery import DockerDiscoveryClient

logger = logging.getLogger(__name__)


class StatsConsumer:
    """Streams stats for a single container until the stream ends.

    The consumer never retries its stream and is never cancelled from the
    outside; it finishes when the runtime closes the stream.

    Example:
        ```python
        consumer = StatsConsumer(descriptor, discovery, publisher, tracked)
        consumer.start()
        # ... container stops ...
        consumer.join()
        ```
    """

    def __init__(
        self,
        descriptor: ContainerDescriptor,
        discovery: DockerDiscoveryClient,
        publisher: HttpMetricPublisher,
        tracked: TrackedContainers,
    ) -> None:
        """Initialize the consumer.

        Args:
            descriptor: Container snapshot with extracted labels
            discovery: Client used to open the stats stream
            publisher: Receives one document per sample
            tracked: Set the container id is released from on termination
        """
        self.descriptor = descriptor
        self._discovery = discovery
        self._publisher = publisher
        self._tracked = tracked
        self._thread: threading.Thread | None = None
        self.samples_published = 0
        self.error: Exception | None = None

    @property
    def container_id(self) -> str:
        return self.descriptor.id

    def start(self) -> None:
        """Run the consumer on a background daemon thread."""
        if self._thread is not None:
            logger.warning(f"Consumer for {self.descriptor.short_id} already started")
            return

        self._thread = threading.Thread(
            target=self.run,
            name=f"stats-{self.descriptor.short_id}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Consume the stream to its end, then release the container."""
        container_id = self.container_id
        logger.debug(f"checking container: {container_id}, name: {self.descriptor.name}")

        try:
            for frame in self._discovery.stream_stats(container_id):
                self._handle_frame(frame)
        except StreamError as e:
            self.error = e
        except Exception as e:
            logger.exception(f"Unexpected failure while consuming stats of {container_id[:12]}")
            self.error = e
        finally:
            self._tracked.discard(container_id)

        logger.debug(f"stop checking container: {container_id}, name: {self.descriptor.name}")

        if isinstance(self.error, StreamError):
            logger.error(f"get {container_id} stats error, {self.error.reason}")

    def _handle_frame(self, frame: dict[str, Any]) -> None:
        try:
            sample = RawStatsSample.from_docker_stats(frame)
        except ValidationError as e:
            logger.warning(f"Failed to parse stats of {self.descriptor.short_id}: {e}")
            return

        document = build_metric_document(self.descriptor, sample)
        self._publisher.publish(document)
        self.samples_published += 1
