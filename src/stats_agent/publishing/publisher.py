"""HTTP metric publisher.

Posts each metric document as one JSON object to a date-suffixed index of an
Elasticsearch/Logstash style endpoint:

    http://<sink_address>/<index_prefix>-<YYYY.MM.DD>/containers

Delivery is a single best-effort attempt. Failures are logged and the
document is dropped; nothing is surfaced to the caller.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from stats_agent.core.constants import (
    DEFAULT_INDEX_PREFIX,
    DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    DOCUMENT_TYPE,
    INDEX_DATE_FORMAT,
)
from stats_agent.core.errors import PublishError
from stats_agent.core.schemas import MetricDocument

logger = logging.getLogger(__name__)


class HttpMetricPublisher:
    """Fire-and-forget publisher for metric documents.

    Example:
        ```python
        publisher = HttpMetricPublisher("es.local:9200", index_prefix="logstash-docker")
        publisher.publish(document)
        ```
    """

    def __init__(
        self,
        sink_address: str,
        index_prefix: str = DEFAULT_INDEX_PREFIX,
        timeout_seconds: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the publisher.

        Args:
            sink_address: 'host[:port]' of the sink; an explicit http(s)://
                scheme is kept
            index_prefix: Index name prefix, the current date is appended
            timeout_seconds: Timeout of one POST
        """
        address = sink_address.rstrip("/")
        if not address.startswith(("http://", "https://")):
            address = f"http://{address}"
        self._base_url = address
        self.index_prefix = index_prefix
        self.timeout_seconds = timeout_seconds

    def index_url(self, now: datetime) -> str:
        """URL the document is posted to for the given send time."""
        index = f"{self.index_prefix}-{now.strftime(INDEX_DATE_FORMAT)}"
        return f"{self._base_url}/{index}/{DOCUMENT_TYPE}"

    def publish(self, document: MetricDocument) -> None:
        """Deliver one document. Never raises for delivery failures."""
        try:
            self._send(document, self._now())
        except PublishError as e:
            logger.error(f"Publish failed for {document.container_id[:12]}: {e}")

    def _now(self) -> datetime:
        return datetime.now()

    def _send(self, document: MetricDocument, now: datetime) -> int:
        # whole seconds, scaled to milliseconds
        payload = document.to_payload(int(now.timestamp()) * 1000)

        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise PublishError(f"serializing document failed: {e}") from e

        logger.debug(body.decode("utf-8"))

        url = self.index_url(now)
        request = Request(
            url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                response.read()
                status = response.status
        except HTTPError as e:
            raise PublishError(f"POST {url} returned {e.code}") from e
        except (URLError, OSError, HTTPException, ValueError) as e:
            # ValueError covers http.client.InvalidURL
            raise PublishError(f"POST {url} failed: {e}") from e

        logger.debug(f"POST metrics to {url} returned {status}")
        return status
