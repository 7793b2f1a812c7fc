"""Shared constants for the stats agent.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Placeholder used when a container does not declare an expected label.
SENTINEL_LABEL = "-"

# Container environment keys the host/appID labels are read from.
APP_ID_ENV_KEY = "MARATHON_APP_ID"
HOST_ENV_KEY = "HOST"

# Seconds between two reconciliation passes.
DEFAULT_POLL_INTERVAL_SECONDS = 5.0

# Index name prefix; the sink index is "<prefix>-<YYYY.MM.DD>".
DEFAULT_INDEX_PREFIX = "logstash-docker"
INDEX_DATE_FORMAT = "%Y.%m.%d"
DOCUMENT_TYPE = "containers"

# Field added to every metric document at send time (milliseconds).
TIMESTAMP_FIELD = "@timestamp"

DEFAULT_PUBLISH_TIMEOUT_SECONDS = 10.0

# Environment variables read by config_from_env().
ENV_SINK_ADDRESS = "LOGGER_ADDR"
ENV_INDEX_PREFIX = "LOGGER_INDEX"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_POLL_INTERVAL = "POLL_INTERVAL_SECONDS"
ENV_DOCKER_URL = "DOCKER_URL"
ENV_PUBLISH_TIMEOUT = "PUBLISH_TIMEOUT_SECONDS"
