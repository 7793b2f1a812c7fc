"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from stats_agent.core.config import AgentConfig, config_from_env, load_config
from stats_agent.core.constants import SENTINEL_LABEL
from stats_agent.core.errors import (
    ConfigurationError,
    ContainerNotFoundError,
    PublishError,
    QueryError,
    RuntimeConnectionError,
    StatsAgentError,
    StreamError,
)
from stats_agent.core.schemas import ContainerDescriptor, MetricDocument, RawStatsSample

__all__ = [
    "AgentConfig",
    "ConfigurationError",
    "ContainerDescriptor",
    "ContainerNotFoundError",
    "config_from_env",
    "load_config",
    "MetricDocument",
    "PublishError",
    "QueryError",
    "RawStatsSample",
    "RuntimeConnectionError",
    "SENTINEL_LABEL",
    "StatsAgentError",
    "StreamError",
]
