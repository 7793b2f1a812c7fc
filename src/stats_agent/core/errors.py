"""Exception hierarchy for the stats agent.

Runtime and transport errors are translated into these types at the client
boundaries (Docker SDK in ``runtime.discovery``, HTTP in
``publishing.publisher``) so the supervisor and consumers only handle
agent-level failures.
"""

from __future__ import annotations


class StatsAgentError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(StatsAgentError):
    """Configuration is missing or invalid. Fatal at startup."""


class RuntimeConnectionError(StatsAgentError):
    """The container runtime could not be reached."""


class QueryError(StatsAgentError):
    """Listing or inspecting containers failed."""


class ContainerNotFoundError(QueryError):
    """The inspected container no longer exists."""

    def __init__(self, container_id: str) -> None:
        super().__init__(f"container {container_id} not found")
        self.container_id = container_id


class StreamError(StatsAgentError):
    """A container stats stream broke before ending cleanly."""

    def __init__(self, container_id: str, reason: str) -> None:
        super().__init__(f"stats stream for {container_id} failed: {reason}")
        self.container_id = container_id
        self.reason = reason


class PublishError(StatsAgentError):
    """A metric document could not be delivered to the sink."""
