"""Container stats agent - streams Docker container CPU/memory metrics to a sink."""

from __future__ import annotations

from stats_agent.core.config import AgentConfig
from stats_agent.core.schemas import ContainerDescriptor, MetricDocument, RawStatsSample
from stats_agent.monitoring.supervisor import MonitoringSupervisor
from stats_agent.publishing.publisher import HttpMetricPublisher
from stats_agent.runtime.discovery import DockerDiscoveryClient

__version__ = "0.1.0"

__all__ = [
    "AgentConfig",
    "ContainerDescriptor",
    "DockerDiscoveryClient",
    "HttpMetricPublisher",
    "MetricDocument",
    "MonitoringSupervisor",
    "RawStatsSample",
    "__version__",
]
