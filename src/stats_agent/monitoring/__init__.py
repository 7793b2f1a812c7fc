"""Monitoring module - container discovery loop and stats consumers.

- MonitoringSupervisor: periodic reconciliation, one consumer per container
- StatsConsumer: follows one container's stats stream
- TrackedContainers: ids currently owned by a consumer
- metrics: CPU / memory percentage derivation and label extraction
"""

from __future__ import annotations

from stats_agent.monitoring.consumer import StatsConsumer
from stats_agent.monitoring.metrics import (
    build_metric_document,
    calculate_cpu_percent,
    calculate_memory_percent,
    cpu_percent_from_sample,
    extract_labels,
    memory_percent_from_sample,
)
from stats_agent.monitoring.supervisor import MonitoringSupervisor
from stats_agent.monitoring.tracking import TrackedContainers

__all__ = [
    "build_metric_document",
    "calculate_cpu_percent",
    "calculate_memory_percent",
    "cpu_percent_from_sample",
    "extract_labels",
    "memory_percent_from_sample",
    "MonitoringSupervisor",
    "StatsConsumer",
    "TrackedContainers",
]
