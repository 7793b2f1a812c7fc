"""Pydantic schemas for the stats agent.

This module defines the data contracts passed between the discovery client,
the stats consumers and the metric publisher.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from stats_agent.core.constants import SENTINEL_LABEL, TIMESTAMP_FIELD


class ContainerDescriptor(BaseModel):
    """Snapshot of a container taken at discovery time.

    Attributes:
        id: Runtime-assigned container identifier
        name: Container name as reported by inspect (e.g. '/web-1')
        env: Declared environment as 'KEY=VALUE' strings, in declaration order
        host: Host label extracted from env
        app_id: Application label extracted from env
    """

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    env: list[str] = Field(default_factory=list)
    host: str = Field(default=SENTINEL_LABEL)
    app_id: str = Field(default=SENTINEL_LABEL)

    model_config = {"frozen": True}

    @property
    def short_id(self) -> str:
        return self.id[:12]


class RawStatsSample(BaseModel):
    """One frame of a container's stats stream.

    CPU counters are cumulative nanoseconds; the ``pre*`` fields are the
    runtime's previous reading, paired with the current one in the same frame.
    """

    cpu_total_usage: int = Field(default=0, ge=0)
    precpu_total_usage: int = Field(default=0, ge=0)
    system_cpu_usage: int = Field(default=0, ge=0)
    presystem_cpu_usage: int = Field(default=0, ge=0)
    percpu_count: int = Field(default=0, ge=0)
    online_cpus: int = Field(default=0, ge=0)
    memory_usage: int = Field(default=0, ge=0)
    memory_limit: int = Field(default=0, ge=0)
    memory_max_usage: int = Field(default=0, ge=0)

    @classmethod
    def from_docker_stats(cls, stats: dict[str, Any]) -> RawStatsSample:
        """Parse a decoded Docker stats frame.

        Missing or null fields (stopped containers, cgroup v2 hosts without
        per-CPU counters) are read as zero.
        """
        cpu_stats = stats.get("cpu_stats") or {}
        precpu_stats = stats.get("precpu_stats") or {}
        cpu_usage = cpu_stats.get("cpu_usage") or {}
        precpu_usage = precpu_stats.get("cpu_usage") or {}
        memory_stats = stats.get("memory_stats") or {}

        return cls(
            cpu_total_usage=cpu_usage.get("total_usage") or 0,
            precpu_total_usage=precpu_usage.get("total_usage") or 0,
            system_cpu_usage=cpu_stats.get("system_cpu_usage") or 0,
            presystem_cpu_usage=precpu_stats.get("system_cpu_usage") or 0,
            percpu_count=len(cpu_usage.get("percpu_usage") or []),
            online_cpus=cpu_stats.get("online_cpus") or 0,
            memory_usage=memory_stats.get("usage") or 0,
            memory_limit=memory_stats.get("limit") or 0,
            memory_max_usage=memory_stats.get("max_usage") or 0,
        )


class MetricDocument(BaseModel):
    """Metric document emitted once per stats sample.

    Field aliases are the names the sink index is mapped with; always
    serialize with ``by_alias=True`` (``to_payload`` does).
    """

    host: str
    app_id: str = Field(alias="appID")
    name: str
    container_id: str = Field(alias="cID")
    cpu_percent: int = Field(ge=0, alias="cpuPercent")
    mem_usage: int = Field(ge=0, alias="memUsage")
    mem_limit: int = Field(ge=0, alias="memLimit")
    max_mem_usage: int = Field(ge=0, alias="maxMemUsage")
    mem_percent: int = Field(ge=0, alias="memPercent")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_payload(self, timestamp_ms: int) -> dict[str, Any]:
        """Return the wire mapping with the send-time timestamp added."""
        payload = self.model_dump(by_alias=True)
        payload[TIMESTAMP_FIELD] = timestamp_ms
        return payload
