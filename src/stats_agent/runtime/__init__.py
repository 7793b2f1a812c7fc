"""Runtime module - container runtime access."""

from __future__ import annotations

from stats_agent.runtime.discovery import DockerDiscoveryClient

__all__ = ["DockerDiscoveryClient"]
