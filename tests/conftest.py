"""Shared fixtures for stats agent tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest


def make_stats_frame(
    cpu_usage: int = 200,
    precpu_usage: int = 100,
    system_usage: int = 2000,
    presystem_usage: int = 1000,
    num_cpus: int = 4,
    memory_usage: int = 256,
    memory_limit: int = 1024,
    memory_max_usage: int = 512,
) -> dict[str, Any]:
    """Create a decoded Docker stats frame."""
    return {
        "read": "2024-01-01T00:00:01.000000000Z",
        "preread": "2024-01-01T00:00:00.000000000Z",
        "cpu_stats": {
            "cpu_usage": {
                "total_usage": cpu_usage,
                "percpu_usage": [cpu_usage // max(num_cpus, 1)] * num_cpus,
            },
            "system_cpu_usage": system_usage,
            "online_cpus": num_cpus,
        },
        "precpu_stats": {
            "cpu_usage": {
                "total_usage": precpu_usage,
                "percpu_usage": [precpu_usage // max(num_cpus, 1)] * num_cpus,
            },
            "system_cpu_usage": presystem_usage,
            "online_cpus": num_cpus,
        },
        "memory_stats": {
            "usage": memory_usage,
            "max_usage": memory_max_usage,
            "limit": memory_limit,
        },
    }


@pytest.fixture
def stats_frame() -> Callable[..., dict[str, Any]]:
    """Factory for decoded Docker stats frames."""
    return make_stats_frame
