"""Publishing module - metric delivery to the sink."""

from __future__ import annotations

from stats_agent.publishing.publisher import HttpMetricPublisher

__all__ = ["HttpMetricPublisher"]
