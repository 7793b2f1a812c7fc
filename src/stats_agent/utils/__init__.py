"""Utility modules."""

from __future__ import annotations

from stats_agent.utils.logging import setup_logging

__all__ = ["setup_logging"]
