"""Set of container ids currently owned by a stats consumer.

The supervisor is the only caller of ``add`` and each consumer only discards
its own id, so per-key operations never race. The lock protects the set
itself while reconciliation reads it and other consumers remove their keys.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator


class TrackedContainers:
    """Thread-safe presence set of monitored container ids."""

    def __init__(self) -> None:
        self._ids: set[str] = set()
        self._lock = threading.Lock()

    def add(self, container_id: str) -> bool:
        """Mark a container as tracked.

        Returns:
            False if it was already tracked
        """
        with self._lock:
            if container_id in self._ids:
                return False
            self._ids.add(container_id)
            return True

    def discard(self, container_id: str) -> None:
        with self._lock:
            self._ids.discard(container_id)

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._ids)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return container_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())
