"""Per-vehicle locks serializing rental state transitions inside one process."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class VehicleLocks:
    """Registry handing out one lock per vehicle id.

    Locks are created lazily and kept for the life of the process; the number
    of vehicles in a fleet is small enough that they are never evicted.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._lock_for(key)
        with lock:
            yield


vehicle_locks = VehicleLocks()
