"""Process-local locks keyed by (client, year).

Budget documents are loaded, mutated in memory and written back; holding the
key's lock across that cycle stops two requests in this process from losing
each other's update. Ledger writes take the same key, which also serialises
refund validation with the append that follows it.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLocks:
    """Hand out one re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *key: Hashable) -> Iterator[None]:
        with self._lock_for(key):
            yield


BUDGET_LOCKS = KeyedLocks()
