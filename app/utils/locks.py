"""
In-process keyed locks.

Serializes the booking check-then-insert per unit inside one process. On
PostgreSQL the row locks taken by the ledger extend the same ordering across
processes; on SQLite this registry is the only guard, which is enough for a
single-process deployment.
"""

import threading
import time
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timed out after {timeout}s waiting for lock '{key}'")
        self.key = key
        self.timeout = timeout


class KeyedLock:
    """Registry of re-entrant locks addressed by string keys"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[str], timeout: float = 10.0):
        """
        Hold every key for the duration of the block.

        Keys are taken in sorted order so two callers sharing keys can't
        deadlock. Raises LockTimeout if any key can't be taken in time;
        keys already taken are released.
        """
        ordered = sorted(set(keys))
        acquired: List[threading.RLock] = []
        deadline = time.monotonic() + timeout
        try:
            for key in ordered:
                lock = self._lock_for(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not lock.acquire(timeout=remaining):
                    logger.warning(f"Lock contention on {key}: gave up after {timeout}s")
                    raise LockTimeout(key, timeout)
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Process-wide registry used by the booking ledger
booking_locks = KeyedLock()
