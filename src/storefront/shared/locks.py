"""In-process locks keyed by a resource name.

Used to serialize read-modify-write cycles on one cart (or one cart owner)
when several requests hit the same process at once. The HTTP handlers are
plain functions that FastAPI runs on its thread pool, so concurrent requests
really do contend here. Across processes the aggregate version check on save
is the guard: a save based on a stale cart is rejected.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


cart_locks = KeyedLock()
