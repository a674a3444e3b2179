"""Per-invocation memoization of git query results."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

QueryKey = tuple[str, ...]
T = TypeVar("T")


class QueryCache(Generic[T]):
    """Results of identical git queries, keyed by their exact argument tuple.

    Owned by a single repository handle and discarded with it. A failed run
    stores nothing, so the next caller runs the query again.
    """

    def __init__(self) -> None:
        self._data: dict[QueryKey, T] = {}
        self._lock = threading.Lock()
        self._pending: dict[QueryKey, threading.Lock] = {}
        self.hits = 0

    def get(self, key: QueryKey) -> T | None:
        with self._lock:
            value = self._data.get(key)
            if value is not None:
                self.hits += 1
            return value

    def put(self, key: QueryKey, value: T) -> None:
        with self._lock:
            self._data[key] = value

    def get_or_run(self, key: QueryKey, run: Callable[[], T]) -> T:
        """Return the cached result for *key*, running *run* at most once.

        Concurrent callers asking for the same key wait on a per-key lock
        while the first one runs the query; different keys run in parallel.
        """
        with self._lock:
            if key in self._data:
                self.hits += 1
                return self._data[key]
            key_lock = self._pending.setdefault(key, threading.Lock())
        with key_lock:
            cached = self.get(key)
            if cached is not None:
                return cached
            value = run()
            with self._lock:
                self._data[key] = value
                self._pending.pop(key, None)
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._pending.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data
