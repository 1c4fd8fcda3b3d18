"""In-memory TTL cache with single-flight computation."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Hashable

import structlog

log = structlog.get_logger("cache")


class PredictionCache:
    """Dict + monotonic clock TTL cache, owned by one coordinator.

    ``get_or_compute`` collapses concurrent misses on the same key into a
    single computation; late callers await the in-flight task.
    """

    def __init__(self, ttl_seconds: float = 30.0) -> None:
        self._ttl = ttl_seconds
        self._store: dict[Hashable, tuple[float, Any]] = {}
        self._inflight: dict[Hashable, asyncio.Task] = {}

    def get(self, key: Hashable) -> Any | None:
        """Return cached value or ``None`` if missing / expired."""
        entry = self._store.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.monotonic() - ts > self._ttl:
            del self._store[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store *value* under *key* with current timestamp."""
        self._store[key] = (time.monotonic(), value)

    def invalidate(self, key: Hashable) -> None:
        """Remove a single key (no-op if absent)."""
        self._store.pop(key, None)

    def clear(self) -> None:
        """Drop all entries."""
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    async def get_or_compute(
        self,
        key: Hashable,
        factory: Callable[[], Awaitable[Any]],
        should_cache: Callable[[Any], bool] | None = None,
    ) -> Any:
        cached = self.get(key)
        if cached is not None:
            log.debug("cache_hit", key=repr(key))
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute(key, factory, should_cache))
            self._inflight[key] = task
        else:
            log.debug("cache_join_inflight", key=repr(key))
        # shield so one cancelled waiter does not cancel the shared computation
        return await asyncio.shield(task)

    async def _compute(
        self,
        key: Hashable,
        factory: Callable[[], Awaitable[Any]],
        should_cache: Callable[[Any], bool] | None,
    ) -> Any:
        try:
            value = await factory()
            if should_cache is None or should_cache(value):
                self.set(key, value)
            return value
        finally:
            self._inflight.pop(key, None)
