"""In-process cache of the base ranking per group.

Holds a snapshot only; the ranking itself is always recomputed from raw
predictions on a miss. Writers call ``invalidate`` after their transaction
commits so a snapshot is never stale for more than one write.
"""
from __future__ import annotations

import threading
import time as _time
from typing import Any, Callable, Iterable

from app.core.config import settings
from app.core.event_log import log_ranking_cache_hit, log_ranking_cache_invalidated, log_ranking_cache_miss


class RankingCache:
    def __init__(self, ttl_seconds: float = 120.0) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[int, tuple[float, Any]] = {}
        self._generations: dict[int, int] = {}
        self._lock = threading.Lock()

    def get(self, group_id: int) -> Any | None:
        with self._lock:
            cached = self._entries.get(group_id)
        if cached is None:
            return None
        ts, value = cached
        if (_time.monotonic() - ts) >= self.ttl_seconds:
            return None
        return value

    def generation(self, group_id: int) -> int:
        with self._lock:
            return self._generations.get(group_id, 0)

    def set(self, group_id: int, value: Any, *, generation: int | None = None) -> bool:
        """Store a snapshot unless the group was invalidated since ``generation``."""
        with self._lock:
            if generation is not None and self._generations.get(group_id, 0) != generation:
                return False
            self._entries[group_id] = (_time.monotonic(), value)
            return True

    def get_or_set(self, group_id: int, factory: Callable[[], Any]) -> Any:
        value = self.get(group_id)
        if value is not None:
            log_ranking_cache_hit(group_id)
            return value
        log_ranking_cache_miss(group_id)
        generation = self.generation(group_id)
        value = factory()
        self.set(group_id, value, generation=generation)
        return value

    def invalidate(self, group_ids: Iterable[int]) -> None:
        ids = list(group_ids)
        with self._lock:
            for group_id in ids:
                self._entries.pop(group_id, None)
                self._generations[group_id] = self._generations.get(group_id, 0) + 1
        log_ranking_cache_invalidated(ids)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


ranking_cache = RankingCache(ttl_seconds=settings.ranking_cache_ttl_seconds)


def invalidate_ranking_cache(group_ids: Iterable[int]) -> None:
    ranking_cache.invalidate(group_ids)
