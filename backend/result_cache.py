"""
In-memory TTL cache for professor lookup results.

Entries are only evicted when read after they expire; there is no
background sweep. All access happens on the event loop thread, so no lock
is taken around get/evict/set.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry(Generic[V]):
    key: str
    value: V
    stored_at: float


class ResultCache(Generic[V]):
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry[V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl_seconds:
            del self._entries[key]
            logger.debug("Evicted stale cache entry %s", key)
            return None
        return entry.value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()


def profile_cache_key(name: str, include_all: bool) -> str:
    return f"{name.strip().lower()}|all:{1 if include_all else 0}"


def cache_stats(cache: ResultCache[Any]) -> Dict[str, Any]:
    return {"entries": len(cache), "ttl_seconds": cache.ttl_seconds}
