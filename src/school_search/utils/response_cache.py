"""Time-to-live cache for directory responses keyed by (endpoint, params)."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import json
import time
from typing import Any


DEFAULT_TTL_SECONDS = 15 * 60


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class ResponseCache:
    """In-memory TTL cache.

    Stale entries are treated as misses and overwritten by the next ``put``;
    there is no eviction sweep, so the map grows for the life of the engine.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, *, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(endpoint: str, params: Mapping[str, Any]) -> str:
        return f"{endpoint}-{json.dumps(dict(params), sort_keys=True, default=str)}"

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.timestamp < self.ttl:
            self.hits += 1
            return entry.data
        self.misses += 1
        return None

    def put(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, float | int]:
        total = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / total if total else 0.0,
            "ttl_seconds": self.ttl,
        }
