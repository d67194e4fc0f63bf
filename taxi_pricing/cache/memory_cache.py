from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple


class MemoryTTLCache:
    """
    Process-local TTL cache with LRU eviction.
    Values are stored whole (one dict assignment), so a reader never sees a
    partially written entry. Concurrent writers for the same key: last write wins.
    """

    def __init__(
        self,
        ttl_sec: float,
        maxsize: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_sec = ttl_sec
        self.maxsize = maxsize
        self._clock = clock
        self._entries: OrderedDict[str, Tuple[Any, float]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        try:
            self._entries.move_to_end(key)
        except KeyError:
            pass
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock() + self.ttl_sec)
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)

    def stats(self) -> dict[str, float | int]:
        requests = self.hits + self.misses
        return {
            "backend": "memory",
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / requests if requests > 0 else 0.0,
            "size": len(self._entries),
        }
