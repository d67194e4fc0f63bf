from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Tuple


@dataclass
class Bucket:
    tokens: float
    last_refill: float


class TokenBucketRateLimiter:
    """
    Per-client token bucket with continuous refill.
    ``capacity`` tokens are regained over ``window_sec``; a bucket never holds
    more than ``capacity`` nor less than 0 tokens.

    At most ``max_keys`` buckets are tracked. When a new client would exceed
    that, buckets that have refilled completely are swept (they hold no state
    a fresh bucket wouldn't), then the least recently used ones are evicted.
    """

    def __init__(
        self,
        capacity: int = 30,
        window_sec: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 10_000,
    ):
        self.capacity = capacity
        self.window_sec = window_sec
        self.max_keys = max(1, max_keys)
        self._rate = capacity / window_sec  # tokens per second
        self._clock = clock
        self._buckets: OrderedDict[str, Bucket] = OrderedDict()
        self._lock = threading.Lock()

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _level(self, bucket: Bucket, now: float) -> float:
        elapsed = max(0.0, now - bucket.last_refill)
        return min(float(self.capacity), bucket.tokens + elapsed * self._rate)

    def _prune(self, now: float) -> None:
        full = [k for k, b in self._buckets.items() if self._level(b, now) >= self.capacity]
        for key in full:
            del self._buckets[key]
        # evict down to 90% so the sweep runs once per batch of new clients
        low_water = max(1, self.max_keys * 9 // 10)
        while len(self._buckets) > low_water:
            self._buckets.popitem(last=False)

    def _refill(self, key: str, now: float) -> Bucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            if len(self._buckets) >= self.max_keys:
                self._prune(now)
            bucket = Bucket(tokens=float(self.capacity), last_refill=now)
            self._buckets[key] = bucket
            return bucket
        self._buckets.move_to_end(key)
        bucket.tokens = self._level(bucket, now)
        bucket.last_refill = max(bucket.last_refill, now)
        return bucket

    def acquire(self, key: str) -> Tuple[bool, float]:
        """Take one token. Returns (allowed, retry_after_seconds)."""
        with self._lock:
            bucket = self._refill(key, self._clock())
            if bucket.tokens < 1:
                return False, (1 - bucket.tokens) / self._rate
            bucket.tokens -= 1
            return True, 0.0

    def available(self, key: str) -> float:
        with self._lock:
            return self._refill(key, self._clock()).tokens
