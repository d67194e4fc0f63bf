from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisTTLCache:
    """Shared TTL cache in Redis; values must be JSON-serializable."""

    def __init__(self, client: redis.Redis, prefix: str, ttl_sec: int):
        self.client = client
        self.prefix = prefix
        self.ttl_sec = int(ttl_sec)

    @classmethod
    def from_url(cls, url: str, prefix: str, ttl_sec: int) -> "RedisTTLCache":
        return cls(redis.from_url(url, decode_responses=True), prefix, ttl_sec)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(self._key(key))
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("dropping unreadable cache entry %s", self._key(key))
            return None

    def set(self, key: str, value: Any) -> None:
        # SET ... EX writes value and expiry in one command
        self.client.set(self._key(key), json.dumps(value), ex=self.ttl_sec)

    def stats(self) -> dict[str, Any]:
        return {"backend": "redis", "prefix": self.prefix}
