from __future__ import annotations

from typing import Any, Optional, Protocol


class Cache(Protocol):
    """Key -> JSON-compatible value store with a fixed TTL per entry."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def stats(self) -> dict[str, Any]: ...
