"""Injected cache for computed ledgers.

Services receive a cache instance; nothing is cached at module level.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol


class LedgerCache(Protocol):
    """Minimal key/value cache with per-entry TTL."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def invalidate(self, key: str) -> None: ...


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class InMemoryLedgerCache:
    """Process-local TTL cache, one instance per application."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
