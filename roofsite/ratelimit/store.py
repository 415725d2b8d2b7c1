"""
Rate limit storage

The limiter talks to its backing store through ``RateLimitStore`` so tests can
use an isolated map and a deployment can swap in a shared counter (e.g. a
key-value store with atomic increment and TTL) without touching the algorithm.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class RateLimitEntry:
    """Request count for one key inside its current window"""
    count: int
    window_reset_at: int  # epoch milliseconds


class RateLimitStore(ABC):
    """Interface for rate limit entry storage"""

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitEntry]:
        ...

    @abstractmethod
    def set(self, key: str, entry: RateLimitEntry) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def sweep(self, now_ms: int) -> int:
        """Delete entries whose window already expired (now >= window_reset_at). Returns number removed."""

    @abstractmethod
    def size(self) -> int:
        ...


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store.

    Not shared between workers or across restarts, so limits are only
    approximate when the service runs as several instances.
    """

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self, now_ms: int) -> int:
        expired = [k for k, v in self._entries.items() if now_ms >= v.window_reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
