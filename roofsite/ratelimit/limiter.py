"""
Fixed-window rate limiter

Counts requests per key inside a window that starts at the key's first
request and lasts ``window_ms``. The window is never extended by later
requests; once it expires the next request opens a fresh one. Bursts of up to
twice the limit are possible around a window boundary.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional
from loguru import logger

from roofsite.ratelimit.store import InMemoryRateLimitStore, RateLimitEntry, RateLimitStore

DEFAULT_SWEEP_THRESHOLD = 10_000


def system_clock_ms() -> int:
    """Current wall clock time in epoch milliseconds"""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitConfig:
    """Limit for one endpoint purpose"""
    max_requests: int
    window_ms: int

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {self.max_requests}")
        if self.window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {self.window_ms}")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single admission check"""
    allowed: bool
    remaining: int
    reset_in: int  # milliseconds until the window resets

    @property
    def retry_after(self) -> int:
        """Seconds until the window resets, rounded up"""
        return math.ceil(self.reset_in / 1000)


class FixedWindowRateLimiter:
    """
    Admission control over an injected store and clock.

    Example:
        limiter = FixedWindowRateLimiter()
        result = limiter.check("chat:user-1", RateLimitConfig(20, 60_000))
        if not result.allowed:
            ...  # reject with result.retry_after
    """

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Callable[[], int]] = None,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
    ):
        """
        Args:
            store: Entry storage (defaults to a fresh in-memory store)
            clock: Callable returning epoch milliseconds (defaults to wall clock)
            sweep_threshold: Store size above which expired entries are swept
        """
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock or system_clock_ms
        self.sweep_threshold = sweep_threshold

    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        """
        Admit or deny one request for ``key``.

        A denied request does not count against the window.
        """
        now = self.clock()

        if self.store.size() > self.sweep_threshold:
            removed = self.store.sweep(now)
            logger.debug(f"Rate limit store swept: removed {removed} expired entries")

        entry = self.store.get(key)

        if entry is None or now >= entry.window_reset_at:
            self.store.set(key, RateLimitEntry(count=1, window_reset_at=now + config.window_ms))
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - 1,
                reset_in=config.window_ms,
            )

        if entry.count >= config.max_requests:
            return RateLimitResult(allowed=False, remaining=0, reset_in=entry.window_reset_at - now)

        entry.count += 1
        self.store.set(key, entry)
        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests - entry.count,
            reset_in=entry.window_reset_at - now,
        )
