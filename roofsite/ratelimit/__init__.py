"""
Rate limiting - fixed-window limiter, stores and endpoint policies
"""

from roofsite.ratelimit.store import RateLimitEntry, RateLimitStore, InMemoryRateLimitStore
from roofsite.ratelimit.limiter import (
    FixedWindowRateLimiter,
    RateLimitConfig,
    RateLimitResult,
    system_clock_ms,
)
from roofsite.ratelimit.policies import (
    RateLimitPolicy,
    build_rate_limit_policies,
    CHAT,
    BLOG,
    LEAD,
    PORTAL,
)

__all__ = [
    "RateLimitEntry",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "FixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "system_clock_ms",
    "RateLimitPolicy",
    "build_rate_limit_policies",
    "CHAT",
    "BLOG",
    "LEAD",
    "PORTAL",
]
