"""
Per-endpoint rate limit policies

Each endpoint purpose gets its own limiter and store; counters are never
shared between purposes.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional
from loguru import logger

from roofsite.config.settings import Settings, settings as default_settings
from roofsite.ratelimit.limiter import FixedWindowRateLimiter, RateLimitConfig, RateLimitResult

CHAT = "chat"
BLOG = "blog"
LEAD = "lead"
PORTAL = "portal"


@dataclass
class RateLimitPolicy:
    """A named limit bound to its own limiter"""
    name: str
    config: RateLimitConfig
    limiter: FixedWindowRateLimiter

    def key_for(self, identity: str) -> str:
        return f"{self.name}:{identity}"

    def check(self, identity: str) -> RateLimitResult:
        result = self.limiter.check(self.key_for(identity), self.config)
        if not result.allowed:
            logger.info(f"Rate limit exceeded - policy={self.name}, identity={identity}, retry_after={result.retry_after}s")
        return result


def build_rate_limit_policies(
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], int]] = None,
) -> Dict[str, RateLimitPolicy]:
    """
    Build the four endpoint policies, each with an isolated in-memory store.

    Args:
        settings: Settings to read limits from (defaults to the global settings)
        clock: Optional clock override shared by all limiters (tests)

    Returns:
        Dict mapping policy name to RateLimitPolicy
    """
    s = settings or default_settings
    limits = {
        CHAT: RateLimitConfig(s.chat_rate_limit_requests, s.chat_rate_limit_window_ms),
        BLOG: RateLimitConfig(s.blog_rate_limit_requests, s.blog_rate_limit_window_ms),
        LEAD: RateLimitConfig(s.lead_rate_limit_requests, s.lead_rate_limit_window_ms),
        PORTAL: RateLimitConfig(s.portal_rate_limit_requests, s.portal_rate_limit_window_ms),
    }
    return {
        name: RateLimitPolicy(
            name=name,
            config=config,
            limiter=FixedWindowRateLimiter(clock=clock, sweep_threshold=s.rate_limit_sweep_threshold),
        )
        for name, config in limits.items()
    }
