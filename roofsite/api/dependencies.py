"""
Request-scoped dependencies

Caller identity is trusted from the auth gateway in front of this service,
which validates the session token and forwards the user id in X-User-Id.
"""

from typing import Dict, Optional

from fastapi import Request
from langchain_core.language_models import BaseChatModel

from roofsite.llm.client import create_llm
from roofsite.ratelimit import RateLimitPolicy, RateLimitResult
from roofsite.storage import SiteDatabase
from roofsite.utils.errors import RateLimitExceededError, UpstreamError

ANONYMOUS = "anonymous"


def get_user_id(request: Request) -> Optional[str]:
    """Authenticated user id, if the gateway supplied one"""
    user_id = request.headers.get("x-user-id", "").strip()
    return user_id or None


def get_caller_identity(request: Request) -> str:
    """User id for rate limiting, or "anonymous" """
    return get_user_id(request) or ANONYMOUS


def get_client_ip(request: Request) -> str:
    """Client address as reported by the proxy chain"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return (
        request.headers.get("x-real-ip")
        or request.headers.get("cf-connecting-ip")
        or "unknown"
    )


def get_rate_limits(request: Request) -> Dict[str, RateLimitPolicy]:
    return request.app.state.rate_limits


def get_site_db(request: Request) -> SiteDatabase:
    return request.app.state.site_db


def get_chat_model() -> BaseChatModel:
    """LLM used by chat and blog generation"""
    try:
        return create_llm()
    except (ValueError, ImportError) as e:
        raise UpstreamError(str(e), status_code=500) from e


def enforce_rate_limit(
    policy: RateLimitPolicy,
    identity: str,
    message: str,
    code: Optional[str] = None,
) -> RateLimitResult:
    """
    Count a request against ``policy``.

    Raises:
        RateLimitExceededError: when the window is exhausted
    """
    result = policy.check(identity)
    if not result.allowed:
        raise RateLimitExceededError(message, retry_after=result.retry_after, code=code)
    return result
