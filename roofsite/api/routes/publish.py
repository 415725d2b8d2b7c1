"""
Site publishing endpoint

Publishes a site for its owner after checking the subscription plan's
published-site allowance.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends
from loguru import logger

from roofsite.api.dependencies import enforce_rate_limit, get_rate_limits, get_site_db, get_user_id
from roofsite.api.models import PublishedSite, PublishRequest, PublishResponse
from roofsite.ratelimit import PORTAL, RateLimitPolicy
from roofsite.storage import SiteDatabase
from roofsite.utils.errors import PublishError

router = APIRouter(prefix="/functions/v1", tags=["publish"])

DEFAULT_DOMAIN_TYPE = "subdomain"

# None means unlimited
PLAN_LIMITS: Dict[str, Optional[int]] = {
    "basic": 1,
    "pro": None,
}


def plan_limit(plan: str) -> Optional[int]:
    """Published-site allowance for a plan; unknown plans get the basic allowance"""
    return PLAN_LIMITS.get(plan, PLAN_LIMITS["basic"])


def _limit_message(plan: str, limit: int) -> str:
    plural = "s" if limit > 1 else ""
    return f"Site limit reached. Your {plan} plan allows {limit} published site{plural}."


@router.post("/publish-site", response_model=PublishResponse)
async def publish_site(
    request: PublishRequest,
    user_id: Optional[str] = Depends(get_user_id),
    rate_limits: Dict[str, RateLimitPolicy] = Depends(get_rate_limits),
    site_db: SiteDatabase = Depends(get_site_db),
):
    """
    Publish (or re-publish) one of the caller's sites.

    Raises:
        PublishError: with the status and machine-readable code of the
            failed check
    """
    if not user_id:
        logger.warning("Publish rejected - no authenticated user")
        raise PublishError("Authentication required", status_code=401, code="UNAUTHORIZED")

    enforce_rate_limit(
        rate_limits[PORTAL],
        user_id,
        "Too many requests. Please try again later.",
        code="RATE_LIMITED",
    )

    if not request.siteId:
        raise PublishError("Site ID is required", status_code=400, code="INVALID_REQUEST")

    logger.info(f"Publish request - site={request.siteId}, domain={request.domain}, domainType={request.domainType}")

    site = await site_db.get_site(request.siteId)
    if site is None:
        logger.warning(f"Site not found - site={request.siteId}")
        raise PublishError("Site not found", status_code=404, code="NOT_FOUND")

    if site["user_id"] != user_id:
        logger.warning(f"Unauthorized publish attempt - site={request.siteId}, owner={site['user_id']}, caller={user_id}")
        raise PublishError("You do not own this site", status_code=403, code="FORBIDDEN")

    subscription = await site_db.get_subscription(user_id)
    if not subscription or subscription["status"] != "active":
        logger.info(f"No active subscription - user={user_id}")
        raise PublishError(
            "Active subscription required to publish sites",
            status_code=403,
            code="NO_SUBSCRIPTION",
        )

    plan = subscription["plan"]
    limit = plan_limit(plan)
    logger.debug(f"Subscription verified - plan={plan}, limit={limit}")

    if site["published"]:
        logger.info(f"Re-publishing existing site - site={request.siteId}")
    elif limit is not None:
        current_count = await site_db.count_published_sites(user_id)
        if current_count >= limit:
            logger.info(f"Site limit reached - user={user_id}, count={current_count}, limit={limit}, plan={plan}")
            raise PublishError(
                _limit_message(plan, limit),
                status_code=403,
                code="LIMIT_REACHED",
                extra={"currentCount": current_count, "limit": limit, "plan": plan},
            )

    updated = await site_db.publish_site(
        request.siteId,
        domain=request.domain or None,
        domain_type=request.domainType or DEFAULT_DOMAIN_TYPE,
    )
    logger.info(f"Site published - site={updated['id']}, domain={updated['domain']}")

    return PublishResponse(
        success=True,
        site=PublishedSite(
            id=updated["id"],
            domain=updated["domain"],
            published=updated["published"],
            published_at=updated["published_at"],
        ),
    )
