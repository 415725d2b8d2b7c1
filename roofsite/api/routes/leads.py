"""
Lead intake endpoint

Public endpoint behind the quote form on every published site. Rate limited
per client IP since visitors are not signed in.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from roofsite.api.dependencies import enforce_rate_limit, get_client_ip, get_rate_limits, get_site_db
from roofsite.api.models import LeadRequest, LeadResponse
from roofsite.ratelimit import LEAD, RateLimitPolicy
from roofsite.storage import SiteDatabase
from roofsite.utils.errors import LeadValidationError

router = APIRouter(prefix="/functions/v1", tags=["leads"])

DEFAULT_SOURCE = "quote_form"

# field -> (max length, error message)
FIELD_LIMITS = {
    "name": (100, "Invalid name"),
    "phone": (20, "Invalid phone"),
    "email": (255, "Invalid email"),
    "message": (1000, "Invalid message"),
}


def _check_field(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    max_length, error = FIELD_LIMITS[field]
    if not isinstance(value, str) or len(value) > max_length:
        raise LeadValidationError(error)
    return value.strip() or None


def validate_lead(request: LeadRequest) -> Dict[str, Optional[str]]:
    """
    Check a lead submission and return trimmed fields.

    Raises:
        LeadValidationError: on missing required fields or bad field values
    """
    if not request.site_id or not request.name or not request.phone:
        raise LeadValidationError("Missing required fields: site_id, name, phone")

    lead = {field: _check_field(getattr(request, field), field) for field in FIELD_LIMITS}
    if not lead["name"] or not lead["phone"]:
        raise LeadValidationError("Missing required fields: site_id, name, phone")
    lead["site_id"] = str(request.site_id)
    lead["source"] = request.source or DEFAULT_SOURCE
    return lead


@router.post("/submit-lead", response_model=LeadResponse)
async def submit_lead(
    request: LeadRequest,
    client_ip: str = Depends(get_client_ip),
    rate_limits: Dict[str, RateLimitPolicy] = Depends(get_rate_limits),
    site_db: SiteDatabase = Depends(get_site_db),
):
    """
    Store a quote request for a published site.

    Returns:
        ``{success, id}`` with the remaining allowance in X-RateLimit-Remaining
    """
    result = enforce_rate_limit(
        rate_limits[LEAD],
        client_ip,
        "Too many requests. Please wait a moment and try again.",
    )

    lead = validate_lead(request)

    site = await site_db.get_site(lead["site_id"])
    if site is None or not site["published"]:
        raise LeadValidationError("Invalid site")

    lead_id = await site_db.insert_lead(
        site_id=lead["site_id"],
        name=lead["name"],
        phone=lead["phone"],
        email=lead["email"],
        message=lead["message"],
        source=lead["source"],
    )
    logger.info(f"Lead submitted - site={lead['site_id']}, lead={lead_id}, source={lead['source']}")

    return JSONResponse(
        content=LeadResponse(success=True, id=lead_id).model_dump(),
        headers={"X-RateLimit-Remaining": str(result.remaining)},
    )
