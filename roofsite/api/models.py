"""
Pydantic models for the HTTP API

Lead and publish bodies are deliberately loose: their validation rules are
checked in the route so failures come back as 400 with a readable message.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class BlogRequest(BaseModel):
    """Blog generation request"""
    action: str
    businessName: Optional[str] = None
    location: Optional[str] = None
    serviceAreas: Optional[List[str]] = None
    services: Optional[List[str]] = None
    existingTopics: Optional[List[str]] = None
    topic: Optional[str] = None
    title: Optional[str] = None
    keywords: Optional[List[str]] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "action": "suggest_topics",
                    "businessName": "ABC Roofing",
                    "location": "Springfield, IL",
                    "serviceAreas": ["Springfield", "Chatham"],
                    "services": ["Roof Repairs", "New Installation"],
                },
                {
                    "action": "generate_post",
                    "businessName": "ABC Roofing",
                    "topic": "Preparing your roof for winter",
                    "keywords": ["winter roof", "ice dams"],
                },
            ]
        }
    }


class LeadRequest(BaseModel):
    """Quote request submitted from a published site"""
    site_id: Optional[Any] = None
    name: Optional[Any] = None
    phone: Optional[Any] = None
    email: Optional[Any] = None
    message: Optional[Any] = None
    source: Optional[str] = None


class LeadResponse(BaseModel):
    success: bool
    id: str


class PublishRequest(BaseModel):
    siteId: Optional[str] = None
    domain: Optional[str] = None
    domainType: Optional[Literal["subdomain", "purchased", "existing"]] = None


class PublishedSite(BaseModel):
    id: str
    domain: Optional[str] = None
    published: bool
    published_at: Optional[str] = None


class PublishResponse(BaseModel):
    success: bool
    site: PublishedSite


class HealthResponse(BaseModel):
    """
    Health check response

    Attributes:
        status: Service health status
        service: Service name
        version: API version
    """
    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
