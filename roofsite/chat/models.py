"""
Conversation and site configuration models

The site configuration is partial by construction: the assistant fills it in
over several turns, so every field is optional and unknown keys are kept.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ChatMessage(BaseModel):
    """One message of the conversation transcript"""
    role: Literal["user", "assistant"]
    content: str


class Service(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


class Credential(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    number: Optional[str] = None


class GalleryItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    before: Optional[str] = None
    after: Optional[str] = None
    caption: Optional[str] = None


class Testimonial(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    text: str
    rating: Optional[Union[int, float]] = None
    location: Optional[str] = None


class BrandColors(BaseModel):
    model_config = ConfigDict(extra="allow")

    primary: Optional[str] = None
    secondary: Optional[str] = None
    accent: Optional[str] = None


class SocialLinks(BaseModel):
    model_config = ConfigDict(extra="allow")

    facebook: Optional[str] = None
    instagram: Optional[str] = None
    google: Optional[str] = None


class SiteConfig(BaseModel):
    """
    Website content for a contractor.

    Field names follow the camelCase keys the templates render, so a config
    round-trips through JSON unchanged.
    """
    model_config = ConfigDict(extra="allow")

    # Business info
    businessName: Optional[str] = None
    tagline: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    # Hero section
    heroHeadline: Optional[str] = None
    heroSubheadline: Optional[str] = None
    heroCta: Optional[str] = None
    heroImage: Optional[str] = None

    # Content
    services: Optional[List[Service]] = None
    about: Optional[str] = None
    aboutImage: Optional[str] = None
    yearEstablished: Optional[str] = None
    serviceAreas: Optional[List[str]] = None
    credentials: Optional[List[Credential]] = None
    gallery: Optional[List[GalleryItem]] = None
    testimonials: Optional[List[Testimonial]] = None

    # Branding
    logo: Optional[str] = None
    colors: Optional[BrandColors] = None
    socialLinks: Optional[SocialLinks] = None

    def to_document(self) -> Dict[str, Any]:
        """Only the fields that were actually provided"""
        return self.model_dump(exclude_unset=True)


def site_config_issues(document: Dict[str, Any]) -> List[str]:
    """
    Where a config document departs from the ``SiteConfig`` schema.

    Advisory only: documents come back from the model as free-form JSON and
    are passed on unchanged whether or not they match.
    """
    try:
        SiteConfig.model_validate(document)
    except ValidationError as e:
        return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
    return []


def merge_site_config(current: Optional[Dict[str, Any]], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge an extracted config into the held one.

    Keys in ``update`` overwrite; list and object values are replaced
    wholesale, never deep-merged.
    """
    merged = dict(current or {})
    merged.update(update)
    return merged


class ChatRequest(BaseModel):
    """Body of the streaming chat endpoint"""
    messages: List[ChatMessage] = Field(..., min_length=1)
    mode: Optional[Literal["onboarding", "edit"]] = None
    currentConfig: Optional[Dict[str, Any]] = None  # free-form; see SiteConfig for the usual shape

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "messages": [{"role": "user", "content": "ABC Roofing"}],
                    "mode": "onboarding",
                },
                {
                    "messages": [{"role": "user", "content": "Change my phone to 555-2222"}],
                    "mode": "edit",
                    "currentConfig": {"businessName": "ABC", "phone": "555-1111"},
                },
            ]
        }
    }
