"""
Blog content generation endpoint

Two actions:
- suggest_topics: five seasonal topic ideas for the contractor
- generate_post: a complete SEO blog post (rate limited per user)
"""

from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from roofsite.api.dependencies import (
    enforce_rate_limit,
    get_caller_identity,
    get_chat_model,
    get_rate_limits,
)
from roofsite.api.models import BlogRequest
from roofsite.api.routes.chat import upstream_error_response
from roofsite.llm.response_utils import extract_text_from_response, parse_json_content
from roofsite.ratelimit import BLOG, RateLimitPolicy

router = APIRouter(prefix="/functions/v1", tags=["blog"])

SUGGEST_TOPICS = "suggest_topics"
GENERATE_POST = "generate_post"

BLOG_SYSTEM_PROMPT = """You are an expert SEO content writer for the roofing industry. You write engaging, informative blog posts that help roofing contractors attract local customers.

WRITING GUIDELINES:
- 600-900 words
- Markdown formatting with headings (##, ###)
- An introduction that hooks the reader
- Scannable sections with subheadings
- Actionable tips and advice
- Close with a call-to-action that mentions the company
- Professional but approachable tone
- Work local keywords in naturally
- Provide genuine value to homeowners

STRUCTURE:
1. Compelling introduction (2-3 sentences)
2. Main content with 3-4 subheadings
3. Practical tips or actionable advice
4. Conclusion with a soft call-to-action

DO NOT:
- Use excessive exclamation marks
- Be overly salesy or promotional
- Use cliches like "look no further"
- Include placeholder text or [brackets]

When suggesting topics, consider:
- Current season and weather patterns
- Common roofing issues in the area
- Local building codes and regulations
- Energy efficiency trends
- Storm and weather preparedness"""


def season_for_month(month: int) -> str:
    """Season name for a calendar month (1-12), northern hemisphere"""
    if 3 <= month <= 5:
        return "Spring"
    if 6 <= month <= 8:
        return "Summer"
    if 9 <= month <= 11:
        return "Fall"
    return "Winter"


def _join(values, fallback: str) -> str:
    return ", ".join(values) if values else fallback


def build_topics_prompt(request: BlogRequest, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    lines = [
        "Suggest 5 blog post topics for a roofing company with these details:",
        f"- Company: {request.businessName or 'Local Roofing Company'}",
        f"- Location: {request.location or 'the local area'}",
        f"- Service Areas: {_join(request.serviceAreas, 'local communities')}",
        f"- Services: {_join(request.services, 'roof repairs, installations, inspections')}",
        f"- Current Month: {now.strftime('%B')}",
        f"- Current Season: {season_for_month(now.month)}",
    ]
    if request.existingTopics:
        lines.append(f"- Already written about: {', '.join(request.existingTopics)}")
    lines.extend([
        "",
        "Return a JSON array of 5 topic suggestions. Each should have:",
        "- title: Compelling blog title (include location if relevant)",
        "- description: 1-2 sentence summary",
        "- keywords: Array of 3-5 SEO keywords",
        "",
        "Format as valid JSON only, no other text.",
    ])
    return "\n".join(lines)


def build_post_prompt(request: BlogRequest) -> str:
    business = request.businessName or "a roofing company"
    return "\n".join([
        f"Write a blog post for {business} in {request.location or 'the local area'}.",
        "",
        f"Topic: {request.topic or request.title or 'Roof maintenance tips'}",
        f"Target Keywords: {_join(request.keywords, 'roofing, roof repair, local roofer')}",
        f"Services Offered: {_join(request.services, 'roof repairs, installations, inspections')}",
        f"Service Areas: {_join(request.serviceAreas, 'local communities')}",
        "",
        f'Write a complete blog post in markdown format. Include the company name "{business}" '
        "in the conclusion's call-to-action.",
        "",
        "Return valid JSON with:",
        "- title: The blog post title",
        "- content: The full markdown content",
        "- metaDescription: A 150-160 character meta description for SEO",
        "- suggestedSlug: A URL-friendly slug",
    ])


@router.post("/generate-blog")
async def generate_blog(
    request: BlogRequest,
    identity: str = Depends(get_caller_identity),
    rate_limits: Dict[str, RateLimitPolicy] = Depends(get_rate_limits),
    llm: BaseChatModel = Depends(get_chat_model),
):
    """
    Suggest topics or write a post.

    Returns:
        Parsed JSON from the model, or ``{"raw": text}`` when the model did
        not return JSON
    """
    if request.action == GENERATE_POST:
        policy = rate_limits[BLOG]
        enforce_rate_limit(
            policy,
            identity,
            f"Blog generation limit reached. You can generate up to {policy.config.max_requests} posts per hour.",
        )
        user_prompt = build_post_prompt(request)
    elif request.action == SUGGEST_TOPICS:
        user_prompt = build_topics_prompt(request)
    else:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid action. Use 'suggest_topics' or 'generate_post'"},
        )

    logger.info(f"Blog generation request - action={request.action}, business={request.businessName}, location={request.location}")

    try:
        response = await llm.ainvoke([
            SystemMessage(content=BLOG_SYSTEM_PROMPT),
            HumanMessage(content=user_prompt),
        ])
    except Exception as e:
        return upstream_error_response(e, "Failed to generate content")

    content = extract_text_from_response(response)
    if not content:
        return JSONResponse(status_code=500, content={"error": "No content generated"})

    return parse_json_content(content)
