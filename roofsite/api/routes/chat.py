"""
Chat streaming endpoint

Proxies the conversation to the language model with a mode-specific system
prompt and relays tokens as they arrive, framed as chat-completions
streaming events and closed with ``data: [DONE]``.
"""

from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from loguru import logger

from roofsite.api.dependencies import (
    enforce_rate_limit,
    get_caller_identity,
    get_chat_model,
    get_rate_limits,
)
from roofsite.chat.models import ChatMessage, ChatRequest, site_config_issues
from roofsite.chat.modes import ChatMode, resolve_mode
from roofsite.chat.sse import DONE_EVENT, format_delta
from roofsite.llm.client import upstream_status
from roofsite.llm.response_utils import extract_text_from_response
from roofsite.ratelimit import CHAT, RateLimitPolicy

router = APIRouter(prefix="/functions/v1", tags=["chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def build_prompt_messages(mode: ChatMode, messages: List[ChatMessage]) -> List[BaseMessage]:
    """System prompt for the mode followed by the transcript"""
    prompt: List[BaseMessage] = [SystemMessage(content=mode.system_prompt())]
    for message in messages:
        if message.role == "user":
            prompt.append(HumanMessage(content=message.content))
        else:
            prompt.append(AIMessage(content=message.content))
    return prompt


def upstream_error_response(error: BaseException, failure_message: str = "Failed to get AI response") -> JSONResponse:
    """Map a provider failure that happened before streaming began"""
    status = upstream_status(error)
    logger.error(f"AI provider error: status={status}, error={error}")

    if status == 429:
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded. Please wait a moment and try again."},
        )
    if status == 402:
        return JSONResponse(
            status_code=402,
            content={"error": "AI credits exhausted. Please add credits to continue."},
        )
    return JSONResponse(status_code=500, content={"error": failure_message})


async def relay_tokens(first: Optional[Any], chunks: AsyncIterator[Any]) -> AsyncIterator[str]:
    """
    Re-frame model chunks as stream events.

    Yields:
        One ``data:`` event per non-empty token, then the [DONE] event
    """
    total_tokens = 0
    try:
        if first is not None:
            text = extract_text_from_response(first)
            if text:
                total_tokens += 1
                yield format_delta(text)

        async for chunk in chunks:
            text = extract_text_from_response(chunk)
            if not text:
                continue
            total_tokens += 1
            yield format_delta(text)
    except Exception:
        # Status is already sent; end the stream cleanly and keep the trace
        logger.exception("Chat stream interrupted by provider error")

    logger.info(f"Chat stream completed - tokens={total_tokens}")
    yield DONE_EVENT


@router.post("/chat")
async def chat_stream(
    request: ChatRequest,
    identity: str = Depends(get_caller_identity),
    rate_limits: Dict[str, RateLimitPolicy] = Depends(get_rate_limits),
    llm: BaseChatModel = Depends(get_chat_model),
):
    """
    Stream the assistant's reply for a conversation turn.

    Request body: ``{messages, mode?, currentConfig?}``. Edit mode uses
    ``currentConfig`` as the document to modify; without it the turn runs as
    onboarding.

    Returns:
        StreamingResponse with text/event-stream, or a JSON error
        (429 / 402 / 500) when the provider fails before the first token
    """
    enforce_rate_limit(
        rate_limits[CHAT],
        identity,
        "Rate limit exceeded. Please wait a moment and try again.",
    )

    mode = resolve_mode(request.mode, request.currentConfig)
    if request.currentConfig is not None:
        issues = site_config_issues(request.currentConfig)
        if issues:
            logger.debug(f"Current config departs from the site schema: {issues[:5]}")
    logger.info(f"Processing chat request - mode={mode.name}, messages={len(request.messages)}, caller={identity}")

    chunks = llm.astream(build_prompt_messages(mode, request.messages)).__aiter__()

    # Pull the first token before committing to a 200 so provider errors keep their status
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = None
    except Exception as e:
        return upstream_error_response(e)

    return StreamingResponse(
        relay_tokens(first, chunks),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
