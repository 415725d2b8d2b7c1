"""
LLM response utilities for handling multi-format model outputs.

Supports both:
- Simple string responses (gpt-4o-mini, gpt-4, etc.)
- Structured content blocks (reasoning models)
"""

import json
import re
from typing import Any
from loguru import logger

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def extract_text_from_response(response: Any) -> str:
    """
    Extract text content from LLM response (handles all formats).

    Supports:
    - Simple string: "text here"
    - Structured blocks: [{'type': 'reasoning', ...}, {'type': 'text', 'text': '...'}]
    - LangChain AIMessage / AIMessageChunk with content attribute

    Args:
        response: LLM response (AIMessage, chunk, str, or list)

    Returns:
        Extracted text content as string
    """
    content = response.content if hasattr(response, "content") else response

    if not content:
        return ""

    if isinstance(content, str):
        return content

    if isinstance(content, list):
        text_parts = []
        for block in content:
            if isinstance(block, dict):
                if block.get("type") == "text" and "text" in block:
                    text_parts.append(block["text"])
                elif "text" in block and block.get("type") != "reasoning":
                    text_parts.append(block["text"])
            elif isinstance(block, str):
                text_parts.append(block)

        result = "".join(text_parts)
        if result:
            return result

        content_preview = str(content)[:200]
        logger.warning(f"No text blocks found in structured response: {content_preview}")
        return ""

    return str(content)


def parse_json_content(text: str) -> Any:
    """
    Parse model output as JSON, tolerating markdown code fences.

    Output that still isn't JSON is returned as ``{"raw": text}``.
    """
    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse model output as JSON: {text[:200]}")
        return {"raw": text}
