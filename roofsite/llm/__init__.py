"""
LLM layer - client factory and response utilities
"""

from roofsite.llm.client import create_llm, upstream_status
from roofsite.llm.response_utils import (
    extract_text_from_response,
    parse_json_content,
)

__all__ = [
    "create_llm",
    "upstream_status",
    "extract_text_from_response",
    "parse_json_content",
]
