"""
Chat layer - conversation modes, token stream format, stream parser and client
"""

from roofsite.chat.models import ChatMessage, ChatRequest, SiteConfig, merge_site_config, site_config_issues
from roofsite.chat.modes import ChatMode, EditMode, OnboardingMode, resolve_mode
from roofsite.chat.sse import DONE_EVENT, format_delta
from roofsite.chat.tags import TagScanner, clean_display_text, parse_change_list
from roofsite.chat.parser import (
    ChatStreamParser,
    ChangesDetected,
    ConfigExtracted,
    StreamDone,
    TextUpdated,
)
from roofsite.chat.client import SiteChatSession, TurnResult, TurnState

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "SiteConfig",
    "merge_site_config",
    "site_config_issues",
    "ChatMode",
    "EditMode",
    "OnboardingMode",
    "resolve_mode",
    "DONE_EVENT",
    "format_delta",
    "TagScanner",
    "clean_display_text",
    "parse_change_list",
    "ChatStreamParser",
    "ChangesDetected",
    "ConfigExtracted",
    "StreamDone",
    "TextUpdated",
    "SiteChatSession",
    "TurnResult",
    "TurnState",
]
