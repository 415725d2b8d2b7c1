"""
Streaming chat client

Drives one conversation against the chat endpoint: keeps the transcript,
streams each assistant reply into a placeholder message, and merges
extracted site configs into the session's config.

Turn lifecycle:

    IDLE -> SENDING -> STREAMING -> COMPLETE | STREAMED_NO_CONFIG
                   \\-> ERRORED (placeholder retracted)
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx
from loguru import logger

from roofsite.chat.models import ChatMessage, merge_site_config
from roofsite.chat.modes import ChatMode, EditMode, OnboardingMode
from roofsite.chat.parser import (
    ChangesDetected,
    ChatStreamParser,
    ConfigExtracted,
    StreamDone,
    TextUpdated,
)
from roofsite.config.settings import settings
from roofsite.utils.errors import (
    ChatRequestError,
    ChatTransportError,
    CreditsExhaustedError,
    RateLimitedError,
)


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    STREAMED_NO_CONFIG = "streamed_no_config"
    ERRORED = "errored"


@dataclass
class TurnResult:
    """Outcome of one user turn"""
    state: TurnState
    message: str
    config: Optional[Dict[str, Any]] = None
    changes: List[str] = field(default_factory=list)


def _error_for_status(status_code: int, body: Dict[str, Any]) -> ChatRequestError:
    detail = body.get("error") if isinstance(body, dict) else None
    if status_code == 429:
        return RateLimitedError(
            "Rate limit reached. Please wait a moment and try again.",
            status_code=status_code,
            detail=detail,
        )
    if status_code == 402:
        return CreditsExhaustedError(
            "AI credits exhausted. Please add credits to continue.",
            status_code=status_code,
            detail=detail,
        )
    return ChatRequestError(detail or "Failed to get response", status_code=status_code, detail=detail)


class SiteChatSession:
    """
    One conversation with the site assistant.

    Callbacks fire as the stream is consumed:
        on_message_update(display_text)  - each time the assistant text grows
        on_config_update(config)         - once per turn, with the extracted config
        on_changes_detected(changes)     - edit mode, when a change list arrives
    """

    def __init__(
        self,
        mode: Optional[ChatMode] = None,
        url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None,
        idle_timeout: Optional[float] = None,
        on_message_update: Optional[Callable[[str], None]] = None,
        on_config_update: Optional[Callable[[Dict[str, Any]], None]] = None,
        on_changes_detected: Optional[Callable[[List[str]], None]] = None,
    ):
        """
        Args:
            mode: OnboardingMode (default) or EditMode with the current config
            url: Chat endpoint (defaults to settings.chat_service_url)
            http_client: Shared AsyncClient; one is created per turn when omitted
            headers: Extra request headers (auth, caller identity)
            idle_timeout: Seconds to wait for the next chunk before aborting
        """
        self.mode = mode or OnboardingMode()
        self.url = url or settings.chat_service_url
        self.headers = headers or {}
        self.idle_timeout = idle_timeout if idle_timeout is not None else settings.stream_idle_timeout_seconds
        self.on_message_update = on_message_update
        self.on_config_update = on_config_update
        self.on_changes_detected = on_changes_detected

        self._http_client = http_client
        self.state = TurnState.IDLE
        self.site_config: Dict[str, Any] = dict(self.mode.current_config) if isinstance(self.mode, EditMode) else {}
        self.changes: List[str] = []
        self.messages: List[ChatMessage] = [ChatMessage(role="assistant", content=self.mode.greeting())]

    @property
    def busy(self) -> bool:
        return self.state in (TurnState.SENDING, TurnState.STREAMING)

    def _payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [m.model_dump() for m in self.messages],
            "mode": self.mode.name,
        }
        if isinstance(self.mode, EditMode):
            payload["currentConfig"] = self.site_config
        return payload

    async def send(self, text: str) -> TurnResult:
        """
        Send a user message and stream the assistant reply.

        Raises:
            RateLimitedError: service answered 429
            CreditsExhaustedError: service answered 402
            ChatTransportError: connection failed, dropped, or went idle
            ChatRequestError: any other non-2xx answer
        """
        text = text.strip()
        if not text:
            raise ValueError("Message must not be empty")
        if self.busy:
            raise RuntimeError("A turn is already in progress")

        self.messages.append(ChatMessage(role="user", content=text))
        self.state = TurnState.SENDING
        placeholder_added = False

        owns_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))

        try:
            async with client.stream("POST", self.url, json=self._payload(), headers=self.headers) as response:
                if not response.is_success:
                    await response.aread()
                    try:
                        body = response.json()
                    except ValueError:
                        body = {}
                    raise _error_for_status(response.status_code, body)

                self.messages.append(ChatMessage(role="assistant", content=""))
                placeholder_added = True
                self.state = TurnState.STREAMING

                parser = ChatStreamParser(
                    extract_changes=self.mode.extracts_changes,
                    max_line_requeues=settings.stream_max_line_requeues,
                )
                chunks = response.aiter_bytes().__aiter__()
                while not parser.done:
                    try:
                        chunk = await asyncio.wait_for(chunks.__anext__(), timeout=self.idle_timeout)
                    except StopAsyncIteration:
                        break
                    except asyncio.TimeoutError:
                        raise ChatTransportError(
                            f"No data received for {self.idle_timeout:.0f}s",
                            detail="stream idle timeout",
                        )
                    self._apply(parser.feed(chunk))

                done = None
                for event in parser.finish():
                    self._apply([event])
                    if isinstance(event, StreamDone):
                        done = event

        except ChatRequestError:
            self._fail(placeholder_added)
            raise
        except httpx.HTTPError as e:
            self._fail(placeholder_added)
            raise ChatTransportError("Failed to send message. Please try again.", detail=str(e)) from e
        except BaseException:
            # Cancelled or failed mid-turn: drop the partial reply, nothing was persisted
            self._fail(placeholder_added)
            raise
        finally:
            if owns_client:
                await client.aclose()

        self.state = TurnState.COMPLETE if done.config is not None else TurnState.STREAMED_NO_CONFIG
        logger.debug(f"Chat turn finished - state={self.state.value}, chars={len(done.content)}")
        return TurnResult(
            state=self.state,
            message=done.display_text,
            config=done.config,
            changes=list(done.changes),
        )

    def _apply(self, events) -> None:
        for event in events:
            if isinstance(event, (TextUpdated, StreamDone)):
                self.messages[-1] = ChatMessage(role="assistant", content=event.display_text)
                if isinstance(event, TextUpdated) and self.on_message_update:
                    self.on_message_update(event.display_text)
            elif isinstance(event, ConfigExtracted):
                self.site_config = merge_site_config(self.site_config, event.config)
                if self.on_config_update:
                    self.on_config_update(event.config)
            elif isinstance(event, ChangesDetected):
                self.changes = list(event.changes)
                if self.on_changes_detected:
                    self.on_changes_detected(event.changes)

    def _fail(self, placeholder_added: bool) -> None:
        if placeholder_added and self.messages and self.messages[-1].role == "assistant":
            self.messages.pop()
        self.state = TurnState.ERRORED
