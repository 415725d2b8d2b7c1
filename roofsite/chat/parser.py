"""
Incremental consumer for the chat token stream

Feeds raw network chunks in, gets parser events out:

- TextUpdated: the assistant text grew; carries the cleaned display text
- ConfigExtracted: the first complete, valid <site_config> block of the turn
- ChangesDetected: the <changes> list (edit mode), once per turn
- StreamDone: the stream ended ([DONE] or transport close)

Anomalies in the stream itself (partial lines, partial UTF-8 sequences,
unparseable lines, malformed config JSON) are handled here and never raised.
"""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from loguru import logger

from roofsite.chat.modes import CHANGES_TAG, SITE_CONFIG_TAG
from roofsite.chat.sse import DATA_PREFIX, DONE_PAYLOAD
from roofsite.chat.tags import TagScanner, clean_display_text, parse_change_list
from roofsite.utils.errors import ConfigExtractionError

DEFAULT_MAX_LINE_REQUEUES = 8


@dataclass
class TextUpdated:
    delta: str
    display_text: str


@dataclass
class ConfigExtracted:
    config: Dict[str, Any]


@dataclass
class ChangesDetected:
    changes: List[str]


@dataclass
class StreamDone:
    content: str
    display_text: str
    config: Optional[Dict[str, Any]] = None
    changes: List[str] = field(default_factory=list)


ParserEvent = Union[TextUpdated, ConfigExtracted, ChangesDetected, StreamDone]


def _braces_balanced(payload: str) -> bool:
    """
    Rough completeness check for a JSON payload.

    Counts braces and brackets outside of string literals; an unbalanced
    payload is assumed to still be arriving.
    """
    depth = 0
    in_string = False
    escaped = False
    for ch in payload:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
    return depth == 0 and not in_string


class ChatStreamParser:
    """
    Turns the byte stream of one chat turn into parser events.

    Example:
        parser = ChatStreamParser(extract_changes=True)
        async for chunk in response.aiter_bytes():
            for event in parser.feed(chunk):
                ...
            if parser.done:
                break
        for event in parser.finish():
            ...
    """

    def __init__(self, extract_changes: bool = False, max_line_requeues: int = DEFAULT_MAX_LINE_REQUEUES):
        """
        Args:
            extract_changes: Emit ChangesDetected for <changes> blocks (edit mode)
            max_line_requeues: How many times a data line that fails to parse is
                pushed back before it is dropped
        """
        self.extract_changes = extract_changes
        self.max_line_requeues = max_line_requeues

        self.content = ""
        self.config: Optional[Dict[str, Any]] = None
        self.changes: List[str] = []
        self.done = False

        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._requeues = 0
        self._finished = False
        self._config_scanner = TagScanner(SITE_CONFIG_TAG)
        self._changes_scanner = TagScanner(CHANGES_TAG)
        self._changes_emitted = False
        self._config_blocks_tried = 0

    @property
    def display_text(self) -> str:
        return clean_display_text(self.content, self._scanners(), streaming=not self._finished)

    def feed(self, chunk: bytes) -> List[ParserEvent]:
        """Consume one network chunk"""
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def finish(self) -> List[ParserEvent]:
        """
        Flush at end of stream.

        Any buffered remainder is processed once more; lines that still fail
        to parse are discarded since no more bytes can complete them.
        """
        if self._finished:
            return []

        events: List[ParserEvent] = []
        self._buffer += self._decoder.decode(b"", final=True)
        if not self.done and self._buffer.strip():
            remainder, self._buffer = self._buffer, ""
            for raw in remainder.split("\n"):
                payload = self._payload(raw)
                if payload is None or payload == DONE_PAYLOAD:
                    continue
                try:
                    parsed = json.loads(payload)
                except json.JSONDecodeError:
                    logger.debug(f"Discarding unparseable stream remainder: {payload[:80]}")
                    continue
                events.extend(self._accept(parsed))

        self._buffer = ""
        self.done = True
        self._finished = True
        events.append(StreamDone(
            content=self.content,
            display_text=self.display_text,
            config=self.config,
            changes=list(self.changes),
        ))
        return events

    def _scanners(self) -> List[TagScanner]:
        return [self._config_scanner, self._changes_scanner]

    @staticmethod
    def _payload(raw: str) -> Optional[str]:
        """JSON payload of a ``data:`` line, or None for lines to ignore"""
        line = raw[:-1] if raw.endswith("\r") else raw
        if line.startswith(":") or line.strip() == "":
            return None
        if not line.startswith(DATA_PREFIX):
            return None
        return line[len(DATA_PREFIX):].strip()

    def _drain(self) -> List[ParserEvent]:
        events: List[ParserEvent] = []
        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]

            payload = self._payload(line)
            if payload is None:
                continue
            if payload == DONE_PAYLOAD:
                self.done = True
                break

            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                if self._requeues < self.max_line_requeues and not _braces_balanced(payload):
                    # Assume the event is still arriving; retry with the next chunk
                    self._requeues += 1
                    self._buffer = line + "\n" + self._buffer
                    break
                logger.warning(f"Dropping malformed stream line after {self._requeues} retries: {payload[:80]}")
                self._requeues = 0
                continue

            self._requeues = 0
            events.extend(self._accept(parsed))
        return events

    def _accept(self, parsed: Any) -> List[ParserEvent]:
        """Apply one decoded event object"""
        content = self._delta_content(parsed)
        if not content:
            return []

        self.content += content
        for scanner in self._scanners():
            scanner.update(self.content)

        events: List[ParserEvent] = [TextUpdated(delta=content, display_text=self.display_text)]
        events.extend(self._extract())
        return events

    @staticmethod
    def _delta_content(parsed: Any) -> Optional[str]:
        if not isinstance(parsed, dict):
            return None
        choices = parsed.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        delta = first.get("delta") if isinstance(first, dict) else None
        content = delta.get("content") if isinstance(delta, dict) else None
        return content if isinstance(content, str) else None

    def _extract(self) -> List[ParserEvent]:
        events: List[ParserEvent] = []

        if self.config is None:
            untried = self._config_scanner.blocks[self._config_blocks_tried:]
            self._config_blocks_tried = len(self._config_scanner.blocks)
            for block in untried:
                try:
                    config = self._parse_config(block.body)
                except ConfigExtractionError as e:
                    logger.warning(f"Skipping site config block: {e}")
                    continue
                self.config = config
                events.append(ConfigExtracted(config=config))
                break

        if self.config is not None and self.extract_changes and not self._changes_emitted:
            if self._changes_scanner.blocks:
                self._changes_emitted = True
                changes = parse_change_list(self._changes_scanner.blocks[0].body)
                if changes:
                    self.changes = changes
                    events.append(ChangesDetected(changes=changes))

        return events

    @staticmethod
    def _parse_config(body: str) -> Dict[str, Any]:
        try:
            config = json.loads(body.strip())
        except json.JSONDecodeError as e:
            raise ConfigExtractionError(f"Invalid JSON in site config block: {e}") from e
        if not isinstance(config, dict):
            raise ConfigExtractionError(f"Site config block is not a JSON object: {type(config).__name__}")
        return config
