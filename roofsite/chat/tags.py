"""
Incremental extraction-tag scanning

The assistant embeds machine-readable payloads in its prose between tag
pairs such as <site_config>...</site_config>. The text arrives token by
token, so scanning the whole accumulated string on every token would be
quadratic. ``TagScanner`` keeps its position between calls and only looks
at text it has not examined yet.

Matching follows a non-greedy search: a block runs from an opening tag to
the first closing tag after it.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

_BULLET = re.compile(r"^[-•*]\s*")


@dataclass(frozen=True)
class TagBlock:
    """A complete block; ``start``/``end`` span the tags themselves"""
    start: int
    end: int
    body: str


class TagScanner:
    """
    Tracks one tag pair over an append-only text.

    States: searching for the opening tag, or inside a block searching for
    the closing tag. ``update`` must always be given the full accumulated
    text, which may only grow between calls.
    """

    def __init__(self, tag: str):
        self.tag = tag
        self.open_tag = f"<{tag}>"
        self.close_tag = f"</{tag}>"
        self.blocks: List[TagBlock] = []
        self._open_start: Optional[int] = None
        self._pos = 0

    @property
    def inside_block(self) -> bool:
        return self._open_start is not None

    @property
    def open_start(self) -> Optional[int]:
        return self._open_start

    def update(self, text: str) -> List[TagBlock]:
        """
        Advance over newly appended text.

        Returns:
            Blocks completed by this call, in order
        """
        completed = []
        while True:
            if self._open_start is None:
                idx = text.find(self.open_tag, self._pos)
                if idx == -1:
                    # A tag may straddle the next append
                    self._pos = max(self._pos, len(text) - len(self.open_tag) + 1)
                    break
                self._open_start = idx
                self._pos = idx + len(self.open_tag)
            else:
                idx = text.find(self.close_tag, self._pos)
                if idx == -1:
                    self._pos = max(self._pos, len(text) - len(self.close_tag) + 1)
                    break
                body_start = self._open_start + len(self.open_tag)
                block = TagBlock(
                    start=self._open_start,
                    end=idx + len(self.close_tag),
                    body=text[body_start:idx],
                )
                self.blocks.append(block)
                completed.append(block)
                self._open_start = None
                self._pos = block.end
        return completed

    def hidden_spans(self, text: str) -> List[Tuple[int, int]]:
        """Spans to remove for display: complete blocks plus an unclosed one"""
        spans = [(b.start, b.end) for b in self.blocks]
        if self._open_start is not None:
            spans.append((self._open_start, len(text)))
        return spans

    def trailing_partial_open(self, text: str) -> int:
        """Length of a proper prefix of the opening tag that ends ``text``"""
        if self._open_start is not None:
            return 0
        for size in range(min(len(self.open_tag) - 1, len(text)), 0, -1):
            if text.endswith(self.open_tag[:size]):
                return size
        return 0


def clean_display_text(text: str, scanners: Sequence[TagScanner], streaming: bool = True) -> str:
    """
    Text fit for the transcript: tag blocks removed, whitespace trimmed.

    While streaming, a trailing fragment that could still become an opening
    tag is held back as well so raw markup never flashes on screen.
    """
    spans = []
    for scanner in scanners:
        spans.extend(scanner.hidden_spans(text))

    end = len(text)
    if streaming:
        partial = max((s.trailing_partial_open(text) for s in scanners), default=0)
        if partial:
            spans.append((end - partial, end))

    if not spans:
        return text.strip()

    parts = []
    cursor = 0
    for start, stop in sorted(spans):
        if start > cursor:
            parts.append(text[cursor:start])
        cursor = max(cursor, stop)
    if cursor < end:
        parts.append(text[cursor:])
    return "".join(parts).strip()


def parse_change_list(body: str) -> List[str]:
    """
    Turn a <changes> body into a list of descriptions.

    Leading "-", "•" or "*" bullets are removed and blank lines dropped.
    """
    changes = []
    for line in body.strip().split("\n"):
        item = _BULLET.sub("", line.strip()).strip()
        if item:
            changes.append(item)
    return changes
