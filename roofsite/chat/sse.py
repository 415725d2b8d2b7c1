"""
Token stream wire format

Each upstream token becomes one line-oriented event in the chat-completions
streaming shape, so generic stream consumers can read it:

    data: {"choices":[{"delta":{"content":"<token text>"}}]}\\n\\n
    ...
    data: [DONE]\\n\\n
"""

from typing import List

from pydantic import BaseModel

DATA_PREFIX = "data: "
DONE_PAYLOAD = "[DONE]"
DONE_EVENT = f"{DATA_PREFIX}{DONE_PAYLOAD}\n\n"


class StreamDelta(BaseModel):
    content: str


class StreamChoice(BaseModel):
    delta: StreamDelta


class ChatCompletionChunk(BaseModel):
    """One token delta event"""
    choices: List[StreamChoice]

    @classmethod
    def for_content(cls, content: str) -> "ChatCompletionChunk":
        return cls(choices=[StreamChoice(delta=StreamDelta(content=content))])


def format_delta(content: str) -> str:
    """Frame a token as a ``data:`` event line followed by a blank line"""
    chunk = ChatCompletionChunk.for_content(content)
    return f"{DATA_PREFIX}{chunk.model_dump_json()}\n\n"
