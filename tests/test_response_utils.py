"""
Tests for model output helpers and upstream status lookup
"""

import httpx
from langchain_core.messages import AIMessage, AIMessageChunk

from roofsite.llm.client import upstream_status
from roofsite.llm.response_utils import extract_text_from_response, parse_json_content


class TestExtractText:

    def test_plain_string(self):
        assert extract_text_from_response("hello") == "hello"

    def test_message_content(self):
        assert extract_text_from_response(AIMessage(content="hi")) == "hi"
        assert extract_text_from_response(AIMessageChunk(content="tok")) == "tok"

    def test_structured_blocks_skip_reasoning(self):
        message = AIMessage(content=[
            {"type": "reasoning", "text": "thinking..."},
            {"type": "text", "text": "Answer"},
        ])
        assert extract_text_from_response(message) == "Answer"

    def test_empty(self):
        assert extract_text_from_response(AIMessageChunk(content="")) == ""
        assert extract_text_from_response(None) == ""


class TestParseJsonContent:

    def test_fenced_json(self):
        assert parse_json_content('```json\n{"title": "A"}\n```') == {"title": "A"}

    def test_bare_fence(self):
        assert parse_json_content("```\n[1, 2]\n```") == [1, 2]

    def test_plain_json(self):
        assert parse_json_content('{"a": 1}') == {"a": 1}

    def test_not_json(self):
        assert parse_json_content("Here you go!") == {"raw": "Here you go!"}


class TestUpstreamStatus:

    def test_status_code_attribute(self):
        error = Exception("boom")
        error.status_code = 429
        assert upstream_status(error) == 429

    def test_http_status_error(self):
        request = httpx.Request("POST", "https://llm.test/v1/chat/completions")
        response = httpx.Response(402, request=request)
        error = httpx.HTTPStatusError("payment required", request=request, response=response)
        assert upstream_status(error) == 402

    def test_no_status(self):
        assert upstream_status(RuntimeError("network down")) is None
