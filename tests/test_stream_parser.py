"""
Tests for the chat stream parser: reassembly, recovery and extraction
"""

import json

import pytest

from roofsite.chat.parser import (
    ChangesDetected,
    ChatStreamParser,
    ConfigExtracted,
    StreamDone,
    TextUpdated,
)
from roofsite.chat.sse import DONE_EVENT, format_delta


def encode_stream(tokens, done=True) -> bytes:
    body = "".join(format_delta(t) for t in tokens)
    if done:
        body += DONE_EVENT
    return body.encode("utf-8")


def run_parser(chunks, extract_changes=False):
    parser = ChatStreamParser(extract_changes=extract_changes)
    events = []
    for chunk in chunks:
        events.extend(parser.feed(chunk))
    events.extend(parser.finish())
    return parser, events


def of_type(events, cls):
    return [e for e in events if isinstance(e, cls)]


CONFIG = {"businessName": "ABC Roofing", "phone": "(555) 123-4567", "serviceAreas": ["Springfield"]}

ONBOARDING_TOKENS = [
    "Perfect, I have everything",
    " I need! ",
    "<site_config>\n",
    json.dumps(CONFIG)[:20],
    json.dumps(CONFIG)[20:],
    "\n</site_config>",
]


class TestStreamReassembly:
    """Any chunking of the byte stream yields the same text"""

    TOKENS = ["Hola ", "Café ☂️", " naïve ✓ ", "日本語", "!"]

    def test_every_two_way_split(self):
        data = encode_stream(self.TOKENS)
        expected = "".join(self.TOKENS)

        for offset in range(len(data) + 1):
            parser, events = run_parser([data[:offset], data[offset:]])
            assert parser.content == expected, f"split at byte {offset}"
            assert len(of_type(events, StreamDone)) == 1

    def test_one_byte_chunks(self):
        data = encode_stream(self.TOKENS)
        parser, _ = run_parser([data[i:i + 1] for i in range(len(data))])
        assert parser.content == "".join(self.TOKENS)

    def test_split_json_line_appended_once(self):
        line = format_delta("Hello").encode()
        cut = line.index(b'"content"') + 4
        parser = ChatStreamParser()

        first = parser.feed(line[:cut])
        second = parser.feed(line[cut:])

        assert first == []
        assert [e.delta for e in of_type(second, TextUpdated)] == ["Hello"]
        assert parser.content == "Hello"

    def test_multiple_events_in_one_chunk(self):
        parser = ChatStreamParser()
        events = parser.feed(encode_stream(["a", "b", "c"], done=False))

        assert [e.delta for e in of_type(events, TextUpdated)] == ["a", "b", "c"]
        assert parser.content == "abc"


class TestStreamLineHandling:

    def test_crlf_line_endings(self):
        data = encode_stream(["x", "y"]).replace(b"\n", b"\r\n")
        parser, _ = run_parser([data])
        assert parser.content == "xy"
        assert parser.done

    def test_comment_and_blank_lines_ignored(self):
        data = b": keep-alive\n\n" + encode_stream(["ok"])
        parser, _ = run_parser([data])
        assert parser.content == "ok"

    def test_non_data_lines_ignored(self):
        data = b"event: message\nid: 7\n" + encode_stream(["ok"])
        parser, _ = run_parser([data])
        assert parser.content == "ok"

    def test_done_stops_processing(self):
        data = encode_stream(["before"]) + format_delta("after").encode()
        parser = ChatStreamParser()
        parser.feed(data)

        assert parser.done
        assert parser.content == "before"
        assert parser.feed(format_delta("later").encode()) == []

    def test_events_without_content_ignored(self):
        data = (
            b'data: {"choices":[{"delta":{"role":"assistant"}}]}\n\n'
            b'data: {"choices":[]}\n\n'
            b'data: [1, 2]\n\n'
        ) + encode_stream(["text"])
        parser, events = run_parser([data])

        assert parser.content == "text"
        assert len(of_type(events, TextUpdated)) == 1

    def test_balanced_malformed_line_dropped(self):
        data = b"data: {not json}\n\n" + encode_stream(["fine"], done=False)
        parser = ChatStreamParser()
        events = parser.feed(data)

        assert [e.delta for e in of_type(events, TextUpdated)] == ["fine"]

    def test_unbalanced_line_requeued_then_dropped(self):
        parser = ChatStreamParser(max_line_requeues=2)
        parser.feed(b'data: {"choices":[\n')
        parser.feed(format_delta("kept").encode())
        assert parser.content == ""

        events = parser.feed(b"")

        assert parser.content == "kept"
        assert [e.delta for e in of_type(events, TextUpdated)] == ["kept"]

    def test_finish_processes_unterminated_remainder(self):
        parser = ChatStreamParser()
        parser.feed(format_delta("one").encode() + format_delta("two").encode().rstrip(b"\n"))
        events = parser.finish()

        assert parser.content == "onetwo"
        assert isinstance(events[-1], StreamDone)

    def test_finish_discards_partial_remainder(self):
        parser = ChatStreamParser()
        parser.feed(format_delta("one").encode() + b'data: {"choices":[{"del')
        events = parser.finish()

        assert parser.content == "one"
        assert events[-1].content == "one"

    def test_transport_close_without_done(self):
        parser, events = run_parser([encode_stream(["partial"], done=False)])
        assert parser.content == "partial"
        assert of_type(events, StreamDone)[0].content == "partial"

    def test_finish_is_idempotent(self):
        parser, _ = run_parser([encode_stream(["x"])])
        assert parser.finish() == []


class TestConfigExtraction:

    def test_onboarding_config_extracted_once(self):
        parser, events = run_parser([encode_stream(ONBOARDING_TOKENS)])

        configs = of_type(events, ConfigExtracted)
        assert len(configs) == 1
        assert configs[0].config == CONFIG
        assert parser.config == CONFIG
        assert of_type(events, ChangesDetected) == []

        done = of_type(events, StreamDone)[0]
        assert done.display_text == "Perfect, I have everything I need!"
        assert done.config == CONFIG

    def test_display_text_never_shows_markup(self):
        _, events = run_parser([encode_stream(ONBOARDING_TOKENS)])
        for event in of_type(events, TextUpdated):
            assert "<" not in event.display_text
            assert "businessName" not in event.display_text

    def test_second_config_block_ignored(self):
        tokens = ONBOARDING_TOKENS + ['<site_config>{"businessName": "Other"}</site_config>']
        parser, events = run_parser([encode_stream(tokens)])

        assert len(of_type(events, ConfigExtracted)) == 1
        assert parser.config["businessName"] == "ABC Roofing"

    def test_malformed_config_skipped(self):
        tokens = ["Here: <site_config>{broken json</site_config>", " Sorry, again."]
        parser, events = run_parser([encode_stream(tokens)])

        assert of_type(events, ConfigExtracted) == []
        assert parser.config is None
        assert of_type(events, StreamDone)[0].display_text == "Here:  Sorry, again."

    def test_valid_block_after_malformed_one(self):
        tokens = ["<site_config>{oops}</site_config>", '<site_config>{"phone": "1"}</site_config>']
        parser, events = run_parser([encode_stream(tokens)])

        assert [e.config for e in of_type(events, ConfigExtracted)] == [{"phone": "1"}]

    def test_non_object_config_skipped(self):
        parser, events = run_parser([encode_stream(["<site_config>[1, 2]</site_config>"])])
        assert parser.config is None

    def test_unclosed_block_hidden_at_end(self):
        parser, events = run_parser([encode_stream(['Almost <site_config>{"a": 1'])])
        done = of_type(events, StreamDone)[0]

        assert done.config is None
        assert done.display_text == "Almost"


class TestChangeDetection:

    EDIT_TOKENS = [
        "Updated your phone number.",
        '<site_config>{"businessName": "ABC", "phone": "555-2222"}</site_config>',
        "<changes>\n- Updated phone",
        " number to 555-2222\n</changes>",
    ]

    def test_edit_mode_emits_config_then_changes(self):
        parser, events = run_parser([encode_stream(self.EDIT_TOKENS)], extract_changes=True)

        kinds = [type(e) for e in events if isinstance(e, (ConfigExtracted, ChangesDetected))]
        assert kinds == [ConfigExtracted, ChangesDetected]
        assert parser.changes == ["Updated phone number to 555-2222"]

        done = of_type(events, StreamDone)[0]
        assert done.display_text == "Updated your phone number."
        assert done.changes == ["Updated phone number to 555-2222"]

    def test_changes_before_config(self):
        tokens = [
            "<changes>- Added area</changes>",
            '<site_config>{"serviceAreas": ["Chatham"]}</site_config>',
        ]
        parser, events = run_parser([encode_stream(tokens)], extract_changes=True)

        assert len(of_type(events, ChangesDetected)) == 1
        assert parser.changes == ["Added area"]

    def test_changes_without_config_not_emitted(self):
        parser, events = run_parser([encode_stream(["<changes>- x</changes>"])], extract_changes=True)
        assert of_type(events, ChangesDetected) == []

    def test_onboarding_ignores_changes(self):
        parser, events = run_parser([encode_stream(self.EDIT_TOKENS)], extract_changes=False)

        assert of_type(events, ChangesDetected) == []
        assert parser.config is not None
        assert of_type(events, StreamDone)[0].display_text == "Updated your phone number."

    @pytest.mark.parametrize("offset", [10, 57, 101, 150])
    def test_changes_emitted_once_under_any_chunking(self, offset):
        data = encode_stream(self.EDIT_TOKENS)
        _, events = run_parser([data[:offset], data[offset:]], extract_changes=True)

        assert len(of_type(events, ChangesDetected)) == 1
        assert len(of_type(events, ConfigExtracted)) == 1
