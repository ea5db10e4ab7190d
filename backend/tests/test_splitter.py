"""Tests for chunk splitting and framing detection."""

from coach.streaming.frames import EventLine, FramingMode, RawText
from coach.streaming.splitter import FrameSplitter, detect_framing


def test_detect_framing_json_record():
    assert detect_framing('  {"kind": "text-delta"}') == FramingMode.STRUCTURED_EVENTS


def test_detect_framing_sse_prefix():
    assert detect_framing('data: {"kind": "message"}') == FramingMode.STRUCTURED_EVENTS


def test_detect_framing_prose():
    assert detect_framing("Here is your workout") == FramingMode.PLAIN_TEXT
    assert detect_framing('[{"name": "Squat"}]') == FramingMode.PLAIN_TEXT


def test_plain_text_chunks_pass_through():
    splitter = FrameSplitter()
    assert splitter.feed(b"Hello\nthere") == [RawText("Hello\nthere")]
    assert splitter.feed(b" friend") == [RawText(" friend")]
    assert splitter.mode == FramingMode.PLAIN_TEXT


def test_structured_lines_are_split():
    splitter = FrameSplitter()
    frames = splitter.feed(b'{"a": 1}\n{"b": 2}\n')
    assert frames == [EventLine('{"a": 1}'), EventLine('{"b": 2}')]
    assert splitter.mode == FramingMode.STRUCTURED_EVENTS


def test_partial_line_waits_for_newline():
    splitter = FrameSplitter()
    assert splitter.feed(b'{"kind":"text') == []
    frames = splitter.feed(b'-delta","delta":"[1,2"}\n')
    assert frames == [EventLine('{"kind":"text-delta","delta":"[1,2"}')]


def test_mode_is_never_revisited():
    splitter = FrameSplitter()
    splitter.feed(b"Sure thing. ")
    assert splitter.feed(b'{"kind":"message","text":"x"}\n') == [
        RawText('{"kind":"message","text":"x"}\n')
    ]
    assert splitter.mode == FramingMode.PLAIN_TEXT


def test_empty_chunk_does_not_decide_mode():
    splitter = FrameSplitter()
    assert splitter.feed(b"") == []
    assert splitter.mode == FramingMode.UNKNOWN_PENDING


def test_multibyte_character_split_across_chunks():
    splitter = FrameSplitter()
    encoded = "Café time".encode("utf-8")
    first, second = encoded[:4], encoded[4:]  # splits the two bytes of "é"
    assert splitter.feed(first) == [RawText("Caf")]
    assert splitter.feed(second) == [RawText("é time")]


def test_flush_emits_unterminated_tail():
    splitter = FrameSplitter()
    splitter.feed(b'{"kind":"message","text":"a"}\n{"kind":"message"')
    assert splitter.flush() == [EventLine('{"kind":"message"', terminated=False)]
    assert splitter.flush() == []


def test_flush_skips_whitespace_tail():
    splitter = FrameSplitter()
    splitter.feed(b'{"a": 1}\n  ')
    assert splitter.flush() == []


def test_str_chunks_are_accepted():
    splitter = FrameSplitter()
    assert splitter.feed("data: hi\n") == [EventLine("data: hi")]
