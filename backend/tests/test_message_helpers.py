"""Tests for message helper utilities."""

from coach.models.request import ChatMessage
from coach.utils.message_helpers import (
    build_chat_payload,
    format_image_block,
    get_mime_type_from_data_url,
    split_data_url,
)


def test_split_data_url():
    mime, data = split_data_url("data:image/png;base64,iVBORw0KGgo")
    assert mime == "image/png"
    assert data == "iVBORw0KGgo"


def test_split_raw_base64_defaults_to_jpeg():
    assert split_data_url("iVBORw0KGgo") == ("image/jpeg", "iVBORw0KGgo")


def test_get_mime_type_fallback():
    assert get_mime_type_from_data_url("invalid") == "image/jpeg"


def test_format_image_block():
    block = format_image_block("abc123")
    assert block == {
        "type": "image_url",
        "image_url": {"url": "data:image/jpeg;base64,abc123"},
    }


def test_build_chat_payload_minimal():
    payload = build_chat_payload([ChatMessage(role="user", content="Hello")])
    assert payload == {"messages": [{"role": "user", "content": "Hello"}]}


def test_build_chat_payload_with_context_and_images():
    payload = build_chat_payload(
        [ChatMessage(role="user", content="Rate my form")],
        user_id="user-42",
        weight_unit="lb",
        images=["data:image/png;base64,xyz"],
    )
    assert payload["userId"] == "user-42"
    assert payload["weightUnit"] == "lb"
    assert payload["images"][0]["image_url"]["url"] == "data:image/png;base64,xyz"


def test_build_chat_payload_keeps_last_messages():
    messages = [ChatMessage(role="user", content=str(i)) for i in range(5)]
    payload = build_chat_payload(messages, history_window=2)
    assert [m["content"] for m in payload["messages"]] == ["3", "4"]
