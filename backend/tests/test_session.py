"""Tests for chat sessions, superseding and the session registry."""

import pytest

from conftest import FakeBackend, collect
from coach.config import settings
from coach.models.request import ChatMessage, ChatRequest
from coach.providers.backend import ChatTransportError
from coach.services.session import TRANSPORT_ERROR_MESSAGE, ChatSession, SessionRegistry


def make_request(text="What should I train today?", session_id="default"):
    return ChatRequest(session_id=session_id, messages=[ChatMessage(role="user", content=text)])


@pytest.mark.asyncio
async def test_send_yields_incremental_then_one_final():
    backend = FakeBackend(chunks=[b"**Squat** - 4 sets x 6", b"\nRest 2 minutes."])
    session = ChatSession(backend)

    updates = await collect(session.send(make_request()))

    assert [u.is_final for u in updates] == [False, False, True]
    final = updates[-1]
    assert final.display_text == "**Squat** - 4 sets x 6\nRest 2 minutes."
    assert [s.name for s in final.suggestions] == ["Squat"]
    assert {u.context_id for u in updates} == {session.current.context_id}


@pytest.mark.asyncio
async def test_payload_is_windowed():
    backend = FakeBackend(chunks=[b"ok"])
    session = ChatSession(backend)
    messages = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"m{i}")
        for i in range(21)
    ]
    request = ChatRequest(messages=messages, user_id="u-1", weight_unit="kg")

    await collect(session.send(request))

    payload = backend.payloads[0]
    assert len(payload["messages"]) == settings.history_window
    assert payload["messages"][-1] == {"role": "user", "content": "m20"}
    assert payload["userId"] == "u-1"
    assert payload["weightUnit"] == "kg"


@pytest.mark.asyncio
async def test_transport_failure_is_one_synthetic_message(failing_backend):
    session = ChatSession(failing_backend)

    updates = await collect(session.send(make_request()))

    assert len(updates) == 1
    assert updates[0].is_final
    assert updates[0].display_text == TRANSPORT_ERROR_MESSAGE
    assert "500" in updates[0].error


@pytest.mark.asyncio
async def test_failure_mid_stream_does_not_leak_partial_text():
    backend = FakeBackend(
        chunks=[b"Partial answer"],
        error=ChatTransportError("Server disconnected"),
    )
    session = ChatSession(backend)

    updates = await collect(session.send(make_request()))

    final = updates[-1]
    assert final.is_final
    assert final.display_text == TRANSPORT_ERROR_MESSAGE
    assert "Partial" not in final.display_text
    assert sum(1 for u in updates if u.is_final) == 1


@pytest.mark.asyncio
async def test_reset_stops_a_draining_reply():
    backend = FakeBackend(chunks=[b"First part. ", b"Second part."])
    session = ChatSession(backend)

    stream = session.send(make_request())
    first = await stream.__anext__()
    assert first.display_text == "First part. "

    session.reset()
    rest = await collect(stream)

    assert rest == []
    assert backend.closed
    assert session.current is None


@pytest.mark.asyncio
async def test_new_message_supersedes_previous_reply():
    backend = FakeBackend(chunks=[b"One. ", b"Two."])
    session = ChatSession(backend)

    old_stream = session.send(make_request("first"))
    old_first = await old_stream.__anext__()

    new_updates = await collect(session.send(make_request("second")))
    old_rest = await collect(old_stream)

    assert old_rest == []
    assert new_updates[-1].is_final
    assert new_updates[-1].context_id != old_first.context_id
    assert session.current.context_id == new_updates[-1].context_id


def test_start_context_marks_previous_superseded():
    session = ChatSession(FakeBackend())
    first = session.start_context()
    second = session.start_context()
    assert first.superseded
    assert not second.superseded
    assert session.is_current(second)
    assert not session.is_current(first)


@pytest.mark.asyncio
async def test_registry_tracks_active_streams():
    backend = FakeBackend(chunks=[b"Hello"])
    registry = SessionRegistry(backend_factory=lambda: backend)

    seen_active = []
    async for _ in registry.stream(make_request(session_id="a")):
        seen_active.append(registry.active_streams)

    assert seen_active and all(count == 1 for count in seen_active)
    assert registry.active_streams == 0
    assert registry.session_count() == 1


def test_registry_sessions_and_reset():
    registry = SessionRegistry(backend_factory=FakeBackend)
    session = registry.get_or_create("a")
    assert registry.get_or_create("a") is session
    assert registry.get_session("b") is None
    assert registry.reset("a") is True
    assert registry.reset("b") is False


@pytest.mark.asyncio
async def test_registry_cleanup_closes_backend():
    backend = FakeBackend()
    registry = SessionRegistry(backend_factory=lambda: backend)
    registry.get_or_create("a")

    await registry.cleanup()

    assert backend.cleaned_up
    assert registry.session_count() == 0
