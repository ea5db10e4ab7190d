"""Shared fixtures for coach tests."""

import pytest

from coach.providers.backend import ChatTransportError


class FakeBackend:
    """Stands in for ChatBackend: replays scripted chunks, records payloads."""

    def __init__(self, chunks=(), error=None):
        self.chunks = list(chunks)
        self.error = error
        self.payloads = []
        self.closed = False
        self.cleaned_up = False
        self.base_url = "http://coach.test"

    async def stream_reply(self, payload):
        self.payloads.append(payload)
        try:
            for chunk in self.chunks:
                yield chunk
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True

    async def cleanup(self):
        self.cleaned_up = True


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def failing_backend():
    return FakeBackend(error=ChatTransportError("Chat backend returned 500: boom", status_code=500))


async def collect(agen):
    """Drain an async iterator into a list."""
    return [item async for item in agen]
