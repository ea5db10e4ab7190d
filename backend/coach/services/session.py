"""
Chat sessions for the coach gateway.

A session owns at most one live ResponseContext. Sending a new message (or
resetting the chat) supersedes the current context: its stream stops
publishing at the next chunk boundary and its upstream read is closed.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, Optional

from coach.config import settings
from coach.models.request import ChatRequest
from coach.models.response import ChatUpdate
from coach.providers.backend import ChatBackend, ChatTransportError
from coach.services.suggestions import SuggestionExtractor
from coach.streaming.accumulator import ResponseContext
from coach.streaming.processor import StreamProcessor
from coach.utils.message_helpers import build_chat_payload

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "Sorry, I couldn't process that request. Please try again."


class ChatSession:
    """One conversation; replies are processed strictly one at a time"""

    def __init__(
        self,
        backend: ChatBackend,
        extractor: Optional[SuggestionExtractor] = None,
    ):
        self.backend = backend
        self.extractor = extractor or SuggestionExtractor()
        self.current: Optional[ResponseContext] = None

    def start_context(self) -> ResponseContext:
        """Create the context for a new reply, superseding any live one."""
        self._supersede()
        self.current = ResponseContext()
        return self.current

    def reset(self):
        """Drop the current reply (explicit chat reset)."""
        self._supersede()
        self.current = None

    def is_current(self, context: ResponseContext) -> bool:
        return not context.superseded and self.current is context

    async def send(self, request: ChatRequest) -> AsyncIterator[ChatUpdate]:
        """
        Send the conversation upstream and yield updates for the reply.

        Yields zero or more incremental updates followed by exactly one final
        update, unless the reply is superseded first, in which case it stops
        silently.
        """
        payload = build_chat_payload(
            request.messages,
            user_id=request.user_id,
            weight_unit=request.weight_unit,
            images=request.images,
            history_window=settings.history_window,
        )
        context = self.start_context()
        async for update in self.stream_reply(context, payload):
            yield update

    async def stream_reply(
        self, context: ResponseContext, payload: dict
    ) -> AsyncIterator[ChatUpdate]:
        processor = StreamProcessor(
            context,
            extractor=self.extractor,
            extract_while_streaming=settings.extract_while_streaming,
        )
        chunks = self.backend.stream_reply(payload)
        try:
            async for chunk in chunks:
                if not self.is_current(context):
                    logger.info(f"Reply {context.context_id} superseded, closing upstream read")
                    return
                for update in processor.feed(chunk):
                    yield update
        except ChatTransportError as e:
            if not self.is_current(context):
                return
            yield ChatUpdate(
                context_id=context.context_id,
                display_text=TRANSPORT_ERROR_MESSAGE,
                is_final=True,
                error=str(e),
            )
            return
        finally:
            await chunks.aclose()

        if self.is_current(context):
            yield processor.finish()

    def _supersede(self):
        if self.current is not None and not self.current.superseded:
            self.current.superseded = True
            logger.info(f"Reply {self.current.context_id} superseded")


class SessionRegistry:
    """Central registry of chat sessions sharing one backend transport"""

    # Maximum time to wait for active streams during cleanup (seconds)
    CLEANUP_TIMEOUT = 10.0

    def __init__(self, backend_factory=ChatBackend):
        self._backend_factory = backend_factory
        self._backend: Optional[ChatBackend] = None
        self._sessions: Dict[str, ChatSession] = {}
        self._active_streams: int = 0

    @property
    def backend(self) -> ChatBackend:
        if self._backend is None:
            self._backend = self._backend_factory()
        return self._backend

    @property
    def active_streams(self) -> int:
        return self._active_streams

    def stream_started(self) -> None:
        """Call when a reply stream starts."""
        self._active_streams += 1

    def stream_ended(self) -> None:
        """Call when a reply stream ends."""
        self._active_streams = max(0, self._active_streams - 1)

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = ChatSession(self.backend)
            self._sessions[session_id] = session
        return session

    def reset(self, session_id: str) -> bool:
        """Reset a session's chat. Returns False for an unknown session."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.reset()
        return True

    def session_count(self) -> int:
        return len(self._sessions)

    async def stream(self, request: ChatRequest) -> AsyncIterator[ChatUpdate]:
        """Run one reply for the request's session, tracking it as active."""
        session = self.get_or_create(request.session_id)
        self.stream_started()
        try:
            async for update in session.send(request):
                yield update
        finally:
            self.stream_ended()

    async def cleanup(self):
        """Cleanup sessions and the transport, waiting for active streams to complete."""
        wait_time = 0.0
        while self._active_streams > 0 and wait_time < self.CLEANUP_TIMEOUT:
            logger.debug(f"Waiting for {self._active_streams} active streams to complete...")
            await asyncio.sleep(0.1)
            wait_time += 0.1

        if self._active_streams > 0:
            logger.warning(
                f"Cleanup timeout: {self._active_streams} streams still active after "
                f"{self.CLEANUP_TIMEOUT}s. Proceeding with cleanup."
            )

        for session in self._sessions.values():
            session.reset()
        self._sessions.clear()

        if self._backend is not None:
            try:
                await self._backend.cleanup()
            except Exception as e:
                logger.warning(f"Error cleaning up chat backend: {e}")
            self._backend = None


# Singleton instance
session_registry = SessionRegistry()
