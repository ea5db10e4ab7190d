"""
Chat routes for the coach gateway.

The reply to each message is relayed as an SSE stream of ChatUpdate payloads:
zero or more `update` events while the reply is visible, then exactly one
`final` (or `error`) event.
"""

from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from coach.models.request import ChatRequest
from coach.services.session import session_registry
from coach.utils.exceptions import raise_bad_request, raise_not_found
from coach.utils.sse import format_update_sse

router = APIRouter()


async def _relay(request: ChatRequest) -> AsyncIterator[str]:
    async for update in session_registry.stream(request):
        yield format_update_sse(update)


@router.post("/chat")
async def chat(request: ChatRequest):
    """
    POST /api/chat - send the conversation and stream the coach's reply

    Returns SSE stream with events:
    - update: Visible partial reply {context_id, display_text, suggestions}
    - final: Sanitized reply and authoritative suggestions
    - error: Transport failure, with a user-facing message and error detail
    """
    if not request.messages:
        raise_bad_request("No messages provided")
    if request.messages[-1].role != "user":
        raise_bad_request("Last message must come from the user")

    return StreamingResponse(
        _relay(request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.post("/chat/{session_id}/reset")
async def reset_chat(session_id: str):
    """Start over: the session's in-flight reply stops publishing."""
    if not session_registry.reset(session_id):
        raise_not_found("Session", session_id)
    return {"session_id": session_id, "status": "reset"}
