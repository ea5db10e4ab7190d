import orjson

from coach.models.response import ChatUpdate


def format_sse(event: str, data: dict) -> str:
    """Format data as SSE event"""
    return f"event: {event}\ndata: {orjson.dumps(data).decode()}\n\n"


def format_update_sse(update: ChatUpdate) -> str:
    """Format a chat update; final updates use the `final` or `error` event."""
    if update.error:
        event = "error"
    elif update.is_final:
        event = "final"
    else:
        event = "update"
    return format_sse(event, update.model_dump())
