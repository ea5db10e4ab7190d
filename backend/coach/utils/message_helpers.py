"""Request payload helpers for the coach chat backend."""

from typing import Any, Optional
import re

from coach.models.request import ChatMessage


def get_mime_type_from_data_url(data_url: str) -> str:
    """
    Extract MIME type from data URL.

    Args:
        data_url: Base64 data URL (e.g., "data:image/jpeg;base64,...")

    Returns:
        MIME type string (e.g., "image/jpeg")

    Examples:
        >>> get_mime_type_from_data_url("data:image/png;base64,iVBORw0...")
        "image/png"
        >>> get_mime_type_from_data_url("invalid")
        "image/jpeg"  # Default fallback
    """
    match = re.match(r'data:([^;]+);base64,', data_url)
    if match:
        return match.group(1)
    return "image/jpeg"  # Default fallback


def split_data_url(data_url: str) -> tuple[str, str]:
    """
    Split data URL into MIME type and base64 data.

    Raw base64 (no "data:" prefix) is assumed to be a JPEG, which is what the
    mobile client produces from its picker.

    Examples:
        >>> split_data_url("data:image/png;base64,iVBORw0...")
        ("image/png", "iVBORw0...")
        >>> split_data_url("iVBORw0...")
        ("image/jpeg", "iVBORw0...")
    """
    if not data_url.startswith("data:"):
        return "image/jpeg", data_url
    parts = data_url.split(',', 1)
    if len(parts) == 2:
        mime_type = get_mime_type_from_data_url(data_url)
        return mime_type, parts[1]
    return "image/jpeg", data_url  # Fallback


def format_image_block(image: str) -> dict[str, Any]:
    """
    Convert an uploaded image into the backend's image_url block.

    {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,..."}}
    """
    mime_type, data = split_data_url(image)
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{mime_type};base64,{data}"},
    }


def build_chat_payload(
    messages: list[ChatMessage],
    user_id: Optional[str] = None,
    weight_unit: Optional[str] = None,
    images: Optional[list[str]] = None,
    history_window: int = 16,
) -> dict[str, Any]:
    """
    Build the JSON body for the coach backend.

    Only the last `history_window` messages are sent; the backend keeps no
    conversation state of its own.
    """
    recent = messages[-history_window:] if history_window > 0 else list(messages)
    payload: dict[str, Any] = {
        "messages": [{"role": m.role, "content": m.content} for m in recent],
    }
    if user_id:
        payload["userId"] = user_id
    if weight_unit:
        payload["weightUnit"] = weight_unit
    if images:
        payload["images"] = [format_image_block(image) for image in images]
    return payload
