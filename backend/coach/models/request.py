from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional


class ChatMessage(BaseModel):
    """A single chat turn; the coach backend only accepts text content"""
    role: str = Field(..., pattern="^(user|assistant)$")
    content: str

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"role": "user", "content": "Give me a push day for tomorrow"},
                {"role": "assistant", "content": "**Bench Press** - 3 sets x 8-10 reps"},
            ]
        }
    )


class ChatRequest(BaseModel):
    session_id: str = "default"
    messages: List[ChatMessage]
    user_id: Optional[str] = None
    weight_unit: Optional[str] = None  # "kg" or "lb", forwarded for coach context
    images: List[str] = Field(default_factory=list)  # Base64 payloads or data URLs
