from typing import List, Optional

from pydantic import BaseModel, Field


class Suggestion(BaseModel):
    """An exercise recommendation recovered from an assistant reply"""

    name: str  # Trimmed, original casing kept for display
    sets: int = Field(ge=1)
    reps: str  # Bare count ("10") or range ("8-12")
    notes: Optional[str] = None

    @property
    def key(self) -> str:
        """Case-insensitive identity used for deduplication."""
        return self.name.lower()


class ChatUpdate(BaseModel):
    """One (display text, suggestions) pair published to the caller"""

    context_id: str
    display_text: str
    suggestions: List[Suggestion] = Field(default_factory=list)
    is_final: bool = False
    error: Optional[str] = None
