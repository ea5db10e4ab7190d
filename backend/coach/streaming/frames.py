"""Logical units produced while decoding a reply stream."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Union


class FramingMode(str, Enum):
    """Wire convention of one reply, decided once from its first bytes"""

    UNKNOWN_PENDING = "unknown"
    STRUCTURED_EVENTS = "structured"
    PLAIN_TEXT = "plain"


@dataclass(frozen=True)
class RawText:
    """User-visible prose to append to the reply"""

    text: str


@dataclass(frozen=True)
class Event:
    """A well-formed event record whose kind carries no prose (tool calls, status)"""

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EventLine:
    """One candidate event line split off the buffer, not yet decoded"""

    text: str
    terminated: bool = True  # False only for the tail flushed at stream end


Frame = Union[RawText, Event]
