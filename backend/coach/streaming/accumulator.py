import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from coach.models.response import ChatUpdate, Suggestion
from coach.services.suggestions import SuggestionExtractor
from coach.streaming.frames import FramingMode

logger = logging.getLogger(__name__)

FENCE = "```"
# Substrings that announce a structured block; once present they stay present
HIDDEN_MARKERS = (FENCE, "\n[", "\n{", '": [', '": {')
HIDDEN_PREFIXES = ("[", "{", FENCE)


class Visibility(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass
class ResponseContext:
    """State for one in-flight reply; only its processing loop writes to it"""

    context_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    acc: str = ""
    mode: FramingMode = FramingMode.UNKNOWN_PENDING
    hidden: bool = False
    suggestions: Dict[str, Suggestion] = field(default_factory=dict)
    superseded: bool = False

    def suggestion_list(self) -> List[Suggestion]:
        return list(self.suggestions.values())


class VisibilityGate:
    """Decides whether accumulated text may be shown while it is still arriving"""

    def evaluate(self, acc: str) -> Visibility:
        text = acc.strip()
        if text.startswith(HIDDEN_PREFIXES):
            return Visibility.HIDDEN
        if any(marker in text for marker in HIDDEN_MARKERS):
            return Visibility.HIDDEN
        return Visibility.VISIBLE


class ResponseAccumulator:
    """
    Owns the append-only text of one reply.

    Every append re-evaluates the visibility gate (Hidden is sticky) and,
    when enabled, re-runs suggestion extraction on the new prefix. Returns
    the incremental update to publish, or None while the reply is hidden.
    """

    def __init__(
        self,
        context: ResponseContext,
        gate: Optional[VisibilityGate] = None,
        extractor: Optional[SuggestionExtractor] = None,
        extract_while_streaming: bool = True,
    ):
        self.context = context
        self.gate = gate or VisibilityGate()
        self.extractor = extractor or SuggestionExtractor()
        self.extract_while_streaming = extract_while_streaming

    @property
    def text(self) -> str:
        return self.context.acc

    def append(self, text: str) -> Optional[ChatUpdate]:
        if not text:
            return None

        context = self.context
        context.acc += text

        if not context.hidden and self.gate.evaluate(context.acc) is Visibility.HIDDEN:
            context.hidden = True
            logger.debug(f"Reply {context.context_id} hidden until stream end")

        if self.extract_while_streaming:
            self.refresh_suggestions()

        if context.hidden:
            return None
        return ChatUpdate(
            context_id=context.context_id,
            display_text=context.acc,
            suggestions=context.suggestion_list(),
        )

    def refresh_suggestions(self) -> List[Suggestion]:
        """Replace the context's suggestions with an extraction over the full text."""
        try:
            found = self.extractor.extract(self.context.acc)
        except Exception as e:
            # Extraction must never disturb the accumulator
            logger.debug(f"Suggestion extraction skipped: {e}")
            return self.context.suggestion_list()
        self.context.suggestions = {s.key: s for s in found}
        return found
