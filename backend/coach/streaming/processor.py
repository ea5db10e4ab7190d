"""
Reply stream processing.

bytes -> FrameSplitter -> EventDecoder -> ResponseAccumulator
      -> (VisibilityGate, SuggestionExtractor) -> ChatUpdate

Incremental updates are published only while the reply is visible. finish()
always produces exactly one final update with sanitized text and the
authoritative suggestion list.
"""

import logging
from typing import List, Optional, Union

from coach.models.response import ChatUpdate
from coach.services.suggestions import SuggestionExtractor
from coach.streaming.accumulator import ResponseAccumulator, ResponseContext
from coach.streaming.decoder import EventDecoder
from coach.streaming.frames import Event, EventLine, RawText
from coach.streaming.splitter import FrameSplitter
from coach.utils.sanitize import sanitize_for_display

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_MESSAGE = "I received an empty response. Please try again."


class StreamProcessor:
    """Drives one ResponseContext from raw chunks to its final update"""

    def __init__(
        self,
        context: Optional[ResponseContext] = None,
        extractor: Optional[SuggestionExtractor] = None,
        extract_while_streaming: bool = True,
    ):
        self.context = context or ResponseContext()
        self.extractor = extractor or SuggestionExtractor()
        self.splitter = FrameSplitter()
        self.decoder = EventDecoder()
        self.accumulator = ResponseAccumulator(
            self.context,
            extractor=self.extractor,
            extract_while_streaming=extract_while_streaming,
        )
        self._finished = False

    def feed(self, chunk: Union[bytes, str]) -> List[ChatUpdate]:
        """Consume one transport chunk and return the updates it makes publishable."""
        if self._finished:
            raise RuntimeError(f"Reply {self.context.context_id} already finished")

        units = self.splitter.feed(chunk)
        self.context.mode = self.splitter.mode
        return self._consume(units)

    def finish(self) -> ChatUpdate:
        """Flush buffered input and build the single final update."""
        if self._finished:
            raise RuntimeError(f"Reply {self.context.context_id} already finished")

        self._consume(self.splitter.flush())
        self.context.mode = self.splitter.mode
        self._finished = True

        suggestions = self.accumulator.refresh_suggestions()
        display_text = sanitize_for_display(self.context.acc)
        if not display_text and not suggestions:
            display_text = EMPTY_RESPONSE_MESSAGE

        logger.info(
            f"Reply {self.context.context_id} finished: mode={self.context.mode.value}, "
            f"chars={len(self.context.acc)}, suggestions={len(suggestions)}"
        )
        return ChatUpdate(
            context_id=self.context.context_id,
            display_text=display_text,
            suggestions=suggestions,
            is_final=True,
        )

    def _consume(self, units: List[Union[RawText, EventLine]]) -> List[ChatUpdate]:
        updates = []
        for unit in units:
            frame = self.decoder.decode(unit) if isinstance(unit, EventLine) else unit
            if frame is None:
                continue
            if isinstance(frame, Event):
                logger.debug(f"Ignoring '{frame.kind}' event")
                continue
            update = self.accumulator.append(frame.text)
            if update is not None:
                updates.append(update)
        return updates
