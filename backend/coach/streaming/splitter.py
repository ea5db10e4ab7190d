import codecs
import logging
from typing import List, Union

from coach.streaming.frames import EventLine, FramingMode, RawText

logger = logging.getLogger(__name__)

# Transport prefix carried by SSE-style event lines
EVENT_LINE_PREFIX = "data:"


def detect_framing(text: str) -> FramingMode:
    """Classify a reply from its first decoded chunk."""
    stripped = text.lstrip()
    if stripped.startswith("{") or stripped.startswith(EVENT_LINE_PREFIX):
        return FramingMode.STRUCTURED_EVENTS
    return FramingMode.PLAIN_TEXT


class FrameSplitter:
    """
    Turns raw transport chunks into text frames or candidate event lines.

    The framing mode is picked from the first non-empty chunk and never
    revisited. In plain-text mode each chunk passes through as one RawText;
    in structured mode complete lines are split off and a trailing partial
    line is kept until a later chunk (or flush) completes it.
    """

    def __init__(self):
        self.mode = FramingMode.UNKNOWN_PENDING
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[bytes, str]) -> List[Union[RawText, EventLine]]:
        text = self._decode(chunk)
        if not text:
            return []

        if self.mode is FramingMode.UNKNOWN_PENDING:
            self.mode = detect_framing(text)
            logger.debug(f"Framing mode detected: {self.mode.value}")

        if self.mode is FramingMode.PLAIN_TEXT:
            return [RawText(text)]

        self._buffer += text
        lines: List[Union[RawText, EventLine]] = []
        while (newline_index := self._buffer.find("\n")) != -1:
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]
            lines.append(EventLine(line))
        return lines

    def flush(self) -> List[Union[RawText, EventLine]]:
        """Emit whatever is still buffered once the stream has ended."""
        tail = self._decoder.decode(b"", final=True)
        if self.mode is FramingMode.PLAIN_TEXT:
            return [RawText(tail)] if tail else []

        self._buffer += tail
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []
        if self.mode is FramingMode.UNKNOWN_PENDING:
            # Only undecodable fragments ever arrived
            self.mode = detect_framing(remainder)
            if self.mode is FramingMode.PLAIN_TEXT:
                return [RawText(remainder)]
        return [EventLine(remainder, terminated=False)]

    def _decode(self, chunk: Union[bytes, str]) -> str:
        if isinstance(chunk, str):
            return chunk
        return self._decoder.decode(chunk)
