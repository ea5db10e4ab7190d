import logging
from typing import Optional

import orjson

from coach.streaming.frames import Event, EventLine, Frame, RawText
from coach.streaming.splitter import EVENT_LINE_PREFIX

logger = logging.getLogger(__name__)

# Constants
DONE_SENTINEL = "[DONE]"
TEXT_DELTA_KIND = "text-delta"
MESSAGE_KIND = "message"


class EventDecoder:
    """
    Interprets one candidate line as an event record, or as literal text.

    Recognized records:
        {"kind": "text-delta", "delta": "..."}  -> RawText(delta)
        {"kind": "message", "text": "..."}      -> RawText(text)

    `type` and `textDelta` are accepted as aliases of `kind` and `delta`.
    Other well-formed records decode to an Event, which carries no prose.
    JSON scalars and arrays are not records and are dropped. A line that is
    not JSON at all is literal text, kept verbatim apart from the `data:`
    marker. This stage never raises.
    """

    def decode(self, line: EventLine) -> Optional[Frame]:
        raw = self._strip_prefix(line.text.rstrip("\r"))
        body = raw.strip()
        if not body or body == DONE_SENTINEL:
            return None

        try:
            record = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            logger.debug(f"Non-JSON event line kept as text: {e}")
            return RawText(raw + "\n" if line.terminated else raw)

        if not isinstance(record, dict):
            logger.debug(f"Dropping non-record JSON line: {type(record).__name__}")
            return None

        kind = record.get("kind", record.get("type"))
        if kind == TEXT_DELTA_KIND:
            delta = record.get("delta", record.get("textDelta"))
            if isinstance(delta, str):
                return RawText(delta)
        elif kind == MESSAGE_KIND:
            text = record.get("text")
            if isinstance(text, str):
                return RawText(text)

        return Event(kind=str(kind) if kind is not None else "", payload=record)

    @staticmethod
    def _strip_prefix(text: str) -> str:
        """Remove the transport marker and its single separating space, keep the rest verbatim."""
        stripped = text.lstrip()
        if not stripped.startswith(EVENT_LINE_PREFIX):
            return text
        rest = stripped[len(EVENT_LINE_PREFIX):]
        return rest[1:] if rest.startswith(" ") else rest
