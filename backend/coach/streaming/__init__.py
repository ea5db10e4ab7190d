from coach.streaming.accumulator import ResponseAccumulator, ResponseContext, Visibility, VisibilityGate
from coach.streaming.decoder import EventDecoder
from coach.streaming.frames import Event, EventLine, FramingMode, RawText
from coach.streaming.processor import StreamProcessor
from coach.streaming.splitter import FrameSplitter

__all__ = [
    "Event",
    "EventDecoder",
    "EventLine",
    "FrameSplitter",
    "FramingMode",
    "RawText",
    "ResponseAccumulator",
    "ResponseContext",
    "StreamProcessor",
    "Visibility",
    "VisibilityGate",
]
