"""Stream decoding: bytes -> frames -> deltas -> transcript."""

from copilot_stream.stream.accumulator import MessageAccumulator
from copilot_stream.stream.decoder import FrameDecoder, FrameKind, classify_line
from copilot_stream.stream.interpreter import (
    Action,
    FrameInterpreter,
    Interpretation,
    extract_delta,
)

__all__ = [
    "Action",
    "FrameDecoder",
    "FrameInterpreter",
    "FrameKind",
    "Interpretation",
    "MessageAccumulator",
    "classify_line",
    "extract_delta",
]
