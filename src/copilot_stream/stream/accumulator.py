"""Fold text deltas into the live assistant turn of a transcript."""

from __future__ import annotations

import logging

from copilot_stream.transcript import Transcript
from copilot_stream.types import Turn

_logger = logging.getLogger(__name__)


class MessageAccumulator:
    """Accumulate one assistant reply into *transcript*.

    The accumulator remembers the transcript generation it was created
    for.  If the transcript is cleared while the reply is streaming, every
    later write is dropped instead of resurrecting a stale turn.
    """

    def __init__(self, transcript: Transcript) -> None:
        self._transcript = transcript
        self._generation = transcript.generation
        self._parts: list[str] = []
        self._started = False
        self._finished = False

    @property
    def content(self) -> str:
        return "".join(self._parts)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def stale(self) -> bool:
        return self._transcript.generation != self._generation

    def apply(self, delta: str) -> Turn | None:
        """Append *delta*; return the updated turn, or None if dropped."""
        if self._finished:
            raise RuntimeError("Accumulator already finished")
        if self.stale:
            _logger.debug("Dropping delta for a cleared transcript")
            return None
        self._parts.append(delta)
        if not self._started:
            self._started = True
            return self._transcript.start_assistant(self.content)
        return self._transcript.replace_last(self.content)

    def finish(self) -> None:
        """Freeze the assistant turn; later :meth:`apply` calls raise."""
        if self._finished:
            return
        self._finished = True
        if self._started and not self.stale:
            self._transcript.finish()
