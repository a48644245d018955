"""Interpret data-frame payloads of an OpenAI-compatible chat stream."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


class Action(enum.Enum):
    DELTA = "delta"
    DONE = "done"
    SKIP = "skip"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class Interpretation:
    """What the orchestrator should do with one payload.

    ``text`` carries the delta for ``DELTA`` and the unparsed payload for
    ``INCOMPLETE``.
    """

    action: Action
    text: str = ""

    @classmethod
    def delta(cls, text: str) -> Interpretation:
        return cls(Action.DELTA, text)

    @classmethod
    def done(cls) -> Interpretation:
        return cls(Action.DONE)

    @classmethod
    def skip(cls) -> Interpretation:
        return cls(Action.SKIP)

    @classmethod
    def incomplete(cls, payload: str) -> Interpretation:
        return cls(Action.INCOMPLETE, payload)


def extract_delta(data: Any) -> str | None:
    """Return ``choices[0].delta.content`` when it is a string, else None."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class FrameInterpreter:
    """Stateful payload interpreter for one stream.

    Once the sentinel has been seen the interpreter is ``finished`` and
    ignores everything else it is given.
    """

    def __init__(self) -> None:
        self.finished = False

    def interpret(self, payload: str) -> Interpretation:
        if self.finished:
            return Interpretation.skip()
        text = payload.strip()
        if text == DONE_SENTINEL:
            self.finished = True
            return Interpretation.done()
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            # Possibly a payload split by the transport; retried on next chunk
            return Interpretation.incomplete(payload)
        content = extract_delta(data)
        if not content:
            return Interpretation.skip()
        return Interpretation.delta(content)

    def interpret_final(self, payload: str) -> Interpretation:
        """Like :meth:`interpret`, but leftovers that still fail are dropped."""
        result = self.interpret(payload)
        if result.action is Action.INCOMPLETE:
            _logger.debug("Discarding unparsed trailing fragment: %.80r", payload)
            return Interpretation.skip()
        return result
