"""Ordered conversation transcript."""

from __future__ import annotations

import dataclasses
import logging

from copilot_stream.types import Role, Turn

_logger = logging.getLogger(__name__)


class Transcript:
    """Ordered sequence of turns with at most one live assistant turn.

    ``generation`` increases on every :meth:`clear`, which lets a writer
    that captured it earlier detect that the conversation was reset under it.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._in_progress = False
        self.generation = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def in_progress(self) -> bool:
        """True while the last turn is a live assistant turn."""
        return self._in_progress

    def __len__(self) -> int:
        return len(self._turns)

    def __bool__(self) -> bool:
        return bool(self._turns)

    def to_payload(self) -> list[dict[str, str]]:
        return [turn.to_payload() for turn in self._turns]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_user(self, content: str) -> Turn:
        if self._in_progress:
            raise RuntimeError("Cannot add a user turn while a reply is in progress")
        turn = Turn(role=Role.USER, content=content)
        self._turns.append(turn)
        return turn

    def start_assistant(self, content: str) -> Turn:
        if self._in_progress:
            raise RuntimeError("An assistant turn is already in progress")
        turn = Turn(role=Role.ASSISTANT, content=content)
        self._turns.append(turn)
        self._in_progress = True
        return turn

    def replace_last(self, content: str) -> Turn:
        """Replace the live assistant turn with one carrying *content*."""
        if not self._in_progress:
            raise RuntimeError("No assistant turn in progress")
        turn = dataclasses.replace(self._turns[-1], content=content)
        self._turns[-1] = turn
        return turn

    def finish(self) -> None:
        self._in_progress = False

    def clear(self) -> None:
        self._turns.clear()
        self._in_progress = False
        self.generation += 1
        _logger.debug("Transcript cleared (generation=%d)", self.generation)
