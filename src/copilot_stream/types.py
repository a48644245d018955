"""Shared data types for copilot-stream."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from copilot_stream.errors import CopilotError


# ---------------------------------------------------------------------------
# Conversation types
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Author of a transcript turn."""

    USER = "user"
    ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """One message in the conversation transcript.

    Turns are frozen; the live assistant turn is updated by replacing the
    last transcript entry with a copy carrying the longer content.
    """

    role: Role
    content: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_payload(self) -> dict[str, str]:
        """Wire form sent to the endpoint (timestamps are never sent)."""
        return {"role": self.role.value, "content": self.content}


# ---------------------------------------------------------------------------
# Request lifecycle
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """Lifecycle of the most recent request on a session."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_loading(self) -> bool:
        return self in (SessionState.SENDING, SessionState.STREAMING)


class OutcomeKind(enum.Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class StreamOutcome:
    """Terminal state of one request."""

    kind: OutcomeKind
    error: CopilotError | None = None

    @classmethod
    def completed(cls) -> StreamOutcome:
        return cls(OutcomeKind.COMPLETED)

    @classmethod
    def aborted(cls) -> StreamOutcome:
        return cls(OutcomeKind.ABORTED)

    @classmethod
    def failed(cls, error: CopilotError) -> StreamOutcome:
        return cls(OutcomeKind.FAILED, error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.COMPLETED


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Event types emitted by a conversation session."""

    REQUEST_STARTED = "request.started"
    TURN_APPENDED = "turn.appended"
    TURN_UPDATED = "turn.updated"
    STREAM_COMPLETED = "stream.completed"
    STREAM_ABORTED = "stream.aborted"
    STREAM_FAILED = "stream.failed"


@dataclass
class CopilotEvent:
    """Event emitted by a session via the EventBus."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
