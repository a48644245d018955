"""Error taxonomy and classification for endpoint failures.

Every failure a session can hit ends up as a :class:`CopilotError` with one
of the :class:`ErrorKind` categories.  The category only selects the copy
shown to the user; all kinds follow the same propagation path.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

import httpx

GENERIC_UPSTREAM_MESSAGE = "Error communicating with the assistant"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ErrorKind(enum.Enum):
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSPORT = "transport"
    UPSTREAM = "upstream"
    UNKNOWN = "unknown"


class CopilotError(Exception):
    """A classified request failure."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"CopilotError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


@dataclass(frozen=True)
class Notification:
    """User-facing copy for one failure."""

    title: str
    description: str = ""


# Status codes with dedicated categories
_STATUS_KINDS: dict[int, ErrorKind] = {
    429: ErrorKind.RATE_LIMITED,
    402: ErrorKind.QUOTA_EXCEEDED,
}


class ErrorClassifier:
    """Map endpoint outcomes to :class:`CopilotError` values.

    Error kinds:
      rate_limited   - 429, request volume exhausted
      quota_exceeded - 402, billing / credits exhausted
      transport      - network failure before or during the response
      upstream       - any other non-2xx response
      unknown        - exceptions not otherwise classified
    """

    def classify_status(
        self,
        status_code: int,
        body: Any = None,
    ) -> CopilotError:
        """Classify a non-success response.

        *body* is the decoded JSON error body, if any.  Its ``error`` string
        becomes the message; otherwise a generic fallback is used.
        """
        kind = _STATUS_KINDS.get(status_code, ErrorKind.UPSTREAM)
        message = _error_message_from_body(body) or GENERIC_UPSTREAM_MESSAGE
        return CopilotError(kind, message, status_code=status_code)

    def classify_exception(self, exc: BaseException) -> CopilotError:
        """Classify an exception raised while talking to the endpoint."""
        if isinstance(exc, CopilotError):
            return exc
        kind = (
            ErrorKind.TRANSPORT
            if isinstance(exc, httpx.TransportError)
            else ErrorKind.UNKNOWN
        )
        message = str(exc) or UNKNOWN_ERROR_MESSAGE
        return CopilotError(kind, message)

    @staticmethod
    def notification_for(error: CopilotError) -> Notification:
        """Return the user-facing notification for *error*."""
        if error.kind is ErrorKind.RATE_LIMITED:
            return Notification(
                "Rate limit reached",
                "Please try again in a few moments.",
            )
        if error.kind is ErrorKind.QUOTA_EXCEEDED:
            return Notification(
                "Insufficient AI credits",
                "Please top up your account.",
            )
        if error.kind is ErrorKind.UPSTREAM:
            return Notification("Assistant error", error.message)
        return Notification(GENERIC_UPSTREAM_MESSAGE)


def _error_message_from_body(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    message = body.get("error")
    if isinstance(message, str) and message.strip():
        return message
    return None
