"""Line-oriented frame decoder for ``text/event-stream`` response bodies.

The transport hands us raw chunks with no alignment guarantee: a chunk may
end in the middle of ``data: ``, in the middle of a JSON payload, or in the
middle of a multi-byte UTF-8 character.  ``FrameDecoder`` buffers the
unconsumed tail between reads and only ever yields complete lines.
"""

from __future__ import annotations

import codecs
import enum
import logging
from typing import Generator

_logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
COMMENT_MARKER = ":"


class FrameKind(enum.Enum):
    DATA = "data"
    COMMENT = "comment"
    BLANK = "blank"
    OTHER = "other"


def classify_line(line: str) -> tuple[FrameKind, str]:
    """Label one complete line (newline already removed).

    Returns ``(kind, payload)``; *payload* is only meaningful for
    ``FrameKind.DATA`` and has the data prefix stripped.
    """
    if line.endswith("\r"):
        line = line[:-1]
    if not line.strip():
        return FrameKind.BLANK, ""
    if line.startswith(COMMENT_MARKER):
        return FrameKind.COMMENT, ""
    if not line.startswith(DATA_PREFIX):
        return FrameKind.OTHER, ""
    return FrameKind.DATA, line[len(DATA_PREFIX):]


class FrameDecoder:
    """Turn arbitrarily-chunked bytes into data-frame payloads.

    Usage::

        decoder = FrameDecoder()
        async for chunk in response.aiter_bytes():
            decoder.feed(chunk)
            for payload in decoder.frames():
                ...
        for payload in decoder.flush():
            ...

    ``frames()`` pulls lines from the buffer lazily, so a caller that stops
    iterating early leaves the remaining lines buffered for the next call.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received but not yet consumed as a line."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> None:
        """Append a raw chunk to the pending buffer."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

    def frames(self) -> Generator[str, None, None]:
        """Yield the payload of every complete data line in the buffer."""
        while True:
            newline = self._buffer.find("\n")
            if newline < 0:
                return
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            kind, payload = classify_line(line)
            if kind is FrameKind.DATA:
                yield payload
            elif kind is FrameKind.OTHER:
                _logger.debug("Ignoring non-data line: %.80r", line)

    def unread(self, payload: str) -> None:
        """Put a data payload back at the front of the buffer as a full line."""
        self._buffer = f"{DATA_PREFIX}{payload}\n{self._buffer}"

    def flush(self) -> Generator[str, None, None]:
        """Drain the buffer at end of stream, including an unterminated line."""
        self._buffer += self._decoder.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        for line in remaining.split("\n"):
            kind, payload = classify_line(line)
            if kind is FrameKind.DATA:
                yield payload
