"""ConversationSession: owns one conversation and its request lifecycle.

    send_message → POST → chunks → decoder → interpreter → accumulator

Each request walks an explicit state machine::

    IDLE → SENDING → STREAMING → COMPLETED | ABORTED | FAILED

and the session is loading only while SENDING or STREAMING.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from copilot_stream.config import CopilotConfig
from copilot_stream.errors import CopilotError, ErrorClassifier
from copilot_stream.events.bus import EventBus
from copilot_stream.llm.client import AsyncCopilotClient, read_error_body
from copilot_stream.notify import Notifier, NullNotifier
from copilot_stream.stream.accumulator import MessageAccumulator
from copilot_stream.stream.decoder import FrameDecoder
from copilot_stream.stream.interpreter import Action, FrameInterpreter
from copilot_stream.transcript import Transcript
from copilot_stream.types import (
    CopilotEvent,
    EventType,
    OutcomeKind,
    SessionState,
    StreamOutcome,
    Turn,
)

_logger = logging.getLogger(__name__)

_TERMINAL_STATES = {
    OutcomeKind.COMPLETED: SessionState.COMPLETED,
    OutcomeKind.ABORTED: SessionState.ABORTED,
    OutcomeKind.FAILED: SessionState.FAILED,
}

_OUTCOME_EVENTS = {
    OutcomeKind.COMPLETED: EventType.STREAM_COMPLETED,
    OutcomeKind.ABORTED: EventType.STREAM_ABORTED,
    OutcomeKind.FAILED: EventType.STREAM_FAILED,
}


class ConversationSession:
    """One conversation with the copilot endpoint.

    Parameters
    ----------
    client:
        Transport used to open the response stream.
    event_bus:
        Receives transcript and lifecycle events (optional).
    notifier:
        Surfaces each failure once to the user (optional).
    classifier:
        Maps failures to error kinds (optional).

    Only one request may be in flight per session.  Callers must not call
    :meth:`send_message` while :attr:`is_loading` is true.
    """

    def __init__(
        self,
        client: AsyncCopilotClient,
        event_bus: EventBus | None = None,
        notifier: Notifier | None = None,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        self._client = client
        self._event_bus = event_bus or EventBus()
        self._notifier = notifier or NullNotifier()
        self._classifier = classifier or ErrorClassifier()
        self._transcript = Transcript()
        self._state = SessionState.IDLE
        self._last_error: CopilotError | None = None
        self._last_outcome: StreamOutcome | None = None
        self._cancelled = False
        self._task: asyncio.Task[Any] | None = None
        self._interrupted = False

    @classmethod
    def from_config(cls, config: CopilotConfig, **kwargs: Any) -> ConversationSession:
        return cls(AsyncCopilotClient(config.active_profile), **kwargs)

    # ------------------------------------------------------------------
    # Caller-facing state
    # ------------------------------------------------------------------

    @property
    def messages(self) -> tuple[Turn, ...]:
        return self._transcript.turns

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> str | None:
        """Message of the last recorded error, if any."""
        return self._last_error.message if self._last_error else None

    @property
    def last_error(self) -> CopilotError | None:
        return self._last_error

    @property
    def last_outcome(self) -> StreamOutcome | None:
        return self._last_outcome

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> StreamOutcome | None:
        """Send *text* and stream the reply into the transcript.

        Returns ``None`` (and changes nothing) for blank input, otherwise the
        terminal outcome.  Failures are never raised; they are recorded in
        :attr:`last_error` and passed to the notifier.
        """
        if not text or not text.strip():
            return None

        user_turn = self._transcript.add_user(text)
        payload = self._transcript.to_payload()
        generation = self._transcript.generation
        accumulator = MessageAccumulator(self._transcript)

        self._cancelled = False
        self._interrupted = False
        self._last_error = None
        self._state = SessionState.SENDING
        self._task = asyncio.current_task()
        outcome: StreamOutcome | None = None

        try:
            await self._emit(EventType.TURN_APPENDED, {
                "turn": user_turn,
                "index": len(self._transcript) - 1,
            })
            await self._emit(EventType.REQUEST_STARTED, {
                "messages": len(payload),
            })
            outcome = await self._request(payload, accumulator)
        except asyncio.CancelledError:
            if self._interrupted and self._task is not None:
                # Raised by cancel(), not by whoever is awaiting us
                self._task.uncancel()
            outcome = StreamOutcome.aborted()
        except Exception as e:
            _logger.exception("Copilot request failed")
            outcome = StreamOutcome.failed(self._classifier.classify_exception(e))
        finally:
            self._task = None
            accumulator.finish()
            self._state = (
                _TERMINAL_STATES[outcome.kind] if outcome else SessionState.IDLE
            )

        await self._finalize(outcome, generation, accumulator)
        return outcome

    def clear_history(self) -> None:
        """Empty the transcript and forget the last error.

        Safe while a request is in flight: that request's remaining writes
        (and its eventual error) are dropped.
        """
        self._transcript.clear()
        self._last_error = None

    def cancel(self) -> None:
        """Abort the in-flight request.

        Called from outside the request (another task, a signal handler),
        this interrupts the request wherever it is waiting, including a
        stalled body read.  Called from inside it (an event handler), the
        request stops at the next chunk or frame boundary.
        """
        self._cancelled = True
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            self._interrupted = True
            task.cancel()

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> ConversationSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        payload: list[dict[str, str]],
        accumulator: MessageAccumulator,
    ) -> StreamOutcome:
        async with self._client.stream_chat(payload) as resp:
            if not resp.is_success:
                body = await read_error_body(resp)
                error = self._classifier.classify_status(resp.status_code, body)
                _logger.warning(
                    "Copilot endpoint returned %d (%s): %s",
                    resp.status_code, error.kind.value, error.message,
                )
                return StreamOutcome.failed(error)

            self._state = SessionState.STREAMING
            return await self._consume(resp, accumulator)

    async def _consume(
        self,
        resp: httpx.Response,
        accumulator: MessageAccumulator,
    ) -> StreamOutcome:
        decoder = FrameDecoder()
        interpreter = FrameInterpreter()

        async for chunk in resp.aiter_bytes():
            if self._cancelled:
                return StreamOutcome.aborted()
            decoder.feed(chunk)
            await self._drain(decoder, interpreter, accumulator)
            if self._cancelled:
                return StreamOutcome.aborted()
            if interpreter.finished:
                return StreamOutcome.completed()

        # Transport closed; a missing sentinel is a normal completion
        for leftover in decoder.flush():
            result = interpreter.interpret_final(leftover)
            if result.action is Action.DONE:
                break
            if result.action is Action.DELTA:
                await self._apply_delta(accumulator, result.text)
        return StreamOutcome.completed()

    async def _drain(
        self,
        decoder: FrameDecoder,
        interpreter: FrameInterpreter,
        accumulator: MessageAccumulator,
    ) -> None:
        """Interpret every complete frame currently buffered."""
        for frame in decoder.frames():
            if self._cancelled:
                return
            result = interpreter.interpret(frame)
            if result.action is Action.DONE:
                return
            if result.action is Action.INCOMPLETE:
                # Wait for the next chunk before retrying this payload
                decoder.unread(result.text)
                return
            if result.action is Action.DELTA:
                await self._apply_delta(accumulator, result.text)

    async def _apply_delta(self, accumulator: MessageAccumulator, delta: str) -> None:
        first = not accumulator.started
        turn = accumulator.apply(delta)
        if turn is None:
            return
        await self._emit(
            EventType.TURN_APPENDED if first else EventType.TURN_UPDATED,
            {"turn": turn, "delta": delta, "index": len(self._transcript) - 1},
        )

    async def _finalize(
        self,
        outcome: StreamOutcome | None,
        generation: int,
        accumulator: MessageAccumulator,
    ) -> None:
        if outcome is None:
            return
        self._last_outcome = outcome
        stale = generation != self._transcript.generation
        data: dict[str, Any] = {"content_length": len(accumulator.content)}

        if outcome.error is not None:
            data["kind"] = outcome.error.kind.value
            data["error"] = outcome.error.message
            if stale:
                _logger.info(
                    "Not recording error from a cleared conversation: %s",
                    outcome.error.message,
                )
            else:
                self._last_error = outcome.error
                self._notifier.notify(
                    self._classifier.notification_for(outcome.error),
                )

        await self._emit(_OUTCOME_EVENTS[outcome.kind], data)

    async def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        await self._event_bus.emit(CopilotEvent(type=event_type, data=data))
