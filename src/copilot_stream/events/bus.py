"""Ordered async pub/sub between a session and whatever renders it."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from copilot_stream.types import CopilotEvent, EventType

_logger = logging.getLogger(__name__)

# Subscribing to this key delivers every event type
ALL_EVENTS = "*"

# Sync or async callables taking a CopilotEvent
Handler = Callable[[CopilotEvent], Any]


class EventBus:
    """Deliver session events to subscribers, one at a time and in order.

    A delta must reach the terminal before the next one does, so handlers
    are awaited sequentially: first those subscribed to the event's type,
    then the catch-all ones.  A handler that raises is logged and skipped;
    rendering problems never fail the request that emitted the event.
    """

    def __init__(self) -> None:
        self._by_type: dict[EventType, list[Handler]] = {}
        self._catch_all: list[Handler] = []

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        """Register *handler* for *event_type* (an EventType, its value, or ``"*"``)."""
        if event_type == ALL_EVENTS:
            self._catch_all.append(handler)
        else:
            self._by_type.setdefault(EventType(event_type), []).append(handler)

    async def emit(self, event: CopilotEvent) -> None:
        for handler in (*self._by_type.get(event.type, ()), *self._catch_all):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.exception(
                    "Handler %s failed on %s", getattr(handler, "__name__", handler),
                    event.type.value,
                )
