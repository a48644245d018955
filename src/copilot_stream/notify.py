"""User-facing failure notifications."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape

from copilot_stream.errors import Notification


class Notifier(Protocol):
    """Anything that can surface a notification to the user."""

    def notify(self, notification: Notification) -> None:
        ...


class ConsoleNotifier:
    """Print notifications to a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(self, notification: Notification) -> None:
        self.console.print(f"[bold red]{escape(notification.title)}[/bold red]")
        if notification.description:
            self.console.print(f"[dim]{escape(notification.description)}[/dim]")


class NullNotifier:
    """Discard notifications (library use without a terminal)."""

    def notify(self, notification: Notification) -> None:
        pass
