"""Terminal chat front-end with live, token-by-token rendering."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from pathlib import Path

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.markup import escape
from rich.status import Status

from copilot_stream.config import CopilotConfig, load_config
from copilot_stream.core.orchestrator import ConversationSession
from copilot_stream.notify import ConsoleNotifier
from copilot_stream.types import CopilotEvent, EventType, Role

console = Console()


class StreamingDisplay:
    """Renders session events to the terminal in real time."""

    def __init__(self, con: Console):
        self.con = con
        self._status: Status | None = None
        self._streaming = False

    def attach(self, session: ConversationSession) -> None:
        session.event_bus.subscribe("*", self.handle)

    def handle(self, event: CopilotEvent):
        if event.type == EventType.REQUEST_STARTED:
            self._status = self.con.status("[dim]Thinking...[/dim]")
            self._status.start()

        elif event.type == EventType.TURN_APPENDED:
            turn = event.data["turn"]
            if turn.role is Role.ASSISTANT:
                self._stop_status()
                self._streaming = True
                self.con.print()
                self.con.print(turn.content, end="", highlight=False, markup=False)

        elif event.type == EventType.TURN_UPDATED:
            self.con.print(event.data["delta"], end="", highlight=False, markup=False)

        elif event.type in (
            EventType.STREAM_COMPLETED,
            EventType.STREAM_ABORTED,
            EventType.STREAM_FAILED,
        ):
            self._stop_status()
            if self._streaming:
                self.con.print()
                self._streaming = False
            if event.type == EventType.STREAM_ABORTED:
                self.con.print("[yellow]Cancelled[/yellow]")

    def _stop_status(self):
        if self._status is not None:
            self._status.stop()
            self._status = None


def show_suggestions(questions: list[str]) -> None:
    console.print("[bold]Suggested questions[/bold]")
    for i, q in enumerate(questions, 1):
        console.print(f"  [cyan]/{i}[/cyan] {escape(q)}")


def handle_command(
    cmd: str,
    session: ConversationSession,
    config: CopilotConfig,
) -> str | None:
    """Handle a slash command.

    Returns ``"quit"`` to exit, a question to send for ``/<n>``, ``""`` when
    the command was handled, and ``None`` for unknown commands.
    """
    name = cmd[1:].strip()
    if name in ("quit", "exit", "q"):
        return "quit"
    if name == "clear":
        session.clear_history()
        console.print("[dim]History cleared.[/dim]")
        return ""
    if name == "suggest":
        show_suggestions(config.suggested_questions)
        return ""
    if name == "help":
        console.print(
            "[dim]/clear  clear history\n"
            "/suggest  list suggested questions\n"
            "/<n>  ask suggested question n\n"
            "/quit  exit[/dim]"
        )
        return ""
    if name.isdigit():
        idx = int(name) - 1
        if 0 <= idx < len(config.suggested_questions):
            return config.suggested_questions[idx]
        console.print(f"[red]No suggested question {name}[/red]")
        return ""
    return None


async def _ask(session: ConversationSession, text: str) -> None:
    """Send one message; Ctrl+C while it streams aborts only that reply."""
    start = time.monotonic()
    loop = asyncio.get_running_loop()
    previous = signal.getsignal(signal.SIGINT)
    try:
        loop.add_signal_handler(signal.SIGINT, session.cancel)
        installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        # Loop signal handlers need a Unix main thread
        installed = False
    try:
        await session.send_message(text)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
    console.print(f"[dim]({time.monotonic() - start:.1f}s)[/dim]\n")


async def _repl(session: ConversationSession, config: CopilotConfig) -> None:
    history_path = Path(os.path.expanduser("~/.config/copilot-stream/history"))
    history_path.parent.mkdir(parents=True, exist_ok=True)
    prompt = PromptSession(history=FileHistory(str(history_path)))

    show_suggestions(config.suggested_questions)
    console.print("[dim]Type /help for commands, Ctrl+C to cancel a reply[/dim]\n")

    while True:
        try:
            user_input = (await prompt.prompt_async("❯ ")).strip()
        except (EOFError, KeyboardInterrupt):
            console.print("\n[dim]Goodbye![/dim]")
            return

        if not user_input:
            continue

        if user_input.startswith("/"):
            result = handle_command(user_input, session, config)
            if result == "quit":
                console.print("[dim]Goodbye![/dim]")
                return
            if result is None:
                console.print(f"[red]Unknown command: {escape(user_input)}[/red]")
                continue
            if not result:
                continue
            user_input = result

        await _ask(session, user_input)


async def _run(config: CopilotConfig, message: str | None) -> None:
    async with ConversationSession.from_config(
        config, notifier=ConsoleNotifier(console),
    ) as session:
        StreamingDisplay(console).attach(session)
        if message:
            await _ask(session, message)
            return
        await _repl(session, config)


@click.command()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to copilot_stream.yaml (auto-detected from CWD or ~/.config/copilot-stream/)")
@click.option("--message", "-m", default=None, help="Send one message non-interactively and exit")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def main(config_path: str | None, message: str | None, verbose: bool):
    """copilot-stream - chat with the accounts-payable copilot."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    config = load_config(config_path)
    console.print(f"[dim]Endpoint: {escape(config.active_profile.url)}[/dim]")

    try:
        asyncio.run(_run(config, message))
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")


if __name__ == "__main__":
    main()
