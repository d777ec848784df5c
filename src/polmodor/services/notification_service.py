"""Session completion notifications."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.panel import Panel

from polmodor.utils.ui.console import get_console


class Notifier(Protocol):
    def notify(self, title: str, message: str) -> None: ...


class ConsoleNotifier:
    """Prints completion notices to the terminal, with an optional bell."""

    def __init__(self, console: Console | None = None, sound: bool = True):
        self.console = console or get_console()
        self.sound = sound

    def notify(self, title: str, message: str) -> None:
        self.console.print(
            Panel(message, title=f"[bold]{title}[/bold]", border_style="green")
        )
        if self.sound:
            self.console.bell()


def completion_message(next_is_break: bool, subtask_title: str | None) -> tuple[str, str]:
    """Title and body announcing the session that comes next."""
    title = "Time for a break!" if next_is_break else "Time to focus!"
    if subtask_title:
        return title, f"Continue working on: {subtask_title}"
    kind = "break" if next_is_break else "focus"
    return title, f"Your {kind} session is ready to begin"
