"""Live terminal view of the session clock."""

from __future__ import annotations

from datetime import datetime

from rich.align import Align
from rich.console import Group
from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from polmodor.models.timer import cycle
from polmodor.models.timer.clock import SessionClock
from polmodor.utils.ui.formatters import format_clock, render_progress_bar


def _timer_color(clock: SessionClock, remaining: float) -> str:
    if clock.snapshot.is_paused:
        return "yellow"
    if clock.kind.is_break:
        return "green"
    if remaining < 60:
        return "red"
    if remaining < 300:
        return "yellow"
    return "cyan"


class TimerDisplay:
    """Builds the renderable shown while ``timer run`` drives the clock."""

    bar_width = 40

    def create_layout(self, clock: SessionClock, now: datetime | None = None) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        snap = clock.snapshot
        if snap.is_paused:
            header = Text("⏸  PAUSED", style="bold yellow", justify="center")
        else:
            header = Text(
                f"{snap.kind.emoji}  {snap.kind.title}",
                style="bold green" if snap.kind.is_break else "bold cyan",
                justify="center",
            )
        layout["header"].update(Align.center(header, vertical="middle"))
        layout["body"].update(Align.center(self.create_body(clock, now), vertical="middle"))

        footer = Text(
            "Ctrl-C to pause  •  " + ("🔒 locked" if snap.locked else "unlocked"),
            style="dim",
            justify="center",
        )
        layout["footer"].update(Align.center(footer, vertical="middle"))
        return layout

    def create_body(self, clock: SessionClock, now: datetime | None = None) -> Group:
        snap = clock.snapshot
        remaining = clock.query_remaining(now)
        components = []

        if snap.active_subtask_id:
            label = Text(clock.label[:50], style="bold white", justify="center")
            label.append(f" (#{snap.active_subtask_id[:8]})", style="dim")
            components.append(label)
            components.append(Text(""))

        components.append(
            Text(
                format_clock(remaining),
                style=f"bold {_timer_color(clock, remaining)}",
                justify="center",
            )
        )
        components.append(Text(""))

        progress = clock.query_progress(now)
        bar = render_progress_bar(progress, 1.0, width=self.bar_width)
        components.append(Text(f"{bar}  {int(progress * 100)}%", style="dim", justify="center"))

        dots = cycle.progress_dots(
            snap.kind,
            snap.completed_work_count,
            clock.settings.pomodoros_until_long_break,
        )
        components.append(Text(""))
        components.append(Text(dots, justify="center"))
        return Group(*components)


def status_panel(clock: SessionClock, now: datetime | None = None) -> Panel:
    """One-shot status summary for ``timer status``."""
    snap = clock.snapshot
    remaining = clock.query_remaining(now)

    if snap.is_running:
        state = "[green]running[/green]"
    elif snap.is_paused:
        state = "[yellow]paused[/yellow]"
    else:
        state = "[dim]idle[/dim]"

    lines = [
        f"[bold]{snap.kind.emoji} {snap.kind.title}[/bold]  {state}",
        f"Remaining: [bold]{format_clock(remaining)}[/bold]",
        f"Progress:  {render_progress_bar(clock.query_progress(now), 1.0, width=20)}",
        f"Cycle:     {cycle.progress_dots(snap.kind, snap.completed_work_count, clock.settings.pomodoros_until_long_break)}"
        f"  ({snap.completed_work_count} completed)",
        f"Subtask:   {clock.label if snap.active_subtask_id else '-'}",
    ]
    if snap.locked:
        lines.append("[red]🔒 Locked[/red]")
    return Panel("\n".join(lines), title="Polmodor", border_style="cyan")
