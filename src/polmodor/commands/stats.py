"""Focus statistics command."""

from datetime import datetime
from typing import Optional

import typer

from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository
from polmodor.models.timer.session import SessionKind
from polmodor.services.history_service import HistoryLogger
from polmodor.services.stats_service import StatisticsData, StatsService, Timeframe
from polmodor.utils.exit_codes import ERROR_INVALID_ARGS
from polmodor.utils.ui.console import get_console
from polmodor.utils.ui.formatters import (
    format_duration,
    format_output,
    render_progress_bar,
)

from .decorators import AppError, command_wrapper, resolve_output

console = get_console()


def _recent_rows(sessions: list[dict]) -> list[dict]:
    rows = []
    for session in sessions:
        ended = datetime.fromisoformat(session["ended_at"]).astimezone()
        rows.append(
            {
                "ended": ended.strftime("%Y-%m-%d %H:%M"),
                "session": SessionKind(session["kind"]).title,
                "length": format_duration(session["nominal_duration"]),
                "completed": bool(session["completed"]),
            }
        )
    return rows


def _print_summary(stats: StatisticsData) -> None:
    console.print(f"\n[bold cyan]🍅 Focus Summary - {stats.title}[/bold cyan]\n")
    console.print(f"Pomodoros Completed: [bold]{stats.total_pomodoros}[/bold]")
    console.print(f"Total Focus Time:    [bold]{stats.formatted_focus_time}[/bold]")
    console.print(
        f"Average Session:     {format_duration(stats.average_session_seconds)}"
    )
    console.print(f"Tasks Completed:     {stats.completed_tasks}")
    console.print(f"Breaks Taken:        {stats.completed_breaks}")
    console.print(f"Sessions Skipped:    {stats.skipped_sessions}")

    most = max((d.pomodoros for d in stats.daily), default=0)
    console.print("\n[bold]Daily Breakdown:[/bold]")
    for day in stats.daily:
        bar = render_progress_bar(day.pomodoros, most, width=20)
        console.print(
            f"  {day.date.strftime('%a %d %b')}  {bar}  "
            f"{day.pomodoros:>2} ({format_duration(day.focus_seconds)})"
        )

    most = max((w.pomodoros for w in stats.weekly), default=0)
    console.print("\n[bold]Last 4 Weeks:[/bold]")
    for week in stats.weekly:
        bar = render_progress_bar(week.pomodoros, most, width=20)
        console.print(
            f"  Week of {week.week_start.strftime('%d %b')}  {bar}  "
            f"{week.pomodoros:>3} ({format_duration(week.focus_seconds)}), "
            f"{week.tasks_completed} task(s)"
        )

    if stats.categories:
        console.print("\n[bold]By Category:[/bold]")
        for group in stats.categories:
            console.print(
                f"  {group.name:<16} {group.pomodoros:>3} pomodoros "
                f"{group.percentage:>5.1f}%  ({format_duration(group.focus_seconds)}), "
                f"{group.tasks_completed} task(s)"
            )
    console.print()


@command_wrapper
def show_stats(
    days: int = typer.Option(7, "--days", "-d", help="Number of days to include"),
    timeframe: Optional[Timeframe] = typer.Option(
        None,
        "--range",
        "-r",
        case_sensitive=False,
        help="Calendar window instead of --days",
    ),
    recent: int = typer.Option(
        0, "--recent", help="Also list the N most recent sessions"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format (default: output.format)"
    ),
) -> None:
    """Show focus statistics for the last few days."""
    if days < 1:
        raise AppError("--days must be at least 1", ERROR_INVALID_ARGS)
    if recent < 0:
        raise AppError("--recent must not be negative", ERROR_INVALID_ARGS)
    output = resolve_output(output)

    history = HistoryLogger()
    stats = StatsService(history, SqliteTaskRepository()).summary(
        days=days, timeframe=timeframe
    )
    sessions = _recent_rows(history.get_recent_sessions(recent)) if recent else []

    if output != "table":
        data = {
            **stats.model_dump(mode="json"),
            "formatted_focus_time": stats.formatted_focus_time,
        }
        if recent:
            data["recent"] = sessions
        format_output(data, output)
        return

    _print_summary(stats)
    if recent:
        console.print("[bold]Recent Sessions:[/bold]")
        format_output(sessions, "table")
