"""Pomodoro timer commands."""

import asyncio

import typer
from rich.live import Live

from polmodor.models.timer.clock import SessionClock
from polmodor.models.timer.events import TimerEvent, TimerEventType
from polmodor.services.timer_service import TimerService, get_timer_service
from polmodor.utils.exit_codes import ERROR_LOCKED, ERROR_NOT_FOUND
from polmodor.utils.ui.console import get_console
from polmodor.utils.ui.formatters import (
    format_clock,
    format_info,
    format_output,
    format_success,
)
from polmodor.utils.ui.timer_view import TimerDisplay, status_panel

from .decorators import AppError, command_wrapper, resolve_output

app = typer.Typer(help="Pomodoro timer for focus sessions")
console = get_console()


def _require_unlocked(clock: SessionClock, force: bool) -> None:
    if clock.snapshot.locked and not force:
        raise AppError(
            "Timer is locked. Unlock it with 'polmodor timer lock' or pass --force.",
            exit_code=ERROR_LOCKED,
        )


def _describe(clock: SessionClock) -> str:
    return f"{clock.kind.emoji} {clock.kind.title} ({format_clock(clock.query_remaining())})"


@app.command("start")
@command_wrapper
def start_timer() -> None:
    """Start a new session or resume a paused one."""
    service = get_timer_service()
    clock = service.clock
    if clock.is_running:
        format_info(f"Already running: {_describe(clock)}")
        return

    resuming = clock.snapshot.is_paused
    clock.start()
    format_success(f"{'Resumed' if resuming else 'Started'} {_describe(clock)}")


@app.command("pause")
@command_wrapper
def pause_timer(
    force: bool = typer.Option(False, "--force", "-f", help="Pause even if locked"),
) -> None:
    """Pause the running session."""
    clock = get_timer_service().clock
    _require_unlocked(clock, force)
    if not clock.is_running:
        format_info("Timer is not running")
        return

    clock.pause()
    format_success(f"Paused {_describe(clock)}")


@app.command("reset")
@command_wrapper
def reset_timer(
    cycle: bool = typer.Option(
        False, "--cycle", help="Also return to a focus session and clear the cycle"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Reset even if locked"),
) -> None:
    """Stop the session and reload its full duration."""
    clock = get_timer_service().clock
    _require_unlocked(clock, force)
    clock.reset(full=cycle)
    format_success(f"Timer reset: {_describe(clock)}")


@app.command("skip")
@command_wrapper
def skip_session(
    force: bool = typer.Option(False, "--force", "-f", help="Skip even if locked"),
) -> None:
    """Skip to the next session without counting the current one."""
    clock = get_timer_service().clock
    _require_unlocked(clock, force)
    clock.skip_to_next()
    format_success(f"Skipped. Next up: {_describe(clock)}")


@app.command("status")
@command_wrapper
def timer_status(
    output: str | None = typer.Option(
        None, "--output", "-o", help="Output format (default: output.format)"
    ),
) -> None:
    """Show the current session."""
    output = resolve_output(output)
    clock = get_timer_service().clock
    if output == "table":
        console.print(status_panel(clock))
        return

    snap = clock.snapshot
    data = {
        **snap.to_dict(),
        "remaining": round(clock.query_remaining(), 1),
        "progress": round(clock.query_progress(), 4),
        "label": clock.label,
    }
    format_output(data, output)


@app.command("lock")
@command_wrapper
def toggle_lock() -> None:
    """Lock or unlock the timer controls."""
    locked = get_timer_service().clock.toggle_lock()
    format_success("Timer locked" if locked else "Timer unlocked")


@app.command("use")
@command_wrapper
def use_subtask(
    subtask_id: str | None = typer.Argument(None, help="Subtask ID or unique prefix"),
    clear: bool = typer.Option(False, "--clear", help="Detach from any subtask"),
) -> None:
    """Attach the timer to a subtask."""
    service = get_timer_service()
    if clear or subtask_id is None:
        service.clock.set_active_subtask(None)
        format_success("Timer detached from subtask")
        return

    full_id = service.repository.resolve_subtask_id(subtask_id)
    if full_id is None:
        raise AppError(f"Subtask not found: {subtask_id}", exit_code=ERROR_NOT_FOUND)

    service.clock.set_active_subtask(full_id)
    format_success(f"Working on: {service.clock.label}")


async def drive(service: TimerService, refresh: float = 0.25) -> bool:
    """Run the clock on this loop until a session completes.

    Returns True on completion. Returns False when interrupted (the session
    is paused) or when another process stopped, paused or skipped the
    session; the stored record is re-read whenever it changes on disk.
    """
    clock = service.clock
    done = asyncio.Event()

    def on_event(event: TimerEvent) -> None:
        if event.type is TimerEventType.COMPLETED:
            done.set()

    unsubscribe = service.events.subscribe(on_event)
    display = TimerDisplay()
    try:
        # Restoring on a running loop arms the ticker for a running session
        clock.reconcile()
        if not done.is_set() and not clock.is_running:
            clock.start()
        seen = service.store.fingerprint()

        with Live(
            display.create_layout(clock), console=console, refresh_per_second=4
        ) as live:
            while not done.is_set():
                current = service.store.fingerprint()
                if current != seen:
                    seen = current
                    clock.reload()
                    if not done.is_set() and not clock.is_running:
                        return False

                live.update(display.create_layout(clock))
                try:
                    await asyncio.wait_for(done.wait(), timeout=refresh)
                except TimeoutError:
                    pass
        return True
    except (KeyboardInterrupt, asyncio.CancelledError):
        clock.pause()
        return False
    finally:
        unsubscribe()
        await clock.drain()


@app.command("run")
@command_wrapper
def run_timer() -> None:
    """Run the timer in the foreground until the session ends (Ctrl-C pauses)."""
    service = get_timer_service()
    try:
        completed = asyncio.run(drive(service))
    except KeyboardInterrupt:
        completed = False
        if service.clock.is_running:
            service.clock.pause()

    clock = service.clock
    if completed:
        format_success(f"Session complete. Next up: {_describe(clock)}")
    elif clock.snapshot.is_paused:
        format_info(f"Paused at {format_clock(clock.query_remaining())}")
    else:
        format_info(f"Timer changed by another command. Now: {_describe(clock)}")
