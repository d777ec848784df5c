"""Configuration management commands."""

from typing import Optional

import typer
from pydantic import ValidationError

from polmodor.services.config_service import get_config_service
from polmodor.services.timer_service import get_timer_service
from polmodor.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from polmodor.utils.ui.console import get_console
from polmodor.utils.ui.formatters import format_output, format_success, format_warning

from .decorators import AppError, command_wrapper, resolve_output

app = typer.Typer(help="Configuration management commands")
console = get_console()


@app.command("show")
@command_wrapper
def show_config(
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format (default: output.format)"
    ),
) -> None:
    """View current configuration."""
    output = resolve_output(output)
    config = get_config_service().config
    if output == "table":
        flat = {
            f"{section}.{key}": value
            for section, values in config.model_dump().items()
            for key, value in values.items()
        }
        format_output(flat, output)
    else:
        format_output(config.model_dump(), output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.work_minutes)"),
) -> None:
    """Get a configuration value."""
    config_service = get_config_service()
    if not config_service.has(key):
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND)
    console.print(config_service.get(key))


def _attach_clock(key: str | None) -> None:
    """Build the timer so a timer settings change reaches the saved session."""
    if key is None or key.split(".")[0] == "timer":
        get_timer_service()


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.work_minutes)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value.

    Durations outside their allowed range are clamped.
    """
    config_service = get_config_service()
    _attach_clock(key)
    try:
        stored = config_service.set(key, value)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND) from e
    except (ValidationError, ValueError) as e:
        raise AppError(f"Invalid value for '{key}': {value}", ERROR_INVALID_ARGS) from e

    format_success(f"Configuration '{key}' set to '{stored}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: Optional[str] = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_warning("Cancelled")
            raise typer.Exit(0)

    _attach_clock(key)
    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
