"""Decorators for command functions."""

import asyncio
import functools
import time
import traceback
from collections.abc import Callable

import typer

from polmodor.services.config_service import get_config_service
from polmodor.utils.exit_codes import ERROR_GENERAL, ERROR_INVALID_ARGS, get_exit_code_name
from polmodor.utils.logger import get_logger
from polmodor.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


OUTPUT_FORMATS = ("table", "json", "yaml")


def resolve_output(output: str | None) -> str:
    """Return *output*, or the configured default format when it is None."""
    if output is None:
        output = get_config_service().config.output.format
    if output not in OUTPUT_FORMATS:
        raise AppError(
            f"Unknown output format '{output}' (choose from {', '.join(OUTPUT_FORMATS)})",
            ERROR_INVALID_ARGS,
        )
    return output


def command_wrapper(func: Callable) -> Callable:
    """Log the command, run it (awaiting coroutines) and map errors to exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if asyncio.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            elapsed = time.monotonic() - start
            logger.info("command completed: %s (%.3fs)", cmd, elapsed)
            return result

        except AppError as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) [%s] - %s",
                cmd,
                elapsed,
                get_exit_code_name(e.exit_code),
                str(e),
            )
            format_error(str(e))
            raise typer.Exit(code=e.exit_code) from e

        except typer.Exit:
            # Re-raise Typer's own exits (like --help or explicit Exit(0))
            raise

        except Exception as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                elapsed,
                str(e),
                traceback.format_exc(),
            )
            # Generic fallback for unexpected crashes
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=ERROR_GENERAL) from e

    return wrapper
