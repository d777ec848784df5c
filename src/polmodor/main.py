"""Main entry point for Polmodor."""

import typer

from polmodor import __version__
from polmodor.commands import config, stats, tasks, timer
from polmodor.utils.ui.console import get_console

app = typer.Typer(
    name="polmodor",
    help="A Pomodoro timer for focused work, driven from the terminal",
    no_args_is_help=True,
)

console = get_console()


# Add subcommands
app.add_typer(timer.app, name="timer", help="Pomodoro timer for focus sessions")
app.add_typer(tasks.app, name="tasks", help="Task and subtask management")
app.add_typer(config.app, name="config", help="Configuration management")
app.command("stats")(stats.show_stats)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Polmodor[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
