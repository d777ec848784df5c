"""Task and subtask management commands."""

from datetime import datetime
from typing import Optional

import typer
from pydantic import ValidationError

from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository
from polmodor.models.task import SubtaskCreate, Task, TaskCreate, TaskPriority
from polmodor.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from polmodor.utils.ui.console import get_console
from polmodor.utils.ui.formatters import format_output, format_success, format_warning

from .decorators import AppError, command_wrapper, resolve_output

app = typer.Typer(help="Task management commands")
console = get_console()


def _task_rows(tasks: list[Task]) -> list[dict]:
    rows = []
    for task in tasks:
        due = task.due_date.strftime("%Y-%m-%d") if task.due_date else ""
        if task.is_overdue:
            due = f"[red]{due}[/red]"
        rows.append(
            {
                "id": task.id[:8],
                "title": f"⏱ {task.title}" if task.is_timer_running else task.title,
                "status": task.status.value,
                "priority": task.priority.value,
                "category": task.category or "",
                "due": due,
                "pomodoros": f"{task.completed_pomodoros}/{task.target_pomodoros}",
                "left": task.remaining_pomodoros,
            }
        )
        for subtask in task.subtasks:
            rows.append(
                {
                    "id": f"  {subtask.id[:8]}",
                    "title": f"  └ {subtask.title}",
                    "status": "completed" if subtask.is_completed else "",
                    "priority": "",
                    "category": "",
                    "due": "",
                    "pomodoros": f"{subtask.pomodoro_completed}/{subtask.pomodoro_target}",
                    "left": subtask.remaining_pomodoros,
                }
            )
    return rows


@app.command("add")
@command_wrapper
def add_task(
    title: str = typer.Argument(..., help="Task title"),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Task description"
    ),
    priority: TaskPriority = typer.Option(
        TaskPriority.MEDIUM, "--priority", "-p", case_sensitive=False, help="Task priority"
    ),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Category (e.g., Work, Study, Personal)"
    ),
    due: Optional[datetime] = typer.Option(
        None,
        "--due",
        formats=["%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"],
        help="Due date (YYYY-MM-DD or YYYY-MM-DD HH:MM, local time)",
    ),
) -> None:
    """Create a task."""
    try:
        data = TaskCreate(
            title=title,
            description=description,
            priority=priority,
            category=category,
            due_date=due.astimezone() if due else None,
        )
    except ValidationError as e:
        raise AppError(f"Invalid task: {e.errors()[0]['msg']}", ERROR_INVALID_ARGS) from e

    task = SqliteTaskRepository().create_task(data)
    format_success(f"Created task {task.id[:8]}: {task.title}")


@app.command("list")
@command_wrapper
def list_tasks(
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Include completed tasks"),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Only tasks in this category"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format (default: output.format)"
    ),
) -> None:
    """List tasks with their subtasks."""
    output = resolve_output(output)
    tasks = SqliteTaskRepository().list_tasks(
        include_completed=all_tasks, category=category
    )
    if not tasks:
        format_warning("No tasks found")
        return

    if output == "table":
        format_output(_task_rows(tasks), output)
    else:
        format_output([t.model_dump(mode="json") for t in tasks], output)


@app.command("subtask")
@command_wrapper
def add_subtask(
    task_id: str = typer.Argument(..., help="Task ID or unique prefix"),
    title: str = typer.Argument(..., help="Subtask title"),
    pomodoros: int = typer.Option(
        1, "--pomodoros", "-p", help="Target number of pomodoros (1-20)"
    ),
) -> None:
    """Add a subtask to a task."""
    try:
        data = SubtaskCreate(title=title, pomodoro_target=pomodoros)
    except ValidationError as e:
        raise AppError(
            f"Invalid subtask: {e.errors()[0]['msg']}", ERROR_INVALID_ARGS
        ) from e

    try:
        subtask = SqliteTaskRepository().add_subtask(task_id, data)
    except LookupError as e:
        raise AppError(str(e), ERROR_NOT_FOUND) from e
    format_success(
        f"Added subtask {subtask.id[:8]}: {subtask.title} "
        f"({subtask.pomodoro_target} pomodoro{'s' if subtask.pomodoro_target != 1 else ''})"
    )


@app.command("done")
@command_wrapper
def complete_task(task_id: str = typer.Argument(..., help="Task ID or unique prefix")) -> None:
    """Mark a task complete."""
    try:
        task = SqliteTaskRepository().complete_task(task_id)
    except LookupError as e:
        raise AppError(str(e), ERROR_NOT_FOUND) from e
    format_success(f"Completed task: {task.title}")


@app.command("delete")
@command_wrapper
def delete_task(
    task_id: str = typer.Argument(..., help="Task ID or unique prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task and its subtasks."""
    repository = SqliteTaskRepository()
    task = repository.get_task(task_id)
    if task is None:
        raise AppError(f"Task not found: {task_id}", ERROR_NOT_FOUND)

    if not yes and not typer.confirm(f"Delete '{task.title}' and its subtasks?"):
        format_warning("Cancelled")
        raise typer.Exit(0)

    repository.delete_task(task.id)
    format_success(f"Deleted task: {task.title}")
