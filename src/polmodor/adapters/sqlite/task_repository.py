"""SQLite implementation of TaskRepository."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path

from polmodor.adapters.sqlite.connection import get_connection
from polmodor.adapters.sqlite.utils import generate_uuid, now_iso, row_to_dict
from polmodor.models.task import Subtask, SubtaskCreate, Task, TaskCreate, TaskStatus
from polmodor.repositories.repository import TaskRepository
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


class SqliteTaskRepository(TaskRepository):
    """SQLite implementation of task repository.

    Also serves as the timer's subtask lookup. All methods are synchronous:
    SQLite calls on a local file are short enough to run inline.
    """

    def __init__(self, db_path: str | Path | None = None):
        """Initialize SQLite task repository.

        Args:
            db_path: Optional database file path. If None, uses default location.
        """
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    # ----- Subtask lookup -----

    def fetch_by_id(self, subtask_id: str) -> Subtask | None:
        row = self.connection.execute(
            "SELECT * FROM subtasks WHERE id = ?", (subtask_id,)
        ).fetchone()
        if row is None:
            return None
        return Subtask.model_validate(row_to_dict(row))

    def save(self, subtask: Subtask) -> Subtask:
        now = now_iso()
        cursor = self.connection.execute(
            """
            UPDATE subtasks
            SET title = ?, pomodoro_target = ?, pomodoro_completed = ?,
                is_completed = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                subtask.title,
                subtask.pomodoro_target,
                subtask.pomodoro_completed,
                1 if subtask.is_completed else 0,
                now,
                subtask.id,
            ),
        )
        self.connection.commit()
        if cursor.rowcount == 0:
            raise LookupError(f"Subtask not found: {subtask.id}")

        saved = self.fetch_by_id(subtask.id)
        assert saved is not None
        return saved

    # ----- Tasks -----

    def create_task(self, task_data: TaskCreate) -> Task:
        task_id = generate_uuid()
        now = now_iso()
        self.connection.execute(
            """
            INSERT INTO tasks (id, title, description, status, priority, category,
                               due_date, is_completed, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                task_id,
                task_data.title,
                task_data.description,
                TaskStatus.TODO.value,
                task_data.priority.value,
                task_data.category,
                task_data.due_date.isoformat() if task_data.due_date else None,
                now,
                now,
            ),
        )
        self.connection.commit()
        logger.info("created task %s", task_id)

        task = self._load_task(task_id)
        assert task is not None
        return task

    def get_task(self, task_id: str) -> Task | None:
        full_id = self._resolve_id("tasks", task_id)
        if full_id is None:
            return None
        return self._load_task(full_id)

    def list_tasks(
        self, include_completed: bool = False, category: str | None = None
    ) -> list[Task]:
        query = "SELECT * FROM tasks WHERE 1 = 1"
        params: list[str] = []
        if not include_completed:
            query += " AND is_completed = 0"
        if category is not None:
            query += " AND category = ? COLLATE NOCASE"
            params.append(category)
        query += " ORDER BY created_at DESC, rowid DESC"

        rows = self.connection.execute(query, params).fetchall()
        return [self._row_to_task(row) for row in rows]

    def add_subtask(self, task_id: str, subtask_data: SubtaskCreate) -> Subtask:
        full_id = self._resolve_id("tasks", task_id)
        if full_id is None:
            raise LookupError(f"Task not found: {task_id}")

        subtask_id = generate_uuid()
        now = now_iso()
        self.connection.execute(
            """
            INSERT INTO subtasks (id, task_id, title, pomodoro_target,
                                  pomodoro_completed, is_completed, created_at, updated_at)
            VALUES (?, ?, ?, ?, 0, 0, ?, ?)
            """,
            (subtask_id, full_id, subtask_data.title, subtask_data.pomodoro_target, now, now),
        )
        self.connection.commit()
        logger.info("added subtask %s to task %s", subtask_id, full_id)

        subtask = self.fetch_by_id(subtask_id)
        assert subtask is not None
        return subtask

    def complete_task(self, task_id: str) -> Task:
        full_id = self._resolve_id("tasks", task_id)
        if full_id is None:
            raise LookupError(f"Task not found: {task_id}")

        now = now_iso()
        self.connection.execute(
            """
            UPDATE tasks
            SET is_completed = 1, status = ?, is_timer_running = 0,
                completed_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (TaskStatus.COMPLETED.value, now, now, full_id),
        )
        self.connection.commit()
        logger.info("completed task %s", full_id)

        task = self._load_task(full_id)
        assert task is not None
        return task

    def delete_task(self, task_id: str) -> bool:
        full_id = self._resolve_id("tasks", task_id)
        if full_id is None:
            return False

        # Subtasks go with it through ON DELETE CASCADE
        self.connection.execute("DELETE FROM tasks WHERE id = ?", (full_id,))
        self.connection.commit()
        logger.info("deleted task %s", full_id)
        return True

    def set_timer_running(self, subtask_id: str | None) -> Task | None:
        now = now_iso()
        self.connection.execute(
            "UPDATE tasks SET is_timer_running = 0, updated_at = ? WHERE is_timer_running = 1",
            (now,),
        )
        row = None
        if subtask_id is not None:
            row = self.connection.execute(
                "SELECT task_id FROM subtasks WHERE id = ?", (subtask_id,)
            ).fetchone()
        if row is None:
            self.connection.commit()
            return None

        task_id = row["task_id"]
        # A task leaves todo the first time the timer runs on it
        self.connection.execute(
            """
            UPDATE tasks
            SET is_timer_running = 1,
                status = CASE WHEN status = ? THEN ? ELSE status END,
                updated_at = ?
            WHERE id = ?
            """,
            (TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value, now, task_id),
        )
        self.connection.commit()
        return self._load_task(task_id)

    def completed_tasks(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> list[Task]:
        query = "SELECT * FROM tasks WHERE is_completed = 1 AND completed_at IS NOT NULL"
        params: list[str] = []
        if since is not None:
            query += " AND completed_at >= ?"
            params.append(since.astimezone(UTC).isoformat())
        if until is not None:
            query += " AND completed_at < ?"
            params.append(until.astimezone(UTC).isoformat())
        query += " ORDER BY completed_at"

        rows = self.connection.execute(query, params).fetchall()
        return [self._row_to_task(row) for row in rows]

    def subtask_categories(self) -> dict[str, str | None]:
        rows = self.connection.execute(
            """
            SELECT subtasks.id AS subtask_id, tasks.category AS category
            FROM subtasks JOIN tasks ON tasks.id = subtasks.task_id
            """
        ).fetchall()
        return {row["subtask_id"]: row["category"] for row in rows}

    def resolve_subtask_id(self, id_or_prefix: str) -> str | None:
        return self._resolve_id("subtasks", id_or_prefix)

    # ----- Helpers -----

    def _resolve_id(self, table: str, id_or_prefix: str) -> str | None:
        """Exact ID match first, then a prefix matching exactly one row."""
        row = self.connection.execute(
            f"SELECT id FROM {table} WHERE id = ?", (id_or_prefix,)
        ).fetchone()
        if row is not None:
            return row["id"]

        rows = self.connection.execute(
            f"SELECT id FROM {table} WHERE id LIKE ? LIMIT 2", (f"{id_or_prefix}%",)
        ).fetchall()
        if len(rows) != 1:
            if rows:
                logger.debug("ambiguous %s prefix %r", table, id_or_prefix)
            return None
        return rows[0]["id"]

    def _load_task(self, task_id: str) -> Task | None:
        row = self.connection.execute(
            "SELECT * FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        task_dict = row_to_dict(row)
        subtask_rows = self.connection.execute(
            "SELECT * FROM subtasks WHERE task_id = ? ORDER BY created_at, rowid",
            (task_dict["id"],),
        ).fetchall()
        task_dict["subtasks"] = [
            Subtask.model_validate(row_to_dict(r)) for r in subtask_rows
        ]
        return Task.model_validate(task_dict)
