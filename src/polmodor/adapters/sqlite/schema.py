"""Database schema definitions for the local SQLite store.

Tasks and their subtasks back the timer's active subtask; the
``pomodoro_sessions`` table is the session history used for statistics.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime

# Schema version tracking
SCHEMA_VERSION = 2

CREATE_TASKS_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'todo',
    priority TEXT NOT NULL DEFAULT 'medium',
    category TEXT,
    due_date DATETIME,
    is_timer_running BOOLEAN NOT NULL DEFAULT 0,
    is_completed BOOLEAN DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    completed_at DATETIME
)
"""

CREATE_SUBTASKS_TABLE = """
CREATE TABLE IF NOT EXISTS subtasks (
    id TEXT PRIMARY KEY,
    task_id TEXT NOT NULL,
    title TEXT NOT NULL,
    pomodoro_target INTEGER NOT NULL DEFAULT 1,
    pomodoro_completed INTEGER NOT NULL DEFAULT 0,
    is_completed BOOLEAN DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE
)
"""

# One row per finished (completed or skipped) session
CREATE_POMODORO_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS pomodoro_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    subtask_id TEXT,
    started_at DATETIME,
    ended_at DATETIME NOT NULL,
    nominal_duration INTEGER NOT NULL,
    completed BOOLEAN NOT NULL DEFAULT 1
)
"""

CREATE_SCHEMA_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at DATETIME NOT NULL
)
"""

# Columns added after version 1, for databases created before them
TASK_COLUMNS_V2 = {
    "status": "TEXT NOT NULL DEFAULT 'todo'",
    "priority": "TEXT NOT NULL DEFAULT 'medium'",
    "category": "TEXT",
    "due_date": "DATETIME",
    "is_timer_running": "BOOLEAN NOT NULL DEFAULT 0",
}

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_subtasks_task ON subtasks(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(is_completed)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_ended ON pomodoro_sessions(ended_at)",
]

ALL_TABLES = [
    CREATE_SCHEMA_VERSION_TABLE,
    CREATE_TASKS_TABLE,
    CREATE_SUBTASKS_TABLE,
    CREATE_POMODORO_SESSIONS_TABLE,
]


def _add_missing_columns(
    connection: sqlite3.Connection, table: str, columns: dict[str, str]
) -> None:
    existing = {
        row[1] for row in connection.execute(f"PRAGMA table_info({table})").fetchall()
    }
    for name, definition in columns.items():
        if name not in existing:
            connection.execute(f"ALTER TABLE {table} ADD COLUMN {name} {definition}")


def initialize_schema(connection: sqlite3.Connection) -> None:
    """Create all tables and indexes and bring older databases up to date."""
    for statement in ALL_TABLES:
        connection.execute(statement)

    _add_missing_columns(connection, "tasks", TASK_COLUMNS_V2)
    # Version 1 databases only tracked completion by flag
    connection.execute(
        "UPDATE tasks SET status = 'completed' WHERE is_completed = 1 AND status != 'completed'"
    )

    for statement in CREATE_INDEXES:
        connection.execute(statement)

    row = connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
    if row[0] is None or row[0] < SCHEMA_VERSION:
        connection.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (SCHEMA_VERSION, datetime.now(UTC).isoformat()),
        )
    connection.commit()
