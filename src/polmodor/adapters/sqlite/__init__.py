"""SQLite adapter module - Local database storage implementation."""

from polmodor.adapters.sqlite.connection import DatabaseConnection, get_connection
from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository

__all__ = [
    "SqliteTaskRepository",
    "DatabaseConnection",
    "get_connection",
]
