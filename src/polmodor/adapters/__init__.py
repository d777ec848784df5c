"""Adapters module - repository implementations for storage backends."""

from .sqlite import SqliteTaskRepository

__all__ = ["SqliteTaskRepository"]
