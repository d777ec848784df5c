"""Repository interfaces for Polmodor.

Abstract base classes defining the persistence contracts. The SQLite
implementation lives in ``polmodor.adapters.sqlite``.
"""

from .repository import SubtaskLookup, TaskRepository

__all__ = [
    "SubtaskLookup",
    "TaskRepository",
]
