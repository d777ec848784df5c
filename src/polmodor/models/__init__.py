"""Data models for Polmodor."""

from .config_models import AppConfig, LiveStatusConfig, OutputConfig, TimerSettings
from .task import Subtask, SubtaskCreate, Task, TaskCreate, TaskPriority, TaskStatus

__all__ = [
    "AppConfig",
    "LiveStatusConfig",
    "OutputConfig",
    "TimerSettings",
    "Subtask",
    "SubtaskCreate",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
]
