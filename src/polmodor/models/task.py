"""Task and subtask data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TaskStatus(str, Enum):
    """Lifecycle of a task: todo until the timer first runs on it."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Subtask(BaseModel):
    """A unit of work with a target pomodoro count."""

    id: str
    task_id: str
    title: str
    pomodoro_target: int = Field(default=1, ge=1)
    pomodoro_completed: int = Field(default=0, ge=0)
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime

    @property
    def remaining_pomodoros(self) -> int:
        return max(0, self.pomodoro_target - self.pomodoro_completed)


class Task(BaseModel):
    """Task model, owning its subtasks.

    ``is_timer_running`` is set while the timer runs on one of the task's
    subtasks.
    """

    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    is_timer_running: bool = False
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    subtasks: list[Subtask] = Field(default_factory=list)

    @property
    def completed_pomodoros(self) -> int:
        return sum(s.pomodoro_completed for s in self.subtasks)

    @property
    def target_pomodoros(self) -> int:
        return sum(s.pomodoro_target for s in self.subtasks)

    @property
    def remaining_pomodoros(self) -> int:
        return sum(s.remaining_pomodoros for s in self.subtasks)

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        due = self.due_date
        if due.tzinfo is None:
            due = due.astimezone()
        return due < datetime.now().astimezone()


class TaskCreate(BaseModel):
    """Schema for creating a task."""

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def blank_category_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class SubtaskCreate(BaseModel):
    """Schema for adding a subtask to a task."""

    title: str = Field(..., min_length=1)
    pomodoro_target: int = Field(default=1, ge=1, le=20)
