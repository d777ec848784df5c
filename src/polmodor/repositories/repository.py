"""Repository abstraction layer for Polmodor.

The timer core only ever sees :class:`SubtaskLookup`, a narrow capability to
fetch and save a subtask by id. The full :class:`TaskRepository` adds the
CRUD surface used by the ``tasks`` commands.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from polmodor.models.task import Subtask, SubtaskCreate, Task, TaskCreate


class SubtaskLookup(ABC):
    """Lookup capability injected into the timer core."""

    @abstractmethod
    def fetch_by_id(self, subtask_id: str) -> Subtask | None:
        """Get a subtask by ID, or None if it does not exist."""
        raise NotImplementedError(
            "SubtaskLookup.fetch_by_id() must be implemented by adapter"
        )

    @abstractmethod
    def save(self, subtask: Subtask) -> Subtask:
        """Persist the pomodoro progress and completion of *subtask*."""
        raise NotImplementedError("SubtaskLookup.save() must be implemented by adapter")


class TaskRepository(SubtaskLookup):
    """Abstract base class for task persistence operations."""

    @abstractmethod
    def create_task(self, task_data: TaskCreate) -> Task:
        """Create a new task.

        Args:
            task_data: TaskCreate object with task details

        Returns:
            Created Task object with generated ID and timestamps
        """
        raise NotImplementedError(
            "TaskRepository.create_task() must be implemented by adapter"
        )

    @abstractmethod
    def get_task(self, task_id: str) -> Task | None:
        """Get a task (with its subtasks) by ID or unique ID prefix."""
        raise NotImplementedError(
            "TaskRepository.get_task() must be implemented by adapter"
        )

    @abstractmethod
    def list_tasks(
        self, include_completed: bool = False, category: str | None = None
    ) -> list[Task]:
        """List tasks, newest first, optionally only those in *category*."""
        raise NotImplementedError(
            "TaskRepository.list_tasks() must be implemented by adapter"
        )

    @abstractmethod
    def add_subtask(self, task_id: str, subtask_data: SubtaskCreate) -> Subtask:
        """Add a subtask to an existing task.

        Raises:
            LookupError: If the task does not exist
        """
        raise NotImplementedError(
            "TaskRepository.add_subtask() must be implemented by adapter"
        )

    @abstractmethod
    def complete_task(self, task_id: str) -> Task:
        """Mark a task complete.

        Raises:
            LookupError: If the task does not exist
        """
        raise NotImplementedError(
            "TaskRepository.complete_task() must be implemented by adapter"
        )

    @abstractmethod
    def delete_task(self, task_id: str) -> bool:
        """Delete a task and its subtasks. Returns False if it did not exist."""
        raise NotImplementedError(
            "TaskRepository.delete_task() must be implemented by adapter"
        )

    @abstractmethod
    def resolve_subtask_id(self, id_or_prefix: str) -> str | None:
        """Expand a unique ID prefix to a full subtask ID."""
        raise NotImplementedError(
            "TaskRepository.resolve_subtask_id() must be implemented by adapter"
        )

    @abstractmethod
    def set_timer_running(self, subtask_id: str | None) -> Task | None:
        """Flag the task owning *subtask_id* as timed, clearing every other task.

        A task still in ``todo`` moves to ``in_progress``. Pass None when the
        timer stops. Returns the flagged task, if any.
        """
        raise NotImplementedError(
            "TaskRepository.set_timer_running() must be implemented by adapter"
        )

    @abstractmethod
    def completed_tasks(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> list[Task]:
        """Tasks completed in ``[since, until)``, oldest first."""
        raise NotImplementedError(
            "TaskRepository.completed_tasks() must be implemented by adapter"
        )

    @abstractmethod
    def subtask_categories(self) -> dict[str, str | None]:
        """Map every subtask ID to its task's category."""
        raise NotImplementedError(
            "TaskRepository.subtask_categories() must be implemented by adapter"
        )
