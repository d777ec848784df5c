"""Keeps task status in step with the timer."""

from __future__ import annotations

from polmodor.models.timer.events import TimerEvent, TimerEventType
from polmodor.repositories.repository import TaskRepository
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


class TaskStatusTracker:
    """Timer observer flagging the task whose subtask is being timed.

    While the timer runs on a subtask, its task has ``is_timer_running`` set
    and leaves ``todo`` for ``in_progress``. Pausing, resetting or clearing
    the subtask clears the flag.
    """

    def __init__(self, repository: TaskRepository):
        self.repository = repository
        self._flagged: str | None = None
        self._synced = False

    def __call__(self, event: TimerEvent) -> None:
        if event.type is TimerEventType.TICK:
            return

        snapshot = event.snapshot
        subtask_id = snapshot.active_subtask_id if snapshot.is_running else None
        if self._synced and subtask_id == self._flagged:
            return

        task = self.repository.set_timer_running(subtask_id)
        self._flagged = subtask_id
        self._synced = True
        if task is not None:
            logger.debug("timer running on task %s (%s)", task.id, task.status.value)
