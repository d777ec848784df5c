"""Credit finished work sessions to the active subtask."""

from __future__ import annotations

from polmodor.models.task import Subtask
from polmodor.repositories.repository import SubtaskLookup
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


class SubtaskProgressUpdater:
    """Increments a subtask's pomodoro count after a natural work completion."""

    def __init__(self, lookup: SubtaskLookup):
        self.lookup = lookup

    def apply(self, subtask_id: str | None) -> Subtask | None:
        """Record one completed pomodoro on *subtask_id*.

        The count is clamped to the subtask's target; reaching the target
        marks the subtask complete. Missing ids and lookup failures are
        logged and ignored.
        """
        if subtask_id is None:
            return None

        try:
            subtask = self.lookup.fetch_by_id(subtask_id)
        except Exception:
            logger.warning("subtask lookup failed: %s", subtask_id, exc_info=True)
            return None

        if subtask is None:
            logger.info("active subtask %s no longer exists", subtask_id)
            return None

        completed = min(subtask.pomodoro_completed + 1, subtask.pomodoro_target)
        updated = subtask.model_copy(
            update={
                "pomodoro_completed": completed,
                "is_completed": subtask.is_completed
                or completed >= subtask.pomodoro_target,
            }
        )

        try:
            saved = self.lookup.save(updated)
        except Exception:
            logger.warning("failed to save subtask %s", subtask_id, exc_info=True)
            return None

        logger.info(
            "subtask %s pomodoros %d/%d%s",
            subtask_id,
            completed,
            subtask.pomodoro_target,
            " (done)" if updated.is_completed else "",
        )
        return saved
