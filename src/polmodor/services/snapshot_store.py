"""Timer snapshot persistence with a JSON file in the user data dir."""

from __future__ import annotations

import json
import os
from pathlib import Path

from platformdirs import user_data_dir

from polmodor.models.timer.session import SessionSnapshot
from polmodor.repositories.repository import SubtaskLookup
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


class JsonSnapshotStore:
    """Persists the single timer snapshot as one JSON record."""

    def __init__(self, path: Path | None = None):
        """Initialize the store."""
        if path is None:
            path = Path(user_data_dir("polmodor")) / "state" / "timer.json"
        self.path = Path(path)

    def save(self, snapshot: SessionSnapshot) -> None:
        """Overwrite the stored record with *snapshot*."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        os.replace(tmp, self.path)

        # Set secure permissions
        self.path.chmod(0o600)

    def load(self, lookup: SubtaskLookup | None = None) -> SessionSnapshot | None:
        """Load the stored snapshot. Returns None if missing or unreadable.

        When *lookup* is given, an ``active_subtask_id`` that no longer
        resolves is cleared.
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            snapshot = SessionSnapshot.from_dict(data)
        except (OSError, json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.warning("unreadable timer snapshot at %s", self.path, exc_info=True)
            return None

        if lookup is not None and snapshot.active_subtask_id is not None:
            snapshot.active_subtask_id = self._revalidate(
                lookup, snapshot.active_subtask_id
            )
        return snapshot

    def fingerprint(self) -> tuple[int, int] | None:
        """Modification time and size of the record, None when missing.

        Cheap to poll; a changed value means some process saved the record.
        """
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def clear(self) -> None:
        """Delete the stored record."""
        self.path.unlink(missing_ok=True)

    @staticmethod
    def _revalidate(lookup: SubtaskLookup, subtask_id: str) -> str | None:
        try:
            found = lookup.fetch_by_id(subtask_id)
        except Exception:
            logger.warning("could not validate subtask %s", subtask_id, exc_info=True)
            return None
        if found is None:
            logger.info("clearing stale active subtask %s", subtask_id)
            return None
        return found.id
