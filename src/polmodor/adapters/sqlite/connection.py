"""Database connection management for the local SQLite store.

One connection per database file per process, with foreign keys enforced
and WAL journaling.
"""

from __future__ import annotations

import atexit
import os
import sqlite3
from pathlib import Path

from platformdirs import user_data_dir

from polmodor.adapters.sqlite.schema import initialize_schema
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


def default_db_path() -> Path:
    return Path(user_data_dir("polmodor")) / "polmodor.db"


class DatabaseConnection:
    """Process-wide cache of configured SQLite connections, keyed by path."""

    _connections: dict[Path, sqlite3.Connection] = {}
    _cleanup_registered = False

    @classmethod
    def get_connection(cls, db_path: str | Path | None = None) -> sqlite3.Connection:
        """Get or create the connection for *db_path* (default location if None)."""
        db_path = default_db_path() if db_path is None else Path(db_path)

        connection = cls._connections.get(db_path)
        if connection is not None:
            return connection

        db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not db_path.exists()

        connection = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            timeout=30.0,  # Wait up to 30s for locks
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        connection.execute("PRAGMA journal_mode = WAL")

        # Owner read/write only
        if is_new_database:
            os.chmod(db_path, 0o600)

        initialize_schema(connection)
        cls._connections[db_path] = connection
        logger.debug("opened database %s", db_path)

        if not cls._cleanup_registered:
            atexit.register(cls.close_all)
            cls._cleanup_registered = True

        return connection

    @classmethod
    def close_all(cls) -> None:
        """Close every cached connection."""
        for path, connection in list(cls._connections.items()):
            try:
                connection.commit()
                connection.close()
            except sqlite3.Error:
                logger.warning("error closing database %s", path, exc_info=True)
        cls._connections.clear()


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Helper function to get a configured database connection."""
    return DatabaseConnection.get_connection(db_path)
