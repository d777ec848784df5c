"""Tests for the application logger utility."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger singleton and logging state between tests."""
    import polmodor.utils.logger as logger_mod

    original = logger_mod._logger
    existing = logging.getLogger("polmodor")
    original_handlers = list(existing.handlers)
    logger_mod._logger = None
    existing.handlers.clear()

    yield

    existing.handlers[:] = original_handlers
    logger_mod._logger = original


def test_get_logger_creates_log_file(tmp_path):
    with patch("polmodor.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from polmodor.utils.logger import get_logger

        logger = get_logger()

    assert (tmp_path / "polmodor.log").exists()
    assert isinstance(logger, logging.Logger)


def test_module_loggers_share_the_file(tmp_path):
    """Module loggers propagate into the application handler."""
    with patch("polmodor.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from polmodor.utils.logger import get_logger

        root = get_logger()
        child = get_logger("polmodor.services.example")
        child.warning("from the child")

    for handler in root.handlers:
        handler.flush()

    assert child.name == "polmodor.services.example"
    assert "from the child" in (tmp_path / "polmodor.log").read_text()


def test_foreign_names_are_prefixed(tmp_path):
    with patch("polmodor.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from polmodor.utils.logger import get_logger

        assert get_logger("tests.helper").name == "polmodor.tests.helper"
        assert get_logger() is get_logger("polmodor")
