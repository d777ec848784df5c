"""Unit tests for main.py - the CLI entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from polmodor import __version__
from polmodor.main import app, main

runner = CliRunner()


def _invoke(*args):
    return runner.invoke(app, list(args))


class TestTopLevelHelp:
    def test_help_flag_exits_zero(self):
        result = _invoke("--help")
        assert result.exit_code == 0
        assert "polmodor" in result.output.lower()

    def test_no_args_shows_help(self):
        result = _invoke()
        assert "Usage" in result.output

    @pytest.mark.parametrize("group", ["timer", "tasks", "config", "stats", "version"])
    def test_groups_registered(self, group):
        result = _invoke(group, "--help")
        assert result.exit_code == 0
        assert "Usage" in result.output


class TestVersionCommand:
    def test_version_output(self):
        result = _invoke("version")
        assert result.exit_code == 0
        assert __version__ in result.output


class TestMainEntryPoint:
    def test_main_invokes_app(self):
        with patch("polmodor.main.app") as mock_app:
            main()
            mock_app.assert_called_once()
