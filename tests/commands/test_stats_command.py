"""Tests for the stats command."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import yaml
from typer.testing import CliRunner

from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository
from polmodor.main import app
from polmodor.models.task import SubtaskCreate, TaskCreate
from polmodor.models.timer.session import SessionKind
from polmodor.services.history_service import HistoryLogger
from polmodor.utils.exit_codes import ERROR_INVALID_ARGS

runner = CliRunner()


def _log_work(history: HistoryLogger, ended: datetime, completed: bool = True) -> None:
    history.log_session(
        kind=SessionKind.WORK,
        subtask_id=None,
        started_at=ended - timedelta(minutes=25),
        ended_at=ended,
        nominal_duration=1500,
        completed=completed,
    )


class TestStatsCommand:
    def test_empty_history(self):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Pomodoros Completed: 0" in result.output

    def test_json_output(self):
        history = HistoryLogger()
        now = datetime.now().astimezone()
        _log_work(history, now - timedelta(minutes=5))
        _log_work(history, now - timedelta(minutes=40))
        _log_work(history, now - timedelta(minutes=70), completed=False)

        result = runner.invoke(app, ["stats", "--days", "3", "--output", "json"])
        assert result.exit_code == 0

        data = json.loads(result.output)
        assert data["days"] == 3
        assert data["total_pomodoros"] == 2
        assert data["total_focus_seconds"] == 3000
        assert data["skipped_sessions"] == 1
        assert len(data["daily"]) == 3
        assert data["formatted_focus_time"] == "50m"

    def test_days_must_be_positive(self):
        result = runner.invoke(app, ["stats", "--days", "0"])
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_range_option(self):
        history = HistoryLogger()
        _log_work(history, datetime.now().astimezone() - timedelta(seconds=1))

        result = runner.invoke(app, ["stats", "--range", "this-month", "--output", "json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.output)
        assert data["title"] == "This Month"
        assert data["total_pomodoros"] == 1
        assert data["days"] == datetime.now().day
        assert len(data["weekly"]) == 4

    def test_unknown_range_rejected(self):
        result = runner.invoke(app, ["stats", "--range", "fortnight"])
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_category_and_completed_tasks(self):
        repo = SqliteTaskRepository()
        task = repo.create_task(TaskCreate(title="Essay", category="Study"))
        subtask = repo.add_subtask(task.id, SubtaskCreate(title="Draft"))
        repo.complete_task(task.id)
        now = datetime.now().astimezone()
        HistoryLogger().log_session(
            kind=SessionKind.WORK.value,
            subtask_id=subtask.id,
            started_at=now - timedelta(minutes=30),
            ended_at=now - timedelta(seconds=1),
            nominal_duration=1500,
            completed=True,
        )

        result = runner.invoke(app, ["stats", "--output", "json"])
        data = json.loads(result.output)
        assert data["completed_tasks"] == 1
        assert data["categories"] == [
            {
                "name": "Study",
                "pomodoros": 1,
                "focus_seconds": 1500,
                "tasks_completed": 1,
                "percentage": 100.0,
            }
        ]

    def test_table_shows_weeks_and_categories(self):
        _log_work(HistoryLogger(), datetime.now().astimezone() - timedelta(minutes=5))

        result = runner.invoke(app, ["stats", "--output", "table"])
        assert result.exit_code == 0
        assert "Last 4 Weeks" in result.output
        assert "Uncategorized" in result.output

    def test_recent_sessions(self):
        history = HistoryLogger()
        now = datetime.now().astimezone()
        _log_work(history, now - timedelta(minutes=40))
        _log_work(history, now - timedelta(minutes=5), completed=False)

        result = runner.invoke(app, ["stats", "--recent", "1", "--output", "json"])
        data = json.loads(result.output)
        assert len(data["recent"]) == 1
        assert data["recent"][0]["completed"] is False
        assert data["recent"][0]["session"] == "Focus Time"

    def test_negative_recent_rejected(self):
        result = runner.invoke(app, ["stats", "--recent", "-1"])
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_configured_output_format(self):
        runner.invoke(app, ["config", "set", "output.format", "yaml"])

        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["total_pomodoros"] == 0
