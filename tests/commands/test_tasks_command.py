"""Tests for the tasks command group."""

from __future__ import annotations

import json
from datetime import date

from typer.testing import CliRunner

from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository
from polmodor.commands.tasks import _task_rows
from polmodor.main import app
from polmodor.models.task import SubtaskCreate, TaskCreate, TaskPriority, TaskStatus
from polmodor.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND

runner = CliRunner()


def _invoke(*args, **kwargs):
    return runner.invoke(app, ["tasks", *args], **kwargs)


def _only_task():
    tasks = SqliteTaskRepository().list_tasks(include_completed=True)
    assert len(tasks) == 1
    return tasks[0]


class TestAddAndList:
    def test_add_task(self):
        result = _invoke("add", "Write report", "-d", "Quarterly numbers")
        assert result.exit_code == 0
        assert "Write report" in result.output

        task = _only_task()
        assert task.description == "Quarterly numbers"

    def test_add_blank_title_rejected(self):
        result = _invoke("add", "")
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_list_empty(self):
        result = _invoke("list")
        assert result.exit_code == 0
        assert "No tasks found" in result.output

    def test_list_json(self):
        _invoke("add", "Read paper")
        result = _invoke("list", "--output", "json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [t["title"] for t in data] == ["Read paper"]

    def test_list_hides_completed_by_default(self):
        _invoke("add", "Finished")
        _invoke("done", _only_task().id[:8])

        result = _invoke("list")
        assert "No tasks found" in result.output

        result = _invoke("list", "--all", "--output", "json")
        assert json.loads(result.output)[0]["is_completed"] is True


class TestSubtasks:
    def test_add_subtask_by_prefix(self):
        _invoke("add", "Thesis")
        task = _only_task()

        result = _invoke("subtask", task.id[:8], "Outline", "--pomodoros", "3")
        assert result.exit_code == 0
        assert "3 pomodoros" in result.output

        task = _only_task()
        assert [s.title for s in task.subtasks] == ["Outline"]
        assert task.subtasks[0].pomodoro_target == 3

    def test_subtask_unknown_task(self):
        result = _invoke("subtask", "missing", "Outline")
        assert result.exit_code == ERROR_NOT_FOUND

    def test_subtask_target_out_of_range(self):
        _invoke("add", "Thesis")
        result = _invoke("subtask", _only_task().id, "Outline", "-p", "0")
        assert result.exit_code == ERROR_INVALID_ARGS


class TestDoneAndDelete:
    def test_done_unknown(self):
        result = _invoke("done", "missing")
        assert result.exit_code == ERROR_NOT_FOUND

    def test_delete_with_yes(self):
        _invoke("add", "Scratch")
        result = _invoke("delete", _only_task().id[:8], "--yes")
        assert result.exit_code == 0
        assert SqliteTaskRepository().list_tasks(include_completed=True) == []

    def test_delete_cancelled(self):
        _invoke("add", "Keep me")
        result = _invoke("delete", _only_task().id, input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert _only_task().title == "Keep me"

    def test_delete_unknown(self):
        result = _invoke("delete", "missing", "--yes")
        assert result.exit_code == ERROR_NOT_FOUND


class TestTaskDetails:
    def test_add_with_priority_category_and_due(self):
        result = _invoke(
            "add", "Essay", "--priority", "HIGH", "--category", "Study", "--due", "2026-04-01"
        )
        assert result.exit_code == 0, result.output

        task = _only_task()
        assert task.priority is TaskPriority.HIGH
        assert task.category == "Study"
        assert task.due_date.date() == date(2026, 4, 1)
        assert task.status is TaskStatus.TODO

    def test_unknown_priority_rejected(self):
        result = _invoke("add", "Essay", "--priority", "urgent")
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_malformed_due_date_rejected(self):
        result = _invoke("add", "Essay", "--due", "next tuesday")
        assert result.exit_code == ERROR_INVALID_ARGS

    def test_list_filters_by_category(self):
        _invoke("add", "Essay", "-c", "Study")
        _invoke("add", "Groceries", "-c", "Personal")

        result = _invoke("list", "--category", "study", "--output", "json")
        data = json.loads(result.output)
        assert [t["title"] for t in data] == ["Essay"]
        assert data[0]["status"] == "todo"
        assert data[0]["priority"] == "medium"

    def test_rows_show_remaining_pomodoros_and_timed_task(self):
        repo = SqliteTaskRepository()
        task = repo.create_task(TaskCreate(title="Thesis", category="Study"))
        first = repo.add_subtask(task.id, SubtaskCreate(title="Outline", pomodoro_target=3))
        repo.add_subtask(task.id, SubtaskCreate(title="Draft", pomodoro_target=2))
        first.pomodoro_completed = 2
        repo.save(first)
        repo.set_timer_running(first.id)

        rows = _task_rows(repo.list_tasks())
        assert rows[0]["title"] == "⏱ Thesis"
        assert rows[0]["status"] == "in_progress"
        assert rows[0]["category"] == "Study"
        assert rows[0]["pomodoros"] == "2/5"
        assert [r["left"] for r in rows] == [3, 1, 2]

    def test_list_uses_configured_output_format(self):
        _invoke("add", "Thesis")
        runner.invoke(app, ["config", "set", "output.format", "json"])

        result = _invoke("list")
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["title"] == "Thesis"
