"""Focus statistics over the session history."""

from __future__ import annotations

import datetime as dt
from datetime import datetime, time, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from polmodor.models.timer.session import SessionKind
from polmodor.repositories.repository import TaskRepository
from polmodor.services.history_service import HistoryLogger
from polmodor.utils.ui.formatters import format_duration

UNCATEGORIZED = "Uncategorized"
WEEKS_SHOWN = 4
# Daily rows shown for the unbounded window
ALL_TIME_DAYS = 90


class Timeframe(str, Enum):
    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"
    LAST_7_DAYS = "last-7"
    LAST_30_DAYS = "last-30"
    ALL_TIME = "all"

    @property
    def title(self) -> str:
        return {
            Timeframe.THIS_WEEK: "This Week",
            Timeframe.THIS_MONTH: "This Month",
            Timeframe.LAST_7_DAYS: "Last 7 Days",
            Timeframe.LAST_30_DAYS: "Last 30 Days",
            Timeframe.ALL_TIME: "All Time",
        }[self]

    def first_day(self, today: dt.date) -> dt.date | None:
        """First calendar day of the window ending *today*, None if unbounded."""
        if self is Timeframe.THIS_WEEK:
            return today - timedelta(days=today.weekday())
        if self is Timeframe.THIS_MONTH:
            return today.replace(day=1)
        if self is Timeframe.LAST_7_DAYS:
            return today - timedelta(days=6)
        if self is Timeframe.LAST_30_DAYS:
            return today - timedelta(days=29)
        return None


class DailyStatistics(BaseModel):
    """Completed work for one calendar day."""

    date: dt.date
    pomodoros: int = 0
    focus_seconds: int = 0
    tasks_completed: int = 0


class WeeklyStatistics(BaseModel):
    """Completed work for one week, starting on Monday."""

    week_start: dt.date
    pomodoros: int = 0
    focus_seconds: int = 0
    tasks_completed: int = 0


class CategoryStatistics(BaseModel):
    name: str
    pomodoros: int = 0
    focus_seconds: int = 0
    tasks_completed: int = 0
    percentage: float = 0.0


class StatisticsData(BaseModel):
    """Summary of a window of days."""

    days: int
    title: str = ""
    total_pomodoros: int = 0
    total_focus_seconds: int = 0
    average_session_seconds: int = 0
    completed_breaks: int = 0
    skipped_sessions: int = 0
    completed_tasks: int = 0
    daily: list[DailyStatistics] = Field(default_factory=list)
    weekly: list[WeeklyStatistics] = Field(default_factory=list)
    categories: list[CategoryStatistics] = Field(default_factory=list)

    @property
    def formatted_focus_time(self) -> str:
        return format_duration(self.total_focus_seconds)


class StatsService:
    """Builds :class:`StatisticsData` from a :class:`HistoryLogger`.

    With a task repository, sessions are grouped by the category of the task
    owning their subtask, and completed tasks are counted.
    """

    def __init__(self, history: HistoryLogger, tasks: TaskRepository | None = None):
        self.history = history
        self.tasks = tasks

    def summary(
        self,
        days: int = 7,
        now: datetime | None = None,
        timeframe: Timeframe | None = None,
    ) -> StatisticsData:
        """Summarise the last *days* calendar days, today included.

        A *timeframe* replaces *days*. Days are bucketed in the timezone of
        *now* (local time by default), and every day in the window gets an
        entry, even without sessions. Weekly totals always cover the last
        four weeks.
        """
        now = now or datetime.now().astimezone()
        tz = now.tzinfo
        today = now.date()

        if timeframe is None:
            first_day: dt.date | None = today - timedelta(days=max(1, days) - 1)
            title = f"last {max(1, days)} day(s)"
        else:
            first_day = timeframe.first_day(today)
            title = timeframe.title

        def midnight(day: dt.date) -> datetime:
            return datetime.combine(day, time.min, tzinfo=tz)

        since = midnight(first_day) if first_day is not None else None
        until = midnight(today + timedelta(days=1))
        daily_first = first_day or today - timedelta(days=ALL_TIME_DAYS - 1)
        shown_days = (today - daily_first).days + 1

        week_first = today - timedelta(days=today.weekday(), weeks=WEEKS_SHOWN - 1)
        fetch_since = midnight(week_first)
        if since is None or since < fetch_since:
            fetch_since = since

        daily = {
            daily_first + timedelta(days=i): DailyStatistics(
                date=daily_first + timedelta(days=i)
            )
            for i in range(shown_days)
        }
        weekly = {
            week_first + timedelta(weeks=i): WeeklyStatistics(
                week_start=week_first + timedelta(weeks=i)
            )
            for i in range(WEEKS_SHOWN)
        }
        categories: dict[str, CategoryStatistics] = {}
        category_of = self.tasks.subtask_categories() if self.tasks else {}
        stats = StatisticsData(days=shown_days, title=title)

        def category(name: str | None) -> CategoryStatistics:
            name = name or UNCATEGORIZED
            if name not in categories:
                categories[name] = CategoryStatistics(name=name)
            return categories[name]

        def week_of(day: dt.date) -> WeeklyStatistics | None:
            return weekly.get(day - timedelta(days=day.weekday()))

        for session in self.history.get_sessions(since=fetch_since, until=until):
            ended = session["ended_at"].astimezone(tz)
            in_window = since is None or ended >= since
            is_work = session["kind"] == SessionKind.WORK.value

            if session["completed"] and is_work:
                week = week_of(ended.date())
                if week is not None:
                    week.pomodoros += 1
                    week.focus_seconds += session["nominal_duration"]
            if not in_window:
                continue

            if not session["completed"]:
                stats.skipped_sessions += 1
                continue
            if not is_work:
                stats.completed_breaks += 1
                continue

            duration = session["nominal_duration"]
            stats.total_pomodoros += 1
            stats.total_focus_seconds += duration

            day = daily.get(ended.date())
            if day is not None:
                day.pomodoros += 1
                day.focus_seconds += duration

            group = category(category_of.get(session["subtask_id"]))
            group.pomodoros += 1
            group.focus_seconds += duration

        if self.tasks is not None:
            for task in self.tasks.completed_tasks(since=fetch_since, until=until):
                completed = task.completed_at.astimezone(tz)
                week = week_of(completed.date())
                if week is not None:
                    week.tasks_completed += 1
                if since is not None and completed < since:
                    continue
                stats.completed_tasks += 1
                day = daily.get(completed.date())
                if day is not None:
                    day.tasks_completed += 1
                category(task.category).tasks_completed += 1

        if stats.total_pomodoros:
            stats.average_session_seconds = (
                stats.total_focus_seconds // stats.total_pomodoros
            )
            for group in categories.values():
                group.percentage = round(
                    group.pomodoros / stats.total_pomodoros * 100, 1
                )
        stats.daily = list(daily.values())
        stats.weekly = list(weekly.values())
        stats.categories = sorted(
            categories.values(), key=lambda c: (-c.pomodoros, c.name)
        )
        return stats
