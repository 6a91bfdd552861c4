"""
Dashboard summary and board ordering.
"""
from __future__ import annotations

from datetime import date

from app.domain.tasks.analytics import completion_streak, summarize
from app.domain.tasks.board import group_by_status, sort_tasks
from app.domain.tasks.models import ACTIVE, ALL_STATUSES, COMPLETED, IN_PROGRESS, OVERDUE
from fakes import at, make_task

NOW = at(2025, 3, 10, 18, 0)


def test_summary_counts_and_rates():
    tasks = [
        make_task("1", category="Work", priority="High"),
        make_task("2", status=IN_PROGRESS, category="Work"),
        make_task("3", status=OVERDUE, due=date(2025, 3, 1)),
        make_task("4", completed=True, created_at=at(2025, 3, 6), completed_at=at(2025, 3, 10, 9)),
    ]
    summary = summarize(tasks, NOW)

    assert (summary.total, summary.completed, summary.overdue, summary.in_progress, summary.active) == (4, 1, 1, 1, 1)
    assert summary.completion_rate == 25
    assert summary.average_completion_days == 4
    assert summary.streak == 1
    assert summary.category_distribution == {"Work": 2, "Uncategorized": 2}
    assert summary.priority_distribution == {"High": 1, "Medium": 3}
    assert summary.status_distribution[COMPLETED] == 1


def test_empty_summary():
    summary = summarize([], NOW)
    assert summary.total == 0
    assert summary.completion_rate == 0
    assert summary.streak == 0
    assert list(summary.weekly_trend.values()) == [0] * 7


def test_weekly_trend_covers_last_seven_days():
    tasks = [
        make_task("1", completed=True, completed_at=at(2025, 3, 10, 8)),
        make_task("2", completed=True, completed_at=at(2025, 3, 10, 9)),
        make_task("3", completed=True, completed_at=at(2025, 3, 4, 9)),
        make_task("4", completed=True, completed_at=at(2025, 3, 1, 9)),
    ]
    trend = summarize(tasks, NOW).weekly_trend
    assert list(trend) == [date(2025, 3, d) for d in range(4, 11)]
    assert trend[date(2025, 3, 10)] == 2
    assert trend[date(2025, 3, 4)] == 1


def test_completion_streak_stops_at_gap():
    today = date(2025, 3, 10)
    days = [date(2025, 3, 10), date(2025, 3, 9), date(2025, 3, 8), date(2025, 3, 6)]
    assert completion_streak(days, today) == 3
    assert completion_streak([date(2025, 3, 9)], today) == 0


def test_sort_open_first_then_due_then_status():
    tasks = [
        make_task("done", completed=True, due=date(2025, 3, 1)),
        make_task("nodue"),
        make_task("later", due=date(2025, 3, 12)),
        make_task("today-active", due=date(2025, 3, 10)),
        make_task("today-progress", due=date(2025, 3, 10), status=IN_PROGRESS),
    ]
    assert [t.id for t in sort_tasks(tasks)] == ["today-progress", "today-active", "later", "nodue", "done"]


def test_group_by_status_has_every_column():
    columns = group_by_status([make_task("1"), make_task("2", status=ACTIVE)])
    assert list(columns) == list(ALL_STATUSES)
    assert [t.id for t in columns[ACTIVE]] == ["1", "2"]
    assert columns[OVERDUE] == []
