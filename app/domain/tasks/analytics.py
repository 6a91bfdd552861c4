"""
Dashboard numbers computed from the local collection.

Same figures the server's analytics endpoint returns, so the dashboard keeps
working offline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from app.domain.tasks.models import (
    ACTIVE,
    DEFAULT_CATEGORY,
    DEFAULT_PRIORITY,
    IN_PROGRESS,
    OVERDUE,
    Task,
)

TREND_DAYS = 7


@dataclass(frozen=True)
class TaskSummary:
    total: int
    completed: int
    overdue: int
    in_progress: int
    active: int
    completion_rate: int  # percent, rounded
    average_completion_days: int
    streak: int
    status_distribution: dict[str, int] = field(default_factory=dict)
    category_distribution: dict[str, int] = field(default_factory=dict)
    priority_distribution: dict[str, int] = field(default_factory=dict)
    weekly_trend: dict[date, int] = field(default_factory=dict)


def _count_by(values: Iterable[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1
    return counts


def _local_day(dt: datetime, now: datetime) -> date:
    if dt.tzinfo is not None and now.tzinfo is not None:
        return dt.astimezone(now.tzinfo).date()
    return dt.date()


def completion_streak(completion_days: Iterable[date], today: date) -> int:
    """Consecutive days with at least one completion, ending today."""
    days = set(completion_days)
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def summarize(tasks: Iterable[Task], now: datetime) -> TaskSummary:
    items = list(tasks)
    total = len(items)
    completed = [t for t in items if t.completed]

    finished = [t for t in completed if t.completed_at and (t.in_progress_at or t.created_at)]
    avg_days = 0
    if finished:
        total_seconds = sum(
            (t.completed_at - (t.in_progress_at or t.created_at)).total_seconds() for t in finished
        )
        avg_days = round(total_seconds / len(finished) / 86400)

    today = now.date()
    completion_days = [_local_day(t.completed_at, now) for t in completed if t.completed_at]
    window = [today - timedelta(days=i) for i in range(TREND_DAYS - 1, -1, -1)]
    trend = {d: 0 for d in window}
    for d in completion_days:
        if d in trend:
            trend[d] += 1

    return TaskSummary(
        total=total,
        completed=len(completed),
        overdue=sum(1 for t in items if t.status == OVERDUE),
        in_progress=sum(1 for t in items if t.status == IN_PROGRESS),
        active=sum(1 for t in items if t.status == ACTIVE),
        completion_rate=round(len(completed) / total * 100) if total else 0,
        average_completion_days=avg_days,
        streak=completion_streak(completion_days, today),
        status_distribution=_count_by(t.status for t in items),
        category_distribution=_count_by(t.category or DEFAULT_CATEGORY for t in items),
        priority_distribution=_count_by(t.priority or DEFAULT_PRIORITY for t in items),
        weekly_trend=trend,
    )
