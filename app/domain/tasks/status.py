"""
Derives the "natural" status of a task from its due date, due time and
completion flag.

Timeline for a task due on day D:
- before D at `time` (or D 00:00 when no time)  -> Active
- from that moment on                           -> In Progress
- from D+1 at 05:00 local                       -> Overdue

The 05:00 grace hour keeps a task due "today" from flipping to Overdue at
midnight. Overdue wins over a manual status; completion wins over everything.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from app.domain.common.time import parse_hhmm
from app.domain.tasks.models import (
    ACTIVE,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    Task,
    TaskStatus,
)

OVERDUE_GRACE_HOUR = 5


def in_progress_start(task: Task, tz: Optional[tzinfo]) -> Optional[datetime]:
    if task.due is None:
        return None
    hhmm = parse_hhmm(task.time)
    at = time(hhmm[0], hhmm[1]) if hhmm else time(0, 0)
    return datetime.combine(task.due, at, tzinfo=tz)


def overdue_cutoff(task: Task, tz: Optional[tzinfo]) -> Optional[datetime]:
    if task.due is None:
        return None
    return datetime.combine(task.due + timedelta(days=1), time(OVERDUE_GRACE_HOUR, 0), tzinfo=tz)


def is_past_overdue_cutoff(task: Task, now: datetime) -> bool:
    cutoff = overdue_cutoff(task, now.tzinfo)
    return cutoff is not None and now >= cutoff


def derive_status(task: Task, now: datetime) -> TaskStatus:
    """Pure: same (task, now) always gives the same answer."""
    if task.completed:
        return COMPLETED

    overdue = is_past_overdue_cutoff(task, now)

    if task.manual_status and not overdue:
        return task.status

    if task.due is None:
        return ACTIVE

    if overdue:
        return OVERDUE

    start = in_progress_start(task, now.tzinfo)
    if start is not None and now >= start:
        return IN_PROGRESS

    return ACTIVE


def should_auto_transition(task: Task, now: datetime) -> Optional[TaskStatus]:
    """
    Status the sweep should move this task to, or None.

    Completed tasks are left alone. Manual statuses are only overridden by
    Overdue.
    """
    if task.completed:
        return None
    derived = derive_status(task, now)
    if derived == task.status:
        return None
    if derived == OVERDUE or not task.manual_status:
        return derived
    return None


def _today(now: datetime) -> date:
    return now.date()


def is_due_today(task: Task, now: datetime) -> bool:
    return task.due is not None and task.due == _today(now)


def is_due_yesterday(task: Task, now: datetime) -> bool:
    return task.due is not None and task.due == _today(now) - timedelta(days=1)


def is_past_due(task: Task, now: datetime) -> bool:
    """Calendar-day check: due strictly before today."""
    return task.due is not None and task.due < _today(now)
