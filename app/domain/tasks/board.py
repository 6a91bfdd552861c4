from __future__ import annotations

from datetime import date
from typing import Iterable

from app.domain.tasks.models import (
    ACTIVE,
    ALL_STATUSES,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    Task,
)

# order inside one due date
_SAME_DAY_ORDER = {IN_PROGRESS: 0, ACTIVE: 1, OVERDUE: 2, COMPLETED: 3}


def _sort_key(task: Task) -> tuple:
    return (
        task.completed,
        task.due or date.max,
        _SAME_DAY_ORDER.get(task.status, len(_SAME_DAY_ORDER)),
    )


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Open tasks first, then earliest due date (none last), then status."""
    return sorted(tasks, key=_sort_key)


def group_by_status(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Kanban columns, each sorted like sort_tasks."""
    columns: dict[str, list[Task]] = {status: [] for status in ALL_STATUSES}
    for task in sort_tasks(tasks):
        columns.setdefault(task.status, []).append(task)
    return columns
