from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Optional, Union

TaskId = Union[str, int]

TaskStatus = Literal["Active", "In Progress", "Overdue", "Completed"]

ACTIVE: TaskStatus = "Active"
IN_PROGRESS: TaskStatus = "In Progress"
OVERDUE: TaskStatus = "Overdue"
COMPLETED: TaskStatus = "Completed"

ALL_STATUSES: tuple[TaskStatus, ...] = (ACTIVE, IN_PROGRESS, OVERDUE, COMPLETED)

PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High")

DEFAULT_PRIORITY = "Medium"
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_TITLE = "Untitled Task"

# client-side id prefix until the server assigns the canonical one
OPTIMISTIC_ID_PREFIX = "tmp-"

# fields a user may edit directly (status has its own path)
EDITABLE_FIELDS = frozenset({"title", "description", "category", "priority", "due", "time", "tags"})


@dataclass(frozen=True)
class Task:
    id: TaskId
    title: str
    description: str = ""
    category: str = DEFAULT_CATEGORY
    priority: str = DEFAULT_PRIORITY
    due: Optional[date] = None
    time: Optional[str] = None  # HH:MM, only meaningful with due
    status: TaskStatus = ACTIVE
    manual_status: bool = False
    completed: bool = False
    in_progress_at: Optional[datetime] = None
    overdue_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_optimistic(self) -> bool:
        return isinstance(self.id, str) and self.id.startswith(OPTIMISTIC_ID_PREFIX)


def is_consistent(task: Task) -> bool:
    return task.completed == (task.status == COMPLETED)


def check_consistent(task: Task) -> Task:
    if not is_consistent(task):
        raise ValueError(
            f"Task {task.id!r}: completed={task.completed} does not match status={task.status!r}"
        )
    return task


@dataclass(frozen=True)
class TransitionCheck:
    allowed: bool
    reason: Optional[str] = None
    needs_confirmation: bool = False


@dataclass(frozen=True)
class WriteOutcome:
    """
    Result of an optimistic write. Truthy on success.

    error holds the user-facing warning when the remote call failed; the
    local collection has already been restored in that case.
    """
    ok: bool
    task: Optional[Task] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class BulkFailure:
    task_id: TaskId
    reason: str


@dataclass(frozen=True)
class BulkResult:
    succeeded: list[TaskId] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    excluded: list[TaskId] = field(default_factory=list)  # filtered out by policy
    skipped: list[TaskId] = field(default_factory=list)  # already in target state

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


@dataclass(frozen=True)
class Notification:
    kind: str
    task_id: TaskId
    heading: str
    message: str
    created_at: datetime
    read: bool = False
    notification_id: Optional[str] = None

