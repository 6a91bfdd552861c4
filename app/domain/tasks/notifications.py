"""
Status-change notifications.

Only three edges notify:

    Active      -> In Progress  : task_started
    In Progress -> Overdue      : task_overdue
    Overdue     -> Completed    : task_completed

A persisted task_id -> last observed status map makes repeated observations
of the same status silent, across re-renders and restarts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from app.domain.common.time import to_iso
from app.domain.tasks.models import (
    ACTIVE,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    Notification,
    Task,
    TaskId,
)
from app.domain.tasks.ports import (
    Clock,
    IdGenerator,
    InboxRepository,
    NotificationSink,
    StatusMemory,
    TransitionObserver,
)

logger = logging.getLogger(__name__)

TASK_STARTED = "task_started"
TASK_OVERDUE = "task_overdue"
TASK_COMPLETED = "task_completed"


@dataclass(frozen=True)
class EdgeNotice:
    kind: str
    heading: str
    template: str

    def message(self, title: str) -> str:
        return self.template.format(title=title)


TRANSITION_NOTICES: dict[tuple[str, str], EdgeNotice] = {
    (ACTIVE, IN_PROGRESS): EdgeNotice(TASK_STARTED, "Task Started", '"{title}" is now In Progress'),
    (IN_PROGRESS, OVERDUE): EdgeNotice(TASK_OVERDUE, "Task Overdue", '"{title}" is now overdue'),
    (OVERDUE, COMPLETED): EdgeNotice(TASK_COMPLETED, "Task Completed", '"{title}" has been completed'),
}

NOTICES_BY_KIND: dict[str, EdgeNotice] = {n.kind: n for n in TRANSITION_NOTICES.values()}


def notice_for(from_status: Optional[str], to_status: str) -> Optional[EdgeNotice]:
    if from_status is None or from_status == to_status:
        return None
    return TRANSITION_NOTICES.get((from_status, to_status))


class StatusChangeNotifier(TransitionObserver):
    """
    Observes committed statuses and fans out at most one notification per
    transition edge to every sink.
    """

    def __init__(self, memory: StatusMemory, sinks: Sequence[NotificationSink], clock: Clock) -> None:
        self._memory = memory
        self._sinks = list(sinks)
        self._clock = clock
        self._last: Optional[dict[str, str]] = None

    async def _ensure_loaded(self) -> dict[str, str]:
        if self._last is None:
            self._last = dict(await self._memory.load())
        return self._last

    async def observe(
        self,
        task_id: TaskId,
        title: str,
        status: str,
        previous: Optional[str] = None,
    ) -> Optional[str]:
        """
        Record `status` for the task; returns the notification kind fired, if any.

        `previous` is only used when the map has no entry for the task yet.
        """
        last = await self._ensure_loaded()
        key = str(task_id)
        prev = last.get(key, previous)

        fired: Optional[str] = None
        notice = notice_for(prev, status)
        if notice is not None:
            await self._fan_out(notice.kind, task_id, title)
            fired = notice.kind

        # map always ends on the newest status, notified or not
        if last.get(key) != status:
            last[key] = status
            await self._memory.remember(key, status, to_iso(self._clock.now()))
        return fired

    async def forget(self, task_id: TaskId) -> None:
        last = await self._ensure_loaded()
        last.pop(str(task_id), None)
        await self._memory.forget(task_id)

    async def on_transition(self, task: Task, from_status: Optional[str], to_status: str) -> None:
        await self.observe(task.id, task.title, to_status, previous=from_status)

    async def on_removed(self, task_id: TaskId) -> None:
        await self.forget(task_id)

    async def _fan_out(self, kind: str, task_id: TaskId, title: str) -> None:
        for sink in self._sinks:
            try:
                await sink.emit(kind, task_id, title)
            except Exception as e:
                # one broken channel must not silence the others
                logger.error(f"Notification sink {type(sink).__name__} failed for task {task_id}: {e}", exc_info=True)


class InAppInbox(NotificationSink):
    """In-app channel: notifications land in a persisted inbox, newest first."""

    def __init__(self, repo: InboxRepository, clock: Clock, ids: IdGenerator) -> None:
        self._repo = repo
        self._clock = clock
        self._ids = ids

    async def emit(self, kind: str, task_id: TaskId, title: str) -> None:
        notice = NOTICES_BY_KIND.get(kind)
        heading = notice.heading if notice else kind
        message = notice.message(title) if notice else title
        await self._repo.add(
            Notification(
                kind=kind,
                task_id=task_id,
                heading=heading,
                message=message,
                created_at=self._clock.now(),
                notification_id=self._ids.new_id(),
            )
        )

    async def recent(self, limit: int = 20) -> Sequence[Notification]:
        return await self._repo.list_recent(limit)

    async def unread_count(self, limit: int = 100) -> int:
        return sum(1 for n in await self._repo.list_recent(limit) if not n.read)

    async def mark_read(self, notification_id: str) -> None:
        await self._repo.mark_read(notification_id)

    async def mark_all_read(self) -> None:
        await self._repo.mark_all_read()

    async def clear(self) -> None:
        await self._repo.clear()
