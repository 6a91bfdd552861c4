"""
Optimistic write with rollback.

    txn = TaskTransaction.for_update(store, task_id, updates)
    txn.apply()                 # local collection changes now
    ... remote call ...
    txn.commit(server_task)     # merge canonical fields
    # or
    txn.rollback()              # restore the snapshot exactly
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional

from app.domain.tasks.models import (
    ACTIVE,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    Task,
    TaskId,
    TaskStatus,
)
from app.domain.tasks.store import TaskStore

_TIMESTAMP_FIELDS = ("in_progress_at", "overdue_at", "completed_at", "created_at", "updated_at")
# local intent wins over the echo for these
_INTENT_FIELDS = ("status", "completed", "manual_status")


def transition_updates(task: Task, to_status: TaskStatus, *, manual: bool, now: datetime) -> dict[str, Any]:
    """
    Field changes implied by moving `task` to `to_status`.

    Entering a state stamps its timestamp once; re-entering the same state
    keeps the original stamp. Going back to Active clears completed_at and
    in_progress_at; other history stays.
    """
    updates: dict[str, Any] = {
        "status": to_status,
        "completed": to_status == COMPLETED,
        "manual_status": manual,
    }
    if to_status == COMPLETED and task.status != COMPLETED:
        updates["completed_at"] = now
    elif to_status == IN_PROGRESS and task.status != IN_PROGRESS:
        updates["in_progress_at"] = now
    elif to_status == OVERDUE and task.status != OVERDUE:
        updates["overdue_at"] = now
    elif to_status == ACTIVE:
        updates["completed_at"] = None
        updates["in_progress_at"] = None
    return updates


def merge_server_copy(local: Task, server: Task, *, keep_intent: bool) -> Task:
    """
    Server copy is canonical, except: a timestamp the server left empty keeps
    the local value, and with keep_intent the status fields stay as the user
    set them.
    """
    merged = replace(server, id=local.id if server.id in (None, "") else server.id)
    changes: dict[str, Any] = {}
    for name in _TIMESTAMP_FIELDS:
        if getattr(server, name) is None and getattr(local, name) is not None:
            changes[name] = getattr(local, name)
    if keep_intent:
        for name in _INTENT_FIELDS:
            changes[name] = getattr(local, name)
    return replace(merged, **changes) if changes else merged


class TaskTransaction:
    def __init__(
        self,
        store: TaskStore,
        task_id: TaskId,
        snapshot: Optional[Task],
        target: Optional[Task],
        *,
        keep_intent: bool = False,
    ) -> None:
        self._store = store
        self.task_id = task_id
        self.snapshot = snapshot
        self.target = target
        self._keep_intent = keep_intent
        self.state = "new"

    @classmethod
    def for_update(
        cls,
        store: TaskStore,
        task_id: TaskId,
        updates: Mapping[str, Any],
        *,
        keep_intent: bool = False,
    ) -> "TaskTransaction":
        snapshot = store.require(task_id)
        return cls(store, task_id, snapshot, replace(snapshot, **dict(updates)), keep_intent=keep_intent)

    @classmethod
    def for_insert(cls, store: TaskStore, task: Task) -> "TaskTransaction":
        return cls(store, task.id, None, task)

    @classmethod
    def for_delete(cls, store: TaskStore, task_id: TaskId) -> "TaskTransaction":
        return cls(store, task_id, store.require(task_id), None)

    def apply(self) -> Optional[Task]:
        if self.target is None:
            self._store.remove(self.task_id)
        else:
            self._store.put(self.target)
        self.state = "applied"
        return self.target

    def commit(self, server_task: Optional[Task] = None) -> Optional[Task]:
        self.state = "committed"
        if self.target is None:
            # delete: anything put back since apply() is gone too
            self._store.remove(self.task_id)
            return None
        if server_task is None:
            return self.target

        if self.snapshot is None:
            # insert: optimistic id -> server id
            return self._store.rekey(self.task_id, server_task)

        current = self._store.get(self.task_id)
        if current is None:
            # deleted while the call was in flight
            return None
        merged = merge_server_copy(current, server_task, keep_intent=self._keep_intent)
        return self._store.put(merged)

    def rollback(self) -> None:
        if self.snapshot is None:
            self._store.remove(self.task_id)
        else:
            self._store.put(self.snapshot)
        self.state = "rolled_back"
