from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from app.domain.common.errors import ConfirmationRequired, DomainError, TransitionRejected
from app.domain.tasks.models import (
    ACTIVE,
    COMPLETED,
    BulkFailure,
    BulkResult,
    Task,
    TaskId,
    TaskStatus,
)
from app.domain.tasks.service import TaskReconciler
from app.domain.tasks.status import is_past_due

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "Task not found."


class BulkCoordinator:
    """
    Same transition for many tasks. Items are independent: one failure
    never blocks the rest, and results come back split into lists.
    """

    def __init__(self, reconciler: TaskReconciler) -> None:
        self._reconciler = reconciler

    async def apply_bulk(
        self,
        task_ids: Iterable[TaskId],
        to_status: TaskStatus,
        *,
        confirmed: bool = False,
        reopening: bool = False,
    ) -> BulkResult:
        """
        Validate and apply `to_status` to every task.

        Tasks already in `to_status` are skipped. For Completed that covers
        the "already completed" pre-filter. For Active, tasks whose due date
        has passed are excluded.
        """
        result = BulkResult()
        targets: list[TaskId] = []

        for task_id in _unique(task_ids):
            task = self._reconciler.get(task_id)
            if task is None:
                result.failed.append(BulkFailure(task_id, MSG_NOT_FOUND))
            elif task.status == to_status:
                result.skipped.append(task_id)
            elif to_status == ACTIVE and is_past_due(task, self._reconciler.now()):
                result.excluded.append(task_id)
            else:
                targets.append(task.id)

        reasons = await asyncio.gather(*(self._apply_one(tid, to_status, confirmed, reopening) for tid in targets))
        for task_id, reason in zip(targets, reasons):
            if reason is None:
                result.succeeded.append(task_id)
            else:
                result.failed.append(BulkFailure(task_id, reason))

        _log_result(f"bulk {to_status}", result)
        return result

    async def complete_many(self, task_ids: Iterable[TaskId]) -> BulkResult:
        return await self.apply_bulk(task_ids, COMPLETED)

    async def undo_many(self, task_ids: Iterable[TaskId]) -> BulkResult:
        """
        Reopen completed tasks as Active. Only completed tasks are touched;
        ones whose due date already passed are excluded and reported. Tasks
        due today are reopened too.
        """
        completed_ids: list[TaskId] = []
        result = BulkResult()
        for task_id in _unique(task_ids):
            task: Optional[Task] = self._reconciler.get(task_id)
            if task is None:
                result.failed.append(BulkFailure(task_id, MSG_NOT_FOUND))
            elif not task.completed:
                result.skipped.append(task_id)
            else:
                completed_ids.append(task_id)

        inner = await self.apply_bulk(completed_ids, ACTIVE, reopening=True)
        return BulkResult(
            succeeded=inner.succeeded,
            failed=result.failed + inner.failed,
            excluded=inner.excluded,
            skipped=result.skipped + inner.skipped,
        )

    async def delete_many(self, task_ids: Iterable[TaskId]) -> BulkResult:
        """
        Fire-and-forget once the user confirmed: all tasks leave the local
        collection at once and stay gone even if their remote delete fails.
        """
        result = BulkResult()
        targets: list[TaskId] = []
        for task_id in _unique(task_ids):
            task = self._reconciler.get(task_id)
            if task is None:
                result.failed.append(BulkFailure(task_id, MSG_NOT_FOUND))
            else:
                targets.append(task.id)

        reasons = await asyncio.gather(*(self._delete_one(tid) for tid in targets))
        for task_id, reason in zip(targets, reasons):
            if reason is None:
                result.succeeded.append(task_id)
            else:
                result.failed.append(BulkFailure(task_id, reason))

        _log_result("bulk delete", result)
        return result

    async def _apply_one(
        self, task_id: TaskId, to_status: TaskStatus, confirmed: bool, reopening: bool
    ) -> Optional[str]:
        try:
            outcome = await self._reconciler.apply_transition(
                task_id, to_status, manual=True, confirmed=confirmed, reopening=reopening
            )
        except TransitionRejected as e:
            return e.reason
        except ConfirmationRequired as e:
            return e.prompt
        except DomainError as e:
            return str(e)
        return None if outcome.ok else (outcome.error or "Update failed.")

    async def _delete_one(self, task_id: TaskId) -> Optional[str]:
        try:
            outcome = await self._reconciler.delete_task(task_id, restore_on_failure=False)
        except DomainError as e:
            return str(e)
        return None if outcome.ok else (outcome.error or "Delete failed.")


def _unique(task_ids: Iterable[TaskId]) -> list[TaskId]:
    seen: set[str] = set()
    out: list[TaskId] = []
    for task_id in task_ids:
        key = str(task_id)
        if key not in seen:
            seen.add(key)
            out.append(task_id)
    return out


def _log_result(label: str, result: BulkResult) -> None:
    if result.failed:
        logger.warning(
            f"{label}: {len(result.succeeded)} ok, {len(result.failed)} failed, "
            f"{len(result.excluded)} excluded, {len(result.skipped)} skipped"
        )
    else:
        logger.info(f"{label}: {len(result.succeeded)} ok, {len(result.excluded)} excluded, {len(result.skipped)} skipped")
