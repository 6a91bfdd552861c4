from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from app.domain.common.errors import RemotePersistenceError, ValidationError
from app.domain.common.time import normalize_hhmm, parse_due_date
from app.domain.tasks.models import (
    DEFAULT_CATEGORY,
    DEFAULT_PRIORITY,
    EDITABLE_FIELDS,
    OPTIMISTIC_ID_PREFIX,
    PRIORITIES,
    Task,
    TaskId,
    TaskStatus,
    WriteOutcome,
)
from app.domain.tasks.ports import Clock, IdGenerator, TaskCache, TaskGateway, TransitionObserver
from app.domain.tasks.rules import ensure_transition_allowed, validate_title
from app.domain.tasks.status import should_auto_transition
from app.domain.tasks.store import TaskStore
from app.domain.tasks.transaction import TaskTransaction, transition_updates

logger = logging.getLogger(__name__)

RemoteCall = Callable[[], Awaitable[Optional[Task]]]


class TaskReconciler:
    """
    Owns the task collection and keeps it in step with the remote API.

    Every write is optimistic: the store changes first, then the remote call
    runs. Success merges the server copy, failure restores the snapshot.
    Remote failures never escape; they come back as a falsy WriteOutcome.

    Writes are fenced per task: when a newer write for the same task has
    been issued, the older call's result (success or failure) is dropped.
    """

    def __init__(
        self,
        store: TaskStore,
        gateway: TaskGateway,
        clock: Clock,
        ids: IdGenerator,
        cache: Optional[TaskCache] = None,
        observers: Sequence[TransitionObserver] = (),
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._clock = clock
        self._ids = ids
        self._cache = cache
        self._observers = list(observers)
        self._seq: dict[str, int] = {}
        self._inflight: dict[str, int] = {}
        self.offline = False

    @property
    def store(self) -> TaskStore:
        return self._store

    def add_observer(self, observer: TransitionObserver) -> None:
        self._observers.append(observer)

    def tasks(self) -> list[Task]:
        return self._store.get_all()

    def get(self, task_id: TaskId) -> Optional[Task]:
        return self._store.get(task_id)

    def now(self) -> datetime:
        return self._clock.now()

    def has_pending_write(self, task_id: TaskId) -> bool:
        return self._inflight.get(str(task_id), 0) > 0

    # ---------- loading ----------

    async def load(self) -> list[Task]:
        """
        Fill the store from the remote. Falls back to the local cache when the
        remote is unreachable (offline mode).
        """
        try:
            tasks = list(await self._gateway.fetch_tasks())
            self.offline = False
        except RemotePersistenceError as e:
            logger.warning(f"Fetching tasks failed, using local cache: {e}")
            tasks = list(await self._cache.load_all()) if self._cache else []
            self.offline = True

        self._store.replace_all(tasks)
        if not self.offline:
            await self._save_cache()

        for task in self._store.get_all():
            await self._notify(task, None, task.status)
        logger.info(f"Loaded {len(tasks)} tasks (offline={self.offline})")
        return self._store.get_all()

    async def refresh(self) -> bool:
        """
        Poll the remote for changes made elsewhere (other tabs, sessions).

        Tasks with a write in flight, tasks written while the fetch ran and
        not-yet-created tasks keep their local state; everything else takes
        the server copy.
        """
        seq_before = dict(self._seq)
        try:
            remote = list(await self._gateway.fetch_tasks())
        except RemotePersistenceError as e:
            logger.warning(f"Refreshing tasks failed: {e}")
            self.offline = True
            return False

        self.offline = False
        before = {str(t.id): t for t in self._store.get_all()}
        merged: list[Task] = []
        changes: list[tuple[Task, Optional[str]]] = []

        def locally_owned(key: str) -> bool:
            return self.has_pending_write(key) or self._seq.get(key) != seq_before.get(key)

        for task in remote:
            key = str(task.id)
            local = before.get(key)
            if locally_owned(key):
                # a local delete in flight or committed mid-fetch leaves nothing to keep
                if local is not None:
                    merged.append(local)
                continue
            merged.append(task)
            if local is None or local.status != task.status:
                changes.append((task, local.status if local else None))

        remote_keys = {str(t.id) for t in remote}
        for key, local in before.items():
            if key in remote_keys:
                continue
            if local.is_optimistic or locally_owned(key):
                merged.append(local)
            else:
                logger.debug(f"Task {key} removed remotely")
                await self._notify_removed(local.id)

        self._store.replace_all(merged)
        await self._save_cache()
        for task, previous in changes:
            await self._notify(task, previous, task.status)
        return True

    # ---------- status ----------

    async def apply_transition(
        self,
        task_id: TaskId,
        to_status: TaskStatus,
        *,
        manual: bool = True,
        confirmed: bool = False,
        reopening: bool = False,
    ) -> WriteOutcome:
        """
        Move a task to `to_status`.

        Manual changes are validated first: TransitionRejected and
        ConfirmationRequired are raised before anything is mutated.
        `reopening` marks an undo of a completion (see validate_transition).
        """
        task = self._require_saved(task_id)
        now = self._clock.now()
        if manual:
            ensure_transition_allowed(task, to_status, now, confirmed=confirmed, reopening=reopening)

        updates = transition_updates(task, to_status, manual=manual, now=now)
        txn = TaskTransaction.for_update(self._store, task.id, updates, keep_intent=True)
        return await self._write(
            txn,
            lambda: self._gateway.update_task(task.id, updates),
            action="update",
        )

    async def sweep(self) -> list[TaskId]:
        """
        Promote tasks along Active -> In Progress -> Overdue by the clock.

        Manual statuses are kept unless the task became overdue. Returns ids
        that were moved and persisted.
        """
        now = self._clock.now()
        moves: list[tuple[Task, TaskStatus]] = []
        for task in self._store.get_all():
            if task.is_optimistic:
                continue
            target = should_auto_transition(task, now)
            if target is not None:
                moves.append((task, target))

        if not moves:
            return []

        for task, target in moves:
            logger.info(f"Auto-updating task {task.id} from {task.status} to {target}")

        outcomes = await asyncio.gather(
            *(self._auto_move(task.id, target) for task, target in moves)
        )
        return [task.id for (task, _), ok in zip(moves, outcomes) if ok]

    async def _auto_move(self, task_id: TaskId, target: TaskStatus) -> bool:
        if task_id not in self._store:
            # deleted since the sweep started
            return False
        outcome = await self.apply_transition(task_id, target, manual=False)
        return outcome.ok

    # ---------- create / edit / delete ----------

    async def create_task(self, fields: Mapping[str, Any]) -> WriteOutcome:
        payload = self._clean_fields(fields, creating=True)
        now = self._clock.now()
        task = Task(
            id=f"{OPTIMISTIC_ID_PREFIX}{self._ids.new_id()}",
            created_at=now,
            updated_at=now,
            **payload,
        )
        txn = TaskTransaction.for_insert(self._store, task)
        return await self._write(txn, lambda: self._gateway.create_task(payload), action="create")

    async def edit_task(self, task_id: TaskId, fields: Mapping[str, Any]) -> WriteOutcome:
        task = self._require_saved(task_id)
        payload = self._clean_fields(fields, creating=False)
        if not payload:
            return WriteOutcome(True, task)
        txn = TaskTransaction.for_update(self._store, task.id, payload)
        return await self._write(txn, lambda: self._gateway.update_task(task.id, payload), action="update")

    async def delete_task(self, task_id: TaskId, *, restore_on_failure: bool = True) -> WriteOutcome:
        """
        Optimistic removal. With restore_on_failure=False (bulk delete) a
        failed remote delete leaves the task removed locally.
        """
        task = self._require_saved(task_id)
        txn = TaskTransaction.for_delete(self._store, task.id)

        async def call() -> None:
            await self._gateway.delete_task(task.id)

        return await self._write(txn, call, action="delete", rollback=restore_on_failure)

    # ---------- internals ----------

    def _require_saved(self, task_id: TaskId) -> Task:
        # a tmp- task has no server id to write against until its create returns
        task = self._store.require(task_id)
        if task.is_optimistic:
            raise ValidationError("Task is still being created; try again in a moment.")
        return task

    def _clean_fields(self, fields: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")

        cleaned: dict[str, Any] = {}
        if creating or "title" in fields:
            cleaned["title"] = validate_title(fields.get("title", ""))
        if "description" in fields or creating:
            cleaned["description"] = (fields.get("description") or "").strip()
        if "category" in fields or creating:
            cleaned["category"] = (fields.get("category") or "").strip() or DEFAULT_CATEGORY
        if "priority" in fields or creating:
            priority = fields.get("priority") or DEFAULT_PRIORITY
            if priority not in PRIORITIES:
                raise ValidationError(f"Priority must be one of {', '.join(PRIORITIES)}.")
            cleaned["priority"] = priority
        if "due" in fields or creating:
            raw_due = fields.get("due")
            due = parse_due_date(raw_due)
            if raw_due and due is None:
                raise ValidationError("Due date must be YYYY-MM-DD.")
            cleaned["due"] = due
        if "time" in fields or creating:
            raw_time = fields.get("time")
            hhmm = normalize_hhmm(raw_time)
            if raw_time and hhmm is None:
                raise ValidationError("Time must be HH:MM.")
            cleaned["time"] = hhmm
        if "tags" in fields or creating:
            cleaned["tags"] = tuple(str(t) for t in (fields.get("tags") or ()))
        return cleaned

    def _next_seq(self, key: str) -> int:
        seq = self._seq.get(key, 0) + 1
        self._seq[key] = seq
        return seq

    def _is_stale(self, key: str, seq: int) -> bool:
        return self._seq.get(key) != seq

    async def _write(
        self,
        txn: TaskTransaction,
        call: RemoteCall,
        *,
        action: str,
        rollback: bool = True,
    ) -> WriteOutcome:
        key = str(txn.task_id)
        seq = self._next_seq(key)
        from_status = txn.snapshot.status if txn.snapshot else None

        txn.apply()
        self._inflight[key] = self._inflight.get(key, 0) + 1
        try:
            try:
                server_task = await call()
            finally:
                self._release(key)
        except RemotePersistenceError as e:
            message = f"Failed to {action} task: {e}"
            logger.warning(f"{message} (task_id={key})")
            if self._is_stale(key, seq):
                logger.info(f"Ignoring stale {action} failure for task {key}")
            elif rollback:
                txn.rollback()
                if txn.snapshot is None:
                    self._forget_seq(key)
            return WriteOutcome(False, self._store.get(key), message)

        if self._is_stale(key, seq):
            logger.info(f"Ignoring stale {action} response for task {key}")
            return WriteOutcome(True, self._store.get(key))

        committed = txn.commit(server_task)
        if committed is None or str(committed.id) != key:
            # deleted, or re-keyed from its tmp- id
            self._forget_seq(key)
        if committed is not None and str(committed.id) != key:
            self._next_seq(str(committed.id))
        await self._save_cache()

        if committed is None:
            await self._notify_removed(txn.task_id)
        elif committed.status != from_status:
            await self._notify(committed, from_status, committed.status)
        return WriteOutcome(True, committed)

    def _release(self, key: str) -> None:
        left = self._inflight.get(key, 0) - 1
        if left > 0:
            self._inflight[key] = left
        else:
            self._inflight.pop(key, None)

    def _forget_seq(self, key: str) -> None:
        if not self.has_pending_write(key):
            self._seq.pop(key, None)

    async def _notify(self, task: Task, from_status: Optional[str], to_status: str) -> None:
        for observer in self._observers:
            try:
                await observer.on_transition(task, from_status, to_status)
            except Exception as e:
                logger.error(f"Transition observer failed for task {task.id}: {e}", exc_info=True)

    async def _notify_removed(self, task_id: TaskId) -> None:
        for observer in self._observers:
            try:
                await observer.on_removed(task_id)
            except Exception as e:
                logger.error(f"Removal observer failed for task {task_id}: {e}", exc_info=True)

    async def _save_cache(self) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.save_all(self._store.get_all())
        except Exception as e:
            logger.error(f"Saving local task cache failed: {e}", exc_info=True)
