from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

from app.domain.common.errors import NotFoundError
from app.domain.tasks.models import Task, TaskId, check_consistent


class TaskStore:
    """
    In-memory task collection owned by the reconciler.

    Keys are str(task.id) so "42" and 42 address the same task. Every write
    goes through check_consistent, so completed/status never disagree.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._items: dict[str, Task] = {}
        self.replace_all(tasks)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, task_id: object) -> bool:
        return str(task_id) in self._items

    def get_all(self) -> list[Task]:
        return list(self._items.values())

    def get(self, task_id: TaskId) -> Optional[Task]:
        return self._items.get(str(task_id))

    def require(self, task_id: TaskId) -> Task:
        task = self.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id!r} not found.")
        return task

    def apply(self, task_id: TaskId, updates: Mapping[str, Any]) -> Task:
        current = self.require(task_id)
        updated = check_consistent(replace(current, **dict(updates)))
        self._items[str(task_id)] = updated
        return updated

    def put(self, task: Task) -> Task:
        self._items[str(task.id)] = check_consistent(task)
        return task

    def remove(self, task_id: TaskId) -> Optional[Task]:
        return self._items.pop(str(task_id), None)

    def rekey(self, old_id: TaskId, task: Task) -> Task:
        """Swap an optimistic entry for the server copy, keeping its position."""
        check_consistent(task)
        old_key, new_key = str(old_id), str(task.id)
        self._items = {
            (new_key if k == old_key else k): (task if k == old_key else v)
            for k, v in self._items.items()
        }
        if new_key not in self._items:
            self._items[new_key] = task
        return task

    def replace_all(self, tasks: Iterable[Task]) -> None:
        items: dict[str, Task] = {}
        for task in tasks:
            items[str(task.id)] = check_consistent(task)
        self._items = items
