from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from app.domain.tasks.models import Notification, Task, TaskId


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class TaskGateway(ABC):
    """
    Remote source of truth. Field mappings use the Task attribute names;
    wire naming is the adapter's business.
    """

    @abstractmethod
    async def fetch_tasks(self) -> Sequence[Task]: ...

    @abstractmethod
    async def create_task(self, fields: Mapping[str, Any]) -> Task: ...

    @abstractmethod
    async def update_task(self, task_id: TaskId, fields: Mapping[str, Any]) -> Task: ...

    @abstractmethod
    async def delete_task(self, task_id: TaskId) -> None: ...


class TaskCache(ABC):
    """Last known collection, used when the remote is unreachable."""

    @abstractmethod
    async def save_all(self, tasks: Sequence[Task]) -> None: ...

    @abstractmethod
    async def load_all(self) -> Sequence[Task]: ...


class StatusMemory(ABC):
    """Persisted task_id -> last observed status map."""

    @abstractmethod
    async def load(self) -> dict[str, str]: ...

    @abstractmethod
    async def remember(self, task_id: TaskId, status: str, now_iso: str) -> None: ...

    @abstractmethod
    async def forget(self, task_id: TaskId) -> None: ...


class NotificationSink(ABC):
    @abstractmethod
    async def emit(self, kind: str, task_id: TaskId, title: str) -> None: ...


class InboxRepository(ABC):
    @abstractmethod
    async def add(self, notification: Notification) -> None: ...

    @abstractmethod
    async def list_recent(self, limit: int) -> Sequence[Notification]: ...

    @abstractmethod
    async def mark_read(self, notification_id: str) -> None: ...

    @abstractmethod
    async def mark_all_read(self) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...


class TransitionObserver(ABC):
    @abstractmethod
    async def on_transition(self, task: Task, from_status: Optional[str], to_status: str) -> None: ...

    async def on_removed(self, task_id: TaskId) -> None:
        return None
