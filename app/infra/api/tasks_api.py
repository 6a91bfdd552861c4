# app/infra/api/tasks_api.py
from __future__ import annotations

from dataclasses import fields as dataclass_fields
from datetime import date, datetime
from typing import Any, Mapping, Sequence
from urllib.parse import quote

from app.domain.common.errors import RemotePersistenceError
from app.domain.common.time import normalize_hhmm, parse_due_date, parse_timestamp, to_iso
from app.domain.tasks.models import (
    ACTIVE,
    ALL_STATUSES,
    COMPLETED,
    DEFAULT_CATEGORY,
    DEFAULT_PRIORITY,
    DEFAULT_TITLE,
    Task,
    TaskId,
)
from app.domain.tasks.ports import TaskGateway
from app.infra.api.client import ApiClient

# python attribute -> backend JSON key
WIRE_NAMES = {
    "manual_status": "manualStatus",
    "in_progress_at": "inProgressAt",
    "overdue_at": "overdueAt",
    "completed_at": "completedAt",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    return value


def fields_to_payload(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {WIRE_NAMES.get(k, k): _wire_value(v) for k, v in fields.items()}


def task_to_payload(task: Task) -> dict[str, Any]:
    """Full record in backend shape (what the local cache stores)."""
    return fields_to_payload({f.name: getattr(task, f.name) for f in dataclass_fields(task)})


def task_from_payload(data: Mapping[str, Any]) -> Task:
    """
    Build a Task from a backend record, filling the same defaults the
    backend's sanitizer uses. completed and status are reconciled so the
    result is always consistent.
    """
    task_id = data.get("id", data.get("_id"))
    if task_id in (None, ""):
        raise RemotePersistenceError("Task record without id")

    status = data.get("status") or ACTIVE
    if status not in ALL_STATUSES:
        status = ACTIVE
    completed = bool(data.get("completed"))
    if completed:
        status = COMPLETED
    elif status == COMPLETED:
        completed = True

    tags = data.get("tags")
    return Task(
        id=task_id,
        title=(data.get("title") or "").strip() or DEFAULT_TITLE,
        description=(data.get("description") or "").strip(),
        category=(data.get("category") or "").strip() or DEFAULT_CATEGORY,
        priority=data.get("priority") or DEFAULT_PRIORITY,
        due=parse_due_date(data.get("due")),
        time=normalize_hhmm(data.get("time")),
        status=status,
        manual_status=bool(data.get("manualStatus")),
        completed=completed,
        in_progress_at=parse_timestamp(data.get("inProgressAt")),
        overdue_at=parse_timestamp(data.get("overdueAt")),
        completed_at=parse_timestamp(data.get("completedAt")),
        created_at=parse_timestamp(data.get("createdAt")),
        updated_at=parse_timestamp(data.get("updatedAt")),
        tags=tuple(str(t) for t in tags) if isinstance(tags, list) else (),
    )


def _unwrap_task(data: Any) -> Mapping[str, Any]:
    if isinstance(data, dict) and isinstance(data.get("task"), dict):
        return data["task"]
    if isinstance(data, dict):
        return data
    raise RemotePersistenceError(f"Unexpected task response: {type(data).__name__}")


def _unwrap_list(data: Any) -> list[Mapping[str, Any]]:
    if isinstance(data, dict):
        data = data.get("tasks", [])
    if not isinstance(data, list):
        raise RemotePersistenceError(f"Unexpected task list response: {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


def _task_path(task_id: TaskId) -> str:
    return f"/tasks/{quote(str(task_id), safe='')}"


class HttpTaskGateway(TaskGateway):
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def fetch_tasks(self) -> Sequence[Task]:
        data = await self._client.request("GET", "/tasks")
        return [task_from_payload(item) for item in _unwrap_list(data)]

    async def create_task(self, fields: Mapping[str, Any]) -> Task:
        data = await self._client.request("POST", "/tasks", fields_to_payload(fields))
        return task_from_payload(_unwrap_task(data))

    async def update_task(self, task_id: TaskId, fields: Mapping[str, Any]) -> Task:
        data = await self._client.request("PATCH", _task_path(task_id), fields_to_payload(fields))
        return task_from_payload(_unwrap_task(data))

    async def delete_task(self, task_id: TaskId) -> None:
        await self._client.request("DELETE", _task_path(task_id))
