from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Sequence

from app.domain.tasks.models import Task
from app.domain.tasks.ports import TaskCache
from app.infra.api.tasks_api import task_from_payload, task_to_payload
from app.infra.db.connection import Database


class TaskCacheSqliteRepo(TaskCache):
    """Whole-collection snapshot in the backend's JSON shape."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def save_all(self, tasks: Sequence[Task]) -> None:
        now_iso = datetime.now(timezone.utc).isoformat()
        rows = [
            (str(task.id), pos, json.dumps(task_to_payload(task), ensure_ascii=False), now_iso)
            for pos, task in enumerate(tasks)
        ]
        await self._db.replace_rows(
            "DELETE FROM task_cache;",
            "INSERT INTO task_cache(task_id, position, payload_json, cached_at) VALUES (?, ?, ?, ?);",
            rows,
        )

    async def load_all(self) -> Sequence[Task]:
        rows = await self._db.fetchall("SELECT payload_json FROM task_cache ORDER BY position;")
        return [task_from_payload(json.loads(r["payload_json"])) for r in rows]
