from __future__ import annotations

from app.domain.tasks.models import TaskId
from app.domain.tasks.ports import StatusMemory
from app.infra.db.connection import Database


class StatusMemorySqliteRepo(StatusMemory):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(self) -> dict[str, str]:
        rows = await self._db.fetchall("SELECT task_id, status FROM task_status_memory;")
        return {r["task_id"]: r["status"] for r in rows}

    async def remember(self, task_id: TaskId, status: str, now_iso: str) -> None:
        await self._db.execute(
            """
            INSERT INTO task_status_memory(task_id, status, observed_at) VALUES (?, ?, ?)
            ON CONFLICT(task_id) DO UPDATE SET status = excluded.status, observed_at = excluded.observed_at;
            """,
            (str(task_id), status, now_iso),
        )

    async def forget(self, task_id: TaskId) -> None:
        await self._db.execute("DELETE FROM task_status_memory WHERE task_id = ?;", (str(task_id),))
