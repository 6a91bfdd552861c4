from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from app.domain.common.time import from_iso, to_iso
from app.domain.tasks.models import Notification
from app.domain.tasks.ports import InboxRepository
from app.infra.db.connection import Database


class InboxSqliteRepo(InboxRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def add(self, notification: Notification) -> None:
        await self._db.execute(
            """
            INSERT INTO notifications(notification_id, kind, task_id, heading, message, created_at, read_at)
            VALUES (?, ?, ?, ?, ?, ?, NULL);
            """,
            (
                notification.notification_id,
                notification.kind,
                str(notification.task_id),
                notification.heading,
                notification.message,
                to_iso(notification.created_at),
            ),
        )

    async def list_recent(self, limit: int) -> Sequence[Notification]:
        rows = await self._db.fetchall(
            """
            SELECT *
            FROM notifications
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?;
            """,
            (limit,),
        )
        return [self._row_to_notification(r) for r in rows]

    async def mark_read(self, notification_id: str) -> None:
        await self._db.execute(
            "UPDATE notifications SET read_at = ? WHERE notification_id = ? AND read_at IS NULL;",
            (_utc_now_iso(), notification_id),
        )

    async def mark_all_read(self) -> None:
        await self._db.execute("UPDATE notifications SET read_at = ? WHERE read_at IS NULL;", (_utc_now_iso(),))

    async def clear(self) -> None:
        await self._db.execute("DELETE FROM notifications;")

    def _row_to_notification(self, row) -> Notification:
        return Notification(
            kind=row["kind"],
            task_id=row["task_id"],
            heading=row["heading"],
            message=row["message"],
            created_at=from_iso(row["created_at"]),
            read=row["read_at"] is not None,
            notification_id=row["notification_id"],
        )


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
