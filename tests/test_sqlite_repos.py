"""
SQLite side: migrations, task cache, status memory, inbox.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import date

from app.domain.common.time import to_iso
from app.domain.tasks.models import ACTIVE, COMPLETED, IN_PROGRESS, Notification
from app.infra.db.connection import Database
from app.infra.db.repo.inbox_sqlite import InboxSqliteRepo
from app.infra.db.repo.status_memory_sqlite import StatusMemorySqliteRepo
from app.infra.db.repo.task_cache_sqlite import TaskCacheSqliteRepo
from app.infra.db.schema_version import apply_migrations
from fakes import at, make_task


async def fresh_db(path: str) -> Database:
    db = Database(path)
    await apply_migrations(db, now_iso=to_iso(at(2025, 3, 10)))
    return db


def with_db(fn):
    async def run():
        with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
            path = f.name
        try:
            db = await fresh_db(path)
            await fn(db)
        finally:
            for suffix in ("", "-wal", "-shm"):
                if os.path.exists(path + suffix):
                    os.unlink(path + suffix)

    asyncio.run(run())


def test_migrations_apply_once():
    async def check(db):
        assert await apply_migrations(db, now_iso=to_iso(at(2025, 3, 11))) == []
        row = await db.fetchone("SELECT COUNT(*) AS n FROM schema_migrations;")
        assert row["n"] == 1

    with_db(check)


def test_task_cache_round_trip_keeps_order_and_fields():
    async def check(db):
        repo = TaskCacheSqliteRepo(db)
        tasks = [
            make_task("b", due=date(2025, 3, 12), time="14:00", status=IN_PROGRESS, manual_status=True,
                      in_progress_at=at(2025, 3, 10, 9, 0), tags=("work",)),
            make_task("a", completed=True, completed_at=at(2025, 3, 9)),
        ]
        await repo.save_all(tasks)
        loaded = await repo.load_all()
        assert loaded == tasks

        await repo.save_all(tasks[1:])
        assert [t.id for t in await repo.load_all()] == ["a"]

    with_db(check)


def test_status_memory_upserts_and_forgets():
    async def check(db):
        repo = StatusMemorySqliteRepo(db)
        await repo.remember("1", ACTIVE, to_iso(at(2025, 3, 10)))
        await repo.remember("1", IN_PROGRESS, to_iso(at(2025, 3, 10, 13)))
        await repo.remember(2, COMPLETED, to_iso(at(2025, 3, 10, 14)))
        assert await repo.load() == {"1": IN_PROGRESS, "2": COMPLETED}

        await repo.forget(2)
        assert await repo.load() == {"1": IN_PROGRESS}

    with_db(check)


def test_inbox_newest_first_and_read_flags():
    async def check(db):
        repo = InboxSqliteRepo(db)
        for i, hh in enumerate((9, 10, 11)):
            await repo.add(Notification(
                kind="task_started",
                task_id=str(i),
                heading="Task Started",
                message=f"m{i}",
                created_at=at(2025, 3, 10, hh),
                notification_id=f"n{i}",
            ))

        items = await repo.list_recent(2)
        assert [n.notification_id for n in items] == ["n2", "n1"]
        assert not any(n.read for n in items)

        await repo.mark_read("n1")
        items = await repo.list_recent(10)
        assert [n.read for n in items] == [False, True, False]

        await repo.mark_all_read()
        assert all(n.read for n in await repo.list_recent(10))

        await repo.clear()
        assert await repo.list_recent(10) == []

    with_db(check)
