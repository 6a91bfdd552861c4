"""
BulkCoordinator: pre-filters, independent items, split results.
"""
from __future__ import annotations

import asyncio
from datetime import date

from app.domain.tasks.bulk import MSG_NOT_FOUND, BulkCoordinator
from app.domain.tasks.models import ACTIVE, COMPLETED, IN_PROGRESS, OVERDUE, is_consistent
from app.domain.tasks.rules import REASON_OVERDUE_AUTOMATIC
from app.domain.tasks.service import TaskReconciler
from app.domain.tasks.store import TaskStore
from fakes import FakeClock, FakeGateway, SeqIds, at, make_task

NOW = at(2025, 3, 10, 12, 0)


def build(tasks):
    gateway = FakeGateway(tasks)
    reconciler = TaskReconciler(TaskStore(), gateway, FakeClock(NOW), SeqIds())
    return BulkCoordinator(reconciler), reconciler, gateway


def test_undo_excludes_past_due_and_reopens_future():
    async def run():
        bulk, rec, _ = build([
            make_task("A", due=date(2025, 3, 9), completed=True, completed_at=at(2025, 3, 9)),
            make_task("B", due=date(2025, 3, 11), completed=True, completed_at=at(2025, 3, 9)),
        ])
        await rec.load()

        result = await bulk.undo_many(["A", "B"])

        assert result.excluded == ["A"]
        assert result.succeeded == ["B"]
        assert result.failed == []
        assert rec.get("A").status == COMPLETED
        b = rec.get("B")
        assert b.status == ACTIVE and not b.completed
        assert b.completed_at is None

    asyncio.run(run())


def test_undo_skips_tasks_that_are_not_completed():
    async def run():
        bulk, rec, gw = build([make_task("1"), make_task("2", status=IN_PROGRESS)])
        await rec.load()

        result = await bulk.undo_many(["1", "2"])

        assert result.skipped == ["1", "2"]
        assert result.succeeded == []
        assert [op for op, _ in gw.calls] == ["fetch"]

    asyncio.run(run())


def test_complete_many_skips_already_completed_and_reports_partial_failure():
    async def run():
        bulk, rec, gw = build([
            make_task("1"),
            make_task("2", status=OVERDUE, due=date(2025, 3, 1)),
            make_task("3", completed=True),
            make_task("4"),
        ])
        await rec.load()
        gw.fail_ids.add("4")

        result = await bulk.complete_many(["1", "2", "3", "4", "missing", "1"])

        assert result.succeeded == ["1", "2"]
        assert result.skipped == ["3"]
        assert [f.task_id for f in result.failed] == ["missing", "4"]
        assert result.failed[0].reason == MSG_NOT_FOUND
        assert result.failed[1].reason.startswith("Failed to update task:")
        assert result.partial
        # failed item rolled back, others kept
        assert rec.get("4").status == ACTIVE
        assert rec.get("1").status == COMPLETED
        assert all(is_consistent(t) for t in rec.tasks())

    asyncio.run(run())


def test_bulk_rejections_are_reported_per_task():
    async def run():
        bulk, rec, _ = build([make_task("1"), make_task("2")])
        await rec.load()

        result = await bulk.apply_bulk(["1", "2"], OVERDUE)

        assert result.succeeded == []
        assert {f.reason for f in result.failed} == {REASON_OVERDUE_AUTOMATIC}

    asyncio.run(run())


def test_bulk_in_progress_needs_confirmation_per_batch():
    async def run():
        bulk, rec, _ = build([make_task("1", due=date(2025, 3, 20)), make_task("2", due=date(2025, 3, 10))])
        await rec.load()

        unconfirmed = await bulk.apply_bulk(["1", "2"], IN_PROGRESS)
        assert unconfirmed.succeeded == ["2"]
        assert [f.task_id for f in unconfirmed.failed] == ["1"]

        confirmed = await bulk.apply_bulk(["1"], IN_PROGRESS, confirmed=True)
        assert confirmed.succeeded == ["1"]

    asyncio.run(run())


def test_delete_many_does_not_restore_failed_deletes():
    async def run():
        bulk, rec, gw = build([make_task("1"), make_task("2"), make_task("3")])
        await rec.load()
        gw.fail_ids.add("2")

        result = await bulk.delete_many(["1", "2"])

        assert result.succeeded == ["1"]
        assert [f.task_id for f in result.failed] == ["2"]
        assert [t.id for t in rec.tasks()] == ["3"]
        assert "2" in gw.tasks

    asyncio.run(run())


def test_undo_reopens_task_due_today():
    async def run():
        bulk, rec, gw = build([
            make_task("1", due=date(2025, 3, 10), completed=True, completed_at=at(2025, 3, 10, 9, 0)),
        ])
        await rec.load()

        result = await bulk.undo_many(["1"])

        assert result.succeeded == ["1"]
        assert result.failed == [] and result.excluded == []
        task = rec.get("1")
        assert task.status == ACTIVE and not task.completed
        assert gw.tasks["1"].status == ACTIVE

    asyncio.run(run())


def test_delete_many_reports_task_still_being_created():
    async def run():
        bulk, rec, gw = build([make_task("1")])
        await rec.load()
        gate = gw.block_next()

        creating = asyncio.create_task(rec.create_task({"title": "New"}))
        await asyncio.sleep(0)
        tmp_id = next(t.id for t in rec.tasks() if t.is_optimistic)

        result = await bulk.delete_many(["1", tmp_id])

        assert result.succeeded == ["1"]
        assert [f.task_id for f in result.failed] == [tmp_id]
        assert "still being created" in result.failed[0].reason

        gate.set()
        assert await creating
        assert [t.id for t in rec.tasks()] == ["101"]
        assert sorted(gw.tasks) == ["101"]

    asyncio.run(run())
