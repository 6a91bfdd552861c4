"""
Status field changes and the optimistic transaction around them.
"""
from __future__ import annotations

from app.domain.tasks.models import ACTIVE, COMPLETED, IN_PROGRESS, OVERDUE
from app.domain.tasks.store import TaskStore
from app.domain.tasks.transaction import TaskTransaction, transition_updates
from fakes import at, make_task

NOW = at(2025, 3, 10, 12, 0)
EARLIER = at(2025, 3, 10, 8, 0)


def test_reentering_in_progress_keeps_original_stamp():
    task = make_task("1", status=IN_PROGRESS, in_progress_at=EARLIER)
    updates = transition_updates(task, IN_PROGRESS, manual=True, now=NOW)
    assert "in_progress_at" not in updates
    assert updates["status"] == IN_PROGRESS


def test_entering_in_progress_stamps_now():
    updates = transition_updates(make_task("1"), IN_PROGRESS, manual=False, now=NOW)
    assert updates["in_progress_at"] == NOW
    assert updates["manual_status"] is False


def test_back_to_active_clears_completed_and_in_progress_stamps():
    for status in (COMPLETED, IN_PROGRESS):
        task = make_task("1", status=status, in_progress_at=EARLIER, completed_at=EARLIER if status == COMPLETED else None)
        updates = transition_updates(task, ACTIVE, manual=True, now=NOW)
        assert updates["completed_at"] is None
        assert updates["in_progress_at"] is None
        assert updates["completed"] is False


def test_completing_keeps_in_progress_history():
    task = make_task("1", status=IN_PROGRESS, in_progress_at=EARLIER)
    updates = transition_updates(task, COMPLETED, manual=True, now=NOW)
    assert updates["completed_at"] == NOW
    assert updates["completed"] is True
    assert "in_progress_at" not in updates


def test_overdue_stamped_once():
    assert transition_updates(make_task("1"), OVERDUE, manual=False, now=NOW)["overdue_at"] == NOW
    again = make_task("1", status=OVERDUE, overdue_at=EARLIER)
    assert "overdue_at" not in transition_updates(again, OVERDUE, manual=False, now=NOW)


def test_committed_delete_removes_a_copy_put_back_meanwhile():
    store = TaskStore([make_task("1"), make_task("2")])
    txn = TaskTransaction.for_delete(store, "1")
    txn.apply()
    store.put(make_task("1"))

    assert txn.commit() is None
    assert store.get("1") is None
    assert [t.id for t in store.get_all()] == ["2"]
