"""
Chat rendering and command argument parsing.
"""
from __future__ import annotations

from datetime import date

from app.domain.tasks.models import BulkFailure, BulkResult, COMPLETED, IN_PROGRESS, OVERDUE
from app.ui.telegram.handlers._common import parse_add_args, split_ids
from app.ui.telegram.keyboards.tasks import task_actions_kb
from app.ui.telegram.texts.tasks import parse_status_word, render_board, render_bulk_result, task_line
from fakes import at, make_task

NOW = at(2025, 3, 10, 12, 0)


def test_parse_status_word_aliases():
    assert parse_status_word("done") == COMPLETED
    assert parse_status_word("In Progress") == IN_PROGRESS
    assert parse_status_word("overdue") == OVERDUE
    assert parse_status_word("later") is None


def test_parse_add_args():
    assert parse_add_args("Buy milk | 2025-03-12 14:00") == {"title": "Buy milk", "due": "2025-03-12", "time": "14:00"}
    assert parse_add_args("Buy milk") == {"title": "Buy milk"}


def test_split_ids_accepts_commas_and_spaces():
    assert split_ids("1, 2  3,4") == ["1", "2", "3", "4"]
    assert split_ids("  ") == []


def test_task_line_escapes_and_flags_past_due():
    line = task_line(make_task("7", title="a<b", due=date(2025, 3, 9)), NOW)
    assert "a&lt;b" in line
    assert "⚠️ 2025-03-09" in line
    assert "<code>7</code>" in line


def test_board_lists_columns_and_offline_banner():
    text = render_board([make_task("1"), make_task("2", completed=True)], NOW, offline=True)
    assert text.startswith("<i>Offline")
    assert "<b>Active</b> (1)" in text
    assert "<b>Completed</b> (1)" in text
    assert "<b>Overdue</b> (0)" in text


def test_bulk_result_lists_failures():
    result = BulkResult(succeeded=["1"], failed=[BulkFailure("2", "Task not found.")], excluded=["3"])
    text = render_bulk_result("Reopened", result)
    assert text.splitlines()[0] == "Reopened: 1 task(s) done."
    assert "1 overdue task(s) cannot be reactivated." in text
    assert "<code>2</code>: Task not found." in text


def test_task_actions_skip_current_status():
    kb = task_actions_kb(make_task("9", status=IN_PROGRESS))
    data = [b.callback_data for row in kb.inline_keyboard for b in row]
    assert data == ["ts:set:a:9", "ts:set:c:9", "ts:del:9"]
