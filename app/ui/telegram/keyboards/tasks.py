from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from app.domain.tasks.models import ACTIVE, COMPLETED, IN_PROGRESS, Task, TaskStatus

# short codes keep callback_data under Telegram's 64 byte limit
STATUS_CODES: dict[str, TaskStatus] = {"a": ACTIVE, "p": IN_PROGRESS, "c": COMPLETED}
CODE_BY_STATUS = {v: k for k, v in STATUS_CODES.items()}


def tasks_list_kb(tasks: list[Task]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for task in tasks:
        kb.button(text=task.title[:40] or "(untitled)", callback_data=f"ts:open:{task.id}")
    kb.adjust(1)
    return kb.as_markup()


def task_actions_kb(task: Task) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for status, code in CODE_BY_STATUS.items():
        if status != task.status:
            kb.button(text=status, callback_data=f"ts:set:{code}:{task.id}")
    kb.button(text="🗑️ Delete", callback_data=f"ts:del:{task.id}")
    kb.adjust(3, 1)
    return kb.as_markup()


def confirm_status_kb(task_id, status: TaskStatus) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Yes", callback_data=f"ts:ok:{CODE_BY_STATUS[status]}:{task_id}")
    kb.button(text="Cancel", callback_data="cancel")
    kb.adjust(2)
    return kb.as_markup()


def confirm_bulk_delete_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Delete", callback_data="bulk:del:yes")
    kb.button(text="Cancel", callback_data="cancel")
    kb.adjust(2)
    return kb.as_markup()
