from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from app.domain.common.errors import ConfirmationRequired, NotFoundError, TransitionRejected, ValidationError
from app.domain.tasks.board import sort_tasks
from app.domain.tasks.models import TaskStatus
from app.domain.tasks.service import TaskReconciler
from app.ui.telegram.handlers._common import command_args, parse_add_args
from app.ui.telegram.keyboards.common import main_menu_kb
from app.ui.telegram.keyboards.tasks import (
    STATUS_CODES,
    confirm_status_kb,
    task_actions_kb,
    tasks_list_kb,
)
from app.ui.telegram.texts.tasks import parse_status_word, render_board, render_task

logger = logging.getLogger(__name__)

router = Router()


async def _send_board(message: Message, reconciler: TaskReconciler) -> None:
    tasks = sort_tasks(reconciler.tasks())
    text = render_board(tasks, reconciler.now(), offline=reconciler.offline)
    open_tasks = [t for t in tasks if not t.completed]
    markup = tasks_list_kb(open_tasks) if open_tasks else main_menu_kb()
    await message.answer(text, reply_markup=markup)


async def _move(
    message: Message,
    reconciler: TaskReconciler,
    task_id: str,
    status: TaskStatus,
    *,
    confirmed: bool = False,
) -> None:
    """Shared by /move and the inline buttons; answers in the chat."""
    try:
        outcome = await reconciler.apply_transition(task_id, status, manual=True, confirmed=confirmed)
    except NotFoundError as e:
        await message.answer(str(e))
        return
    except TransitionRejected as e:
        await message.answer(f"⚠️ {e.reason}")
        return
    except ConfirmationRequired as e:
        await message.answer(e.prompt, reply_markup=confirm_status_kb(task_id, status))
        return
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return

    if outcome:
        await message.answer(f"Task moved to {status}.")
    else:
        await message.answer(f"⚠️ {outcome.error}")


@router.message(Command("tasks"))
async def tasks_cmd(message: Message, reconciler: TaskReconciler):
    await _send_board(message, reconciler)


@router.callback_query(F.data == "nav:tasks")
async def tasks_cb(cb: CallbackQuery, reconciler: TaskReconciler):
    await cb.answer()
    await _send_board(cb.message, reconciler)


@router.message(Command("add"))
async def add_cmd(message: Message, reconciler: TaskReconciler):
    args = command_args(message)
    if not args:
        await message.answer("Usage: /add title | YYYY-MM-DD HH:MM")
        return
    try:
        outcome = await reconciler.create_task(parse_add_args(args))
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return

    if outcome:
        await message.answer(render_task(outcome.task, reconciler.now()), reply_markup=task_actions_kb(outcome.task))
    else:
        await message.answer(f"⚠️ {outcome.error}")


@router.message(Command("move"))
async def move_cmd(message: Message, reconciler: TaskReconciler):
    parts = command_args(message).split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Usage: /move id status")
        return
    status = parse_status_word(parts[1])
    if status is None:
        await message.answer(f"Unknown status: {parts[1]}")
        return
    await _move(message, reconciler, parts[0], status)


@router.callback_query(F.data.startswith("ts:open:"))
async def open_task_cb(cb: CallbackQuery, reconciler: TaskReconciler):
    task_id = cb.data.split(":", 2)[2]
    task = reconciler.get(task_id)
    if task is None:
        await cb.answer("Task not found.", show_alert=True)
        return
    await cb.answer()
    await cb.message.answer(render_task(task, reconciler.now()), reply_markup=task_actions_kb(task))


@router.callback_query(F.data.startswith("ts:set:") | F.data.startswith("ts:ok:"))
async def set_status_cb(cb: CallbackQuery, reconciler: TaskReconciler):
    # ts:set:<code>:<id> asks, ts:ok:<code>:<id> is the confirmed retry
    _, verb, code, task_id = cb.data.split(":", 3)
    status = STATUS_CODES.get(code)
    if status is None:
        await cb.answer("Unknown status.", show_alert=True)
        return
    await cb.answer()
    if verb == "ok" and cb.message:
        await cb.message.edit_reply_markup(reply_markup=None)
    await _move(cb.message, reconciler, task_id, status, confirmed=(verb == "ok"))


@router.callback_query(F.data.startswith("ts:del:"))
async def delete_task_cb(cb: CallbackQuery, reconciler: TaskReconciler):
    task_id = cb.data.split(":", 2)[2]
    try:
        outcome = await reconciler.delete_task(task_id)
    except NotFoundError:
        await cb.answer("Task not found.", show_alert=True)
        return
    except ValidationError as e:
        await cb.answer(str(e), show_alert=True)
        return

    if outcome:
        await cb.answer("Deleted 🗑️")
        await cb.message.edit_reply_markup(reply_markup=None)
    else:
        logger.info(f"Delete of task {task_id} failed and was restored")
        await cb.answer(outcome.error or "Delete failed.", show_alert=True)
