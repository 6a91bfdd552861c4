from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from app.domain.tasks.analytics import summarize
from app.domain.tasks.notifications import InAppInbox
from app.domain.tasks.service import TaskReconciler
from app.ui.telegram.texts.tasks import render_inbox, render_summary

router = Router()

INBOX_LIMIT = 15


async def _send_stats(message: Message, reconciler: TaskReconciler) -> None:
    summary = summarize(reconciler.tasks(), reconciler.now())
    await message.answer(render_summary(summary))


async def _send_inbox(message: Message, inbox: InAppInbox) -> None:
    items = await inbox.recent(INBOX_LIMIT)
    kb = InlineKeyboardBuilder()
    if any(not n.read for n in items):
        kb.button(text="Mark all read", callback_data="inbox:readall")
    if items:
        kb.button(text="Clear", callback_data="inbox:clear")
    await message.answer(render_inbox(items), reply_markup=kb.as_markup() if items else None)


@router.message(Command("stats"))
async def stats_cmd(message: Message, reconciler: TaskReconciler):
    await _send_stats(message, reconciler)


@router.callback_query(F.data == "nav:stats")
async def stats_cb(cb: CallbackQuery, reconciler: TaskReconciler):
    await cb.answer()
    await _send_stats(cb.message, reconciler)


@router.message(Command("inbox"))
async def inbox_cmd(message: Message, inbox: InAppInbox):
    await _send_inbox(message, inbox)


@router.callback_query(F.data == "nav:inbox")
async def inbox_cb(cb: CallbackQuery, inbox: InAppInbox):
    await cb.answer()
    await _send_inbox(cb.message, inbox)


@router.callback_query(F.data == "inbox:readall")
async def inbox_readall_cb(cb: CallbackQuery, inbox: InAppInbox):
    await inbox.mark_all_read()
    await cb.answer("All read.")
    await cb.message.edit_reply_markup(reply_markup=None)


@router.callback_query(F.data == "inbox:clear")
async def inbox_clear_cb(cb: CallbackQuery, inbox: InAppInbox):
    await inbox.clear()
    await cb.answer("Cleared.")
    await cb.message.edit_text("No notifications.")
