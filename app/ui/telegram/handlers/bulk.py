from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from app.domain.tasks.bulk import BulkCoordinator
from app.ui.telegram.handlers._common import command_args, split_ids
from app.ui.telegram.keyboards.tasks import confirm_bulk_delete_kb
from app.ui.telegram.texts.tasks import render_bulk_result

router = Router()


@router.message(Command("done"))
async def done_cmd(message: Message, bulk: BulkCoordinator):
    ids = split_ids(command_args(message))
    if not ids:
        await message.answer("Usage: /done id [id ...]")
        return
    result = await bulk.complete_many(ids)
    if not result.succeeded and not result.failed:
        await message.answer("Selected task(s) already completed.")
        return
    await message.answer(render_bulk_result("Completed", result))


@router.message(Command("undo"))
async def undo_cmd(message: Message, bulk: BulkCoordinator):
    ids = split_ids(command_args(message))
    if not ids:
        await message.answer("Usage: /undo id [id ...]")
        return
    result = await bulk.undo_many(ids)
    if not result.succeeded and not result.failed and not result.excluded:
        await message.answer("No valid tasks to undo.")
        return
    await message.answer(render_bulk_result("Reopened", result))


@router.message(Command("delete"))
async def delete_cmd(message: Message, state: FSMContext):
    ids = split_ids(command_args(message))
    if not ids:
        await message.answer("Usage: /delete id [id ...]")
        return
    await state.update_data(delete_ids=ids)
    await message.answer(
        f"Are you sure you want to delete {len(ids)} task(s)? This action cannot be undone.",
        reply_markup=confirm_bulk_delete_kb(),
    )


@router.callback_query(F.data == "bulk:del:yes")
async def delete_confirm_cb(cb: CallbackQuery, state: FSMContext, bulk: BulkCoordinator):
    data = await state.get_data()
    ids = data.get("delete_ids") or []
    await state.clear()
    if not ids:
        await cb.answer("Nothing to delete.", show_alert=True)
        return

    await cb.answer()
    if cb.message:
        await cb.message.edit_reply_markup(reply_markup=None)
    result = await bulk.delete_many(ids)
    await cb.message.answer(render_bulk_result("Deleted", result))
