from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from app.ui.telegram.keyboards.common import main_menu_kb

router = Router()

HELP_TEXT = (
    "<b>Task tracker</b>\n"
    "/tasks – board by status\n"
    "/add title | YYYY-MM-DD HH:MM – new task\n"
    "/move id status – change status (active, progress, done)\n"
    "/done ids – complete tasks\n"
    "/undo ids – reopen completed tasks\n"
    "/delete ids – delete tasks\n"
    "/stats – dashboard numbers\n"
    "/inbox – notifications"
)


@router.message(CommandStart())
async def start_cmd(message: Message, state: FSMContext):
    await state.clear()
    await message.answer(HELP_TEXT, reply_markup=main_menu_kb())


@router.message(Command(commands=["help", "menu"]))
async def help_cmd(message: Message, state: FSMContext):
    await state.clear()
    await message.answer(HELP_TEXT, reply_markup=main_menu_kb())
