from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def main_menu_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Tasks", callback_data="nav:tasks")
    kb.button(text="Stats", callback_data="nav:stats")
    kb.button(text="Notifications", callback_data="nav:inbox")
    kb.adjust(2, 1)
    return kb.as_markup()

