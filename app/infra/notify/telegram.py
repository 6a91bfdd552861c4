from __future__ import annotations

import html
import logging

from aiogram import Bot

from app.domain.tasks.models import TaskId
from app.domain.tasks.notifications import NOTICES_BY_KIND
from app.domain.tasks.ports import NotificationSink

logger = logging.getLogger(__name__)


def render_notice(kind: str, title: str) -> str:
    notice = NOTICES_BY_KIND.get(kind)
    if notice is None:
        return html.escape(f"{kind}: {title}")
    return f"<b>{html.escape(notice.heading)}</b>\n{html.escape(notice.message(title))}"


class TelegramNotificationSink(NotificationSink):
    """External channel: a message to the owner's chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def emit(self, kind: str, task_id: TaskId, title: str) -> None:
        logger.debug(f"Telegram notify kind={kind} task_id={task_id}")
        await self._bot.send_message(chat_id=self._chat_id, text=render_notice(kind, title))
