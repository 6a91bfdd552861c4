from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from app.domain.tasks.bulk import BulkCoordinator
from app.domain.tasks.notifications import InAppInbox
from app.domain.tasks.service import TaskReconciler


class DIMiddleware(BaseMiddleware):
    """
    Inject dependencies to handlers via `data` dict.

    Handlers can request args by name, e.g.
      async def handler(message: Message, reconciler: TaskReconciler, bulk: BulkCoordinator): ...
    """

    def __init__(self, reconciler: TaskReconciler, bulk: BulkCoordinator, inbox: InAppInbox) -> None:
        self._reconciler = reconciler
        self._bulk = bulk
        self._inbox = inbox

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # keep names stable across the project
        data["reconciler"] = self._reconciler
        data["bulk"] = self._bulk
        data["inbox"] = self._inbox

        return await handler(event, data)
