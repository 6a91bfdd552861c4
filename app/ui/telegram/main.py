from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from app.config import load_settings
from app.domain.common.time import to_iso
from app.domain.tasks.bulk import BulkCoordinator
from app.domain.tasks.notifications import InAppInbox, StatusChangeNotifier
from app.domain.tasks.store import TaskStore
from app.domain.tasks.service import TaskReconciler
from app.infra.api.client import ApiClient
from app.infra.api.tasks_api import HttpTaskGateway
from app.infra.clock.system_clock import SystemClock
from app.infra.db.connection import Database
from app.infra.db.repo.inbox_sqlite import InboxSqliteRepo
from app.infra.db.repo.status_memory_sqlite import StatusMemorySqliteRepo
from app.infra.db.repo.task_cache_sqlite import TaskCacheSqliteRepo
from app.infra.db.schema_version import apply_migrations
from app.infra.ids.uuid_gen import UuidGenerator
from app.infra.notify.email_relay import EmailRelaySink
from app.infra.notify.telegram import TelegramNotificationSink
from app.infra.scheduler.loop import IntervalScheduler

from app.ui.telegram.middlewares.auth import OwnerOnlyMiddleware
from app.ui.telegram.middlewares.di import DIMiddleware
from app.ui.telegram.handlers.bulk import router as bulk_router
from app.ui.telegram.handlers.cancel import router as cancel_router
from app.ui.telegram.handlers.start import router as start_router
from app.ui.telegram.handlers.stats import router as stats_router
from app.ui.telegram.handlers.tasks import router as tasks_router

logger = logging.getLogger(__name__)


async def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    )
    logger.info(f"Task tracker starting - PID: {os.getpid()}")

    settings = load_settings()

    repo_root = Path(__file__).resolve().parents[3]  # .../app/ui/telegram/main.py -> repo root

    db_path = settings.db_path
    if not db_path.is_absolute():
        db_path = repo_root / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"DB_PATH: {db_path}")

    db = Database(str(db_path))
    clock = SystemClock(settings.timezone)
    ids = UuidGenerator()

    applied = await apply_migrations(db=db, now_iso=to_iso(clock.now()))
    if applied:
        logger.info(f"Applied migrations: {applied}")

    # --- bot/dispatcher ---
    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(storage=MemoryStorage())

    # --- services ---
    api = ApiClient(settings.api_base_url, token=settings.api_token or None, timeout_seconds=settings.http_timeout_seconds)
    inbox = InAppInbox(InboxSqliteRepo(db), clock, ids)
    sinks = [inbox, TelegramNotificationSink(bot, settings.owner_telegram_id)]
    if settings.email_notifications:
        sinks.append(EmailRelaySink(api))
    notifier = StatusChangeNotifier(StatusMemorySqliteRepo(db), sinks, clock)

    reconciler = TaskReconciler(
        store=TaskStore(),
        gateway=HttpTaskGateway(api),
        clock=clock,
        ids=ids,
        cache=TaskCacheSqliteRepo(db),
        observers=[notifier],
    )
    bulk = BulkCoordinator(reconciler)
    await reconciler.load()

    # --- middlewares ---
    dp.message.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))
    dp.callback_query.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))

    dp.message.middleware(DIMiddleware(reconciler, bulk, inbox))
    dp.callback_query.middleware(DIMiddleware(reconciler, bulk, inbox))

    # --- routers ---
    dp.include_router(start_router)
    dp.include_router(cancel_router)
    dp.include_router(tasks_router)
    dp.include_router(bulk_router)
    dp.include_router(stats_router)

    # --- scheduler (background) ---
    scheduler = IntervalScheduler()
    scheduler.register("sweep", settings.sweep_seconds, reconciler.sweep)
    scheduler.register("refresh", settings.refresh_seconds, reconciler.refresh)
    scheduler_task = asyncio.create_task(scheduler.run_forever())

    logger.info("Starting polling...")

    try:
        await dp.start_polling(bot)
    finally:
        scheduler.stop()
        scheduler_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler_task
        await bot.session.close()
        await api.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
