from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from billshare.config import get_settings
from billshare.db.repo import BillRepository, Database, set_global_repository
from billshare.handlers import basic_router, drafts_router, ledger_router
from billshare.logging import configure_logging, get_logger


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    log = get_logger(__name__)
    if not settings.bot_token:
        log.error("bot.no_token")
        raise SystemExit("BOT_TOKEN is not set")

    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    db = Database(settings.database_url)
    await db.connect()
    set_global_repository(BillRepository(db))

    dp.include_router(basic_router)
    dp.include_router(drafts_router)
    dp.include_router(ledger_router)

    log.info("bot.start", roster=len(settings.roster))
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
