import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from storefront.bot.handlers import router
from storefront.config import settings
from storefront.db.sqlite import init_db
from storefront.services.client import StorefrontClient
from storefront.utils.log import setup_logging

logger = logging.getLogger(__name__)


async def main() -> None:
    setup_logging()

    if not settings.bot_token:
        raise RuntimeError("BOT_TOKEN is empty. Set BOT_TOKEN in .env")

    init_db(settings.storage_path)

    api = StorefrontClient(settings.api_url)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    dp["api"] = api
    dp.include_router(router)

    logger.info("Bot started, API at %s", settings.api_url)
    try:
        await dp.start_polling(bot)
    finally:
        await api.close()
        await bot.session.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
