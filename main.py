import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.enums import ParseMode
from aiogram.client.default import DefaultBotProperties

import config
from modules.activity_logger import ActivityLoggerMiddleware
from modules.card_of_day import card_router
from modules.cards import cards_router
from modules.health import start_health_server
from modules.history import history_router
from modules.interpretation import interpretation_router
from modules.menu import menu_router
from modules.spreads import spreads_router
from modules.yes_no import yes_no
from tarot.catalog import Catalog
from tarot.errors import CatalogError
from tarot.history_store import HistoryStore
from tarot.llm_client import InterpretationClient
from tarot.sessions import SessionRegistry


logger = logging.getLogger("tarot")


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )


def build_dispatcher(
    catalog: Catalog,
    sessions: SessionRegistry,
    history: HistoryStore,
    oracle: InterpretationClient,
) -> Dispatcher:
    # сервіси потрапляють у хендлери як kwargs
    dp = Dispatcher(catalog=catalog, sessions=sessions, history=history, oracle=oracle)

    # Мідлвар на message і callback_query, НЕ на update
    logger_mw = ActivityLoggerMiddleware()
    dp.message.middleware(logger_mw)
    dp.callback_query.middleware(logger_mw)

    dp.include_router(menu_router)
    dp.include_router(cards_router)
    dp.include_router(spreads_router)
    dp.include_router(card_router)
    dp.include_router(yes_no)
    dp.include_router(history_router)
    # вільний текст ловимо останнім
    dp.include_router(interpretation_router)
    return dp


async def main():
    setup_logging()
    logger.info("🔮 Бот запускається...")

    # 1) Токени
    if not config.BOT_TOKEN:
        logger.error("❌ TELEGRAM_BOT_TOKEN is not set")
        sys.exit(1)
    if not config.GROQ_API_KEY:
        logger.error("❌ GROQ_API_KEY is not set")
        sys.exit(1)

    # 2) Довідкові дані
    try:
        catalog = Catalog.load(config.CARDS_PATH, config.SPREADS_PATH)
    except CatalogError as e:
        logger.error("❌ Catalog is broken: %s", e)
        sys.exit(1)
    logger.info("🎴 Loaded %s cards and %s spreads", len(catalog.all_cards()), len(catalog.spreads))

    # 3) Сервіси
    sessions = SessionRegistry(ttl=config.SESSION_TTL)
    history = HistoryStore(config.HISTORY_DIR, limit=config.HISTORY_LIMIT)
    oracle = InterpretationClient(
        api_key=config.GROQ_API_KEY,
        base_url=config.LLM_BASE_URL,
        model=config.LLM_MODEL,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
    )

    # 4) Бот і диспетчер
    bot = Bot(
        token=config.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher(catalog, sessions, history, oracle)

    # 5) Старт
    sessions.start(config.SESSION_SWEEP_INTERVAL)
    health = await start_health_server(config.PORT)
    try:
        await bot.delete_webhook(drop_pending_updates=True)
        logger.info("✅ Бот запущено, слухаю апдейти...")
        await dp.start_polling(bot)
    finally:
        await sessions.stop()
        await health.cleanup()
        await bot.session.close()
        logger.info("👋 Бот зупинено")


if __name__ == "__main__":
    asyncio.run(main())
