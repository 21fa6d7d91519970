"""
Courtside — tournament registration & bracket bot
Entry point: creates the bot, registers routers + middleware, handles graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent
from sqlalchemy.exc import SQLAlchemyError

from courtside.config import settings
from courtside.middlewares import DatabaseMiddleware, IdentityMiddleware
from courtside.models.base import engine, Base
from courtside.services.evidence_store import EvidenceStore

# ── Handlers ──────────────────────────────────────────────────────────────────
from courtside.handlers.common import router as common_router
from courtside.handlers.registration import router as registration_router
from courtside.handlers.organizer import router as organizer_router
from courtside.handlers.review import router as review_router
from courtside.handlers.fallback import router as fallback_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables on startup."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready.")
    except (SQLAlchemyError, OSError) as e:
        logger.critical(
            "❌ Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Locally: start PostgreSQL or use SQLite "
            "(DATABASE_URL=sqlite+aiosqlite:///./courtside.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)


def build_dispatcher(evidence_store: EvidenceStore) -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())
    dp["evidence_store"] = evidence_store

    # ── Global error handler: callbacks are always answered ───────────────────
    @dp.errors()
    async def handle_error(event: ErrorEvent) -> None:
        logger.exception("Unhandled error: %s", event.exception)
        update = event.update
        if update.callback_query:
            try:
                await update.callback_query.answer(
                    "⚠️ Something went wrong. Please try again.", show_alert=True
                )
            except TelegramBadRequest:
                pass

    # ── Global middlewares (session first, identity needs it) ─────────────────
    dp.update.middleware(DatabaseMiddleware())
    dp.update.middleware(IdentityMiddleware())

    # ── Routers: order matters for handler priority ───────────────────────────
    dp.include_router(common_router)
    dp.include_router(registration_router)
    dp.include_router(organizer_router)
    dp.include_router(review_router)

    # !! Must be last: catches any callback not handled above !!
    dp.include_router(fallback_router)

    return dp


async def main() -> None:
    logger.info("Starting Courtside bot…")
    await create_tables()

    if not settings.storage_enabled:
        logger.warning("STORAGE_SERVICE_KEY is not set; uploads will be rejected by the storage service.")
    evidence_store = EvidenceStore.from_settings()

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN),
    )
    dp = build_dispatcher(evidence_store)

    # ── Graceful shutdown on SIGTERM (Docker / systemd) ───────────────────────
    loop = asyncio.get_running_loop()
    polling = asyncio.ensure_future(
        dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            handle_signals=False,
        )
    )

    def _handle_signal():
        logger.info("Received shutdown signal, stopping…")
        polling.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await polling
    except asyncio.CancelledError:
        pass
    finally:
        logger.info("Shutting down…")
        await evidence_store.close()
        await bot.session.close()
        await engine.dispose()
        logger.info("Shutdown complete.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
