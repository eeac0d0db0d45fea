"""
Main entry point for the Habit Reminder Bot.
Supports both polling and webhook modes.
"""

import asyncio
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from bot import register_handlers
from config import settings
from habits import HabitReminderProducer, HabitStore, load_habit_store
from models.notification import PermissionStatus
from notifications import TelegramNotificationSink
from scheduler import setup_scheduler, shutdown_scheduler
from utils.logging_config import configure_application_logging

# Configure logging using centralized configuration
logger = configure_application_logging(
    log_level=settings.log_level, log_file=settings.log_file, log_dir=settings.log_dir
)

# Validate configuration
try:
    settings.validate_all_required()
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    sys.exit(1)

# Initialize bot and dispatcher
bot = Bot(
    token=settings.bot_token,
    default=DefaultBotProperties(parse_mode=ParseMode.HTML),
)

dp = Dispatcher(storage=MemoryStorage())


def build_habit_store() -> HabitStore:
    """Load the habit seed file when configured."""
    if settings.habits_file:
        return load_habit_store(settings.habits_file)
    logger.info("No habits file configured, starting with an empty habit store")
    return HabitStore()


def build_notification_sink(telegram_bot: Bot) -> TelegramNotificationSink:
    sink = TelegramNotificationSink(
        telegram_bot,
        chat_id=settings.owner_chat_id,
        auto_dismiss_seconds=settings.notification_auto_dismiss_seconds,
        permission_timeout=settings.notification_permission_timeout_seconds,
    )
    if settings.notifications_granted:
        sink.set_permission_status(PermissionStatus.GRANTED)
    return sink


async def on_startup(bot: Bot) -> None:
    """Configure webhook on startup."""
    if settings.bot_webhook_url:
        webhook_path = "/webhook/telegram"
        webhook_url = f"{settings.bot_webhook_url.rstrip('/')}{webhook_path}"

        await bot.set_webhook(
            url=webhook_url,
            allowed_updates=dp.resolve_used_update_types(),
        )
        logger.info(f"Webhook configured: {webhook_url}")
    else:
        logger.info("Webhook URL not configured, using polling mode")


async def on_shutdown(bot: Bot) -> None:
    """Cleanup on shutdown."""
    if settings.bot_webhook_url:
        await bot.delete_webhook()
        logger.info("Webhook removed")

    reminder_scheduler = dp.get("reminder_scheduler")
    if reminder_scheduler is not None:
        shutdown_scheduler(reminder_scheduler)


async def main() -> None:
    """Main async function to run the bot."""
    try:
        logger.info("Starting Habit Reminder Bot...")

        register_handlers(dp)
        logger.info("Handlers registered")

        # Reminder scheduler, its delivery sink and the habit reminder producer
        habit_store = build_habit_store()
        notification_sink = build_notification_sink(bot)
        reminder_scheduler = setup_scheduler(notification_sink)

        producer = HabitReminderProducer(reminder_scheduler, habit_store)
        producer.attach()
        producer.sync()
        producer.install_daily_resync(
            reminder_scheduler.job_scheduler, at=settings.daily_resync_time
        )

        dp["notification_sink"] = notification_sink
        dp["reminder_scheduler"] = reminder_scheduler
        dp["habit_store"] = habit_store
        dp["habit_producer"] = producer

        # Choose webhook or polling mode
        if settings.bot_webhook_url:
            # Webhook mode (production)
            app = web.Application()

            webhook_requests_handler = SimpleRequestHandler(
                dispatcher=dp,
                bot=bot,
            )
            webhook_requests_handler.register(app, path="/webhook/telegram")

            setup_application(app, dp, bot=bot)

            await on_startup(bot)

            logger.info(
                f"Bot webhook server starting on {settings.host}:{settings.port}"
            )
            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(runner, host=settings.host, port=settings.port)
            await site.start()
            try:
                await asyncio.Event().wait()
            finally:
                await runner.cleanup()
        else:
            # Polling mode (development)
            logger.info("Bot is running in polling mode. Press Ctrl+C to stop.")
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())

    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except asyncio.CancelledError:
        logger.info("Bot cancelled")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise  # Re-raise to ensure proper exit code
    finally:
        logger.info("Shutting down...")
        await on_shutdown(bot)

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.error(f"Error closing bot session: {e}", exc_info=True)

        logger.info("Bot shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
