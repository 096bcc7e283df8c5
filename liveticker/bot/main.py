"""Telegram bot main entry point."""
import logging
import traceback

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from liveticker.bot.handlers import (
    autoschedule_command,
    help_command,
    reset_command,
    start_command,
    stop_command
)
from liveticker.bot.transport import TelegramTransport
from liveticker.core.config import settings
from liveticker.scheduler.engine import TickerEngine

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, settings.log_level)
)
# The dispatcher runs twice a second
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors globally for the Telegram bot."""
    tb_list = traceback.format_exception(None, context.error, context.error.__traceback__)
    logger.error(f"Exception while handling an update: {context.error}")
    logger.error(f"Traceback:\n{''.join(tb_list)}")

    if isinstance(update, Update):
        if update.effective_chat:
            logger.error(f"Chat: {update.effective_chat.id}")
        if update.effective_message:
            logger.error(f"Message: {update.effective_message.text}")
            try:
                await update.effective_message.reply_text(
                    "Sorry, an error occurred while processing your request. "
                    "Please try again later."
                )
            except Exception as e:
                logger.error(f"Failed to send error message to user: {e}")


async def post_init(application: Application):
    """Start the ticker engine once the bot is connected."""
    engine = TickerEngine(TelegramTransport(application.bot))
    application.bot_data["engine"] = engine
    engine.start()


async def post_shutdown(application: Application):
    """Save ticker state on shutdown."""
    engine = application.bot_data.get("engine")
    if engine is not None:
        await engine.shutdown()


def main():
    """Start the Telegram bot."""
    logger.info("=" * 60)
    logger.info("Starting handball live ticker bot...")
    logger.info(f"Log level: {settings.log_level}")
    logger.debug(f"Bot token configured: {bool(settings.telegram_bot_token)}")
    logger.info(f"AI summaries enabled: {bool(settings.gemini_api_key)}")
    logger.info("=" * 60)

    application = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    application.add_error_handler(error_handler)

    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("stop", stop_command))
    application.add_handler(CommandHandler("reset", reset_command))
    application.add_handler(CommandHandler("autoschedule", autoschedule_command))
    application.add_handler(CommandHandler("help", help_command))

    logger.info("All handlers registered successfully")
    logger.info("Bot started successfully - polling for updates")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
