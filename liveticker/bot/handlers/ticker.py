"""Ticker command handlers."""
import logging

from telegram import Update
from telegram.ext import ContextTypes

from liveticker.models.ticker import TickerMode
from liveticker.providers import ProviderError
from liveticker.scheduler.engine import TickerEngine
from liveticker.services.ticker_service import InvalidGameUrlError, TickerBusyError
from liveticker.utils.formatting import format_next_game

logger = logging.getLogger(__name__)

GROUP_CHAT_TYPES = ("group", "supergroup")

HELP_TEXT = """
Handball Live Ticker Commands:

/start <game URL> [recap] - Follow a game on handball.net
/autoschedule <team URL> [recap] - Follow every upcoming game of a team
/stop - Stop the running or scheduled ticker
/reset - Delete all ticker data of this group
/help - Show this help message

Add "recap" to get a summary every few minutes instead of every event live.
""".strip()


def _engine(context: ContextTypes.DEFAULT_TYPE) -> TickerEngine:
    return context.application.bot_data["engine"]


async def _group_only(update: Update) -> bool:
    """Reply and return False outside of group chats."""
    if update.effective_chat.type not in GROUP_CHAT_TYPES:
        await update.message.reply_text("Error: commands only work in groups.")
        return False
    return True


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Handle /start <game URL> [recap] command.
    Schedules a ticker for one game.
    """
    if not await _group_only(update):
        return

    if not context.args:
        await update.message.reply_text(
            "Error: please provide a valid game URL.\nUsage: /start <URL> [recap]"
        )
        return

    chat_id = str(update.effective_chat.id)
    group_name = update.effective_chat.title or ""
    mode = TickerMode.parse(context.args[1] if len(context.args) > 1 else None)

    try:
        await _engine(context).service.start(context.args[0], chat_id, group_name, mode)
    except TickerBusyError as e:
        await update.message.reply_text(str(e))
    except InvalidGameUrlError as e:
        await update.message.reply_text(f"Error: {e}")
    except Exception as e:
        logger.error(f"[{chat_id}] Error starting ticker: {e}", exc_info=True)
        await update.message.reply_text(
            "❌ A critical error occurred and the ticker could not be started."
        )


async def stop_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /stop command."""
    if not await _group_only(update):
        return

    chat_id = str(update.effective_chat.id)
    if _engine(context).service.stop(chat_id):
        await update.message.reply_text("Stopped the running or scheduled ticker in this group.")
    else:
        await update.message.reply_text("No ticker is running in this group.")


async def reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /reset command."""
    if not await _group_only(update):
        return

    chat_id = str(update.effective_chat.id)
    _engine(context).service.reset(chat_id)
    await update.message.reply_text("All ticker data for this group has been reset.")
    logger.info(f"Ticker data of group \"{update.effective_chat.title}\" ({chat_id}) reset manually")


async def autoschedule_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Handle /autoschedule <team URL> [recap] command.
    Schedules the team's next game; after each game the following one is scheduled.
    """
    if not await _group_only(update):
        return

    if not context.args:
        await update.message.reply_text(
            "Error: please provide a team URL.\nUsage: /autoschedule <team URL> [recap]"
        )
        return

    chat_id = str(update.effective_chat.id)
    group_name = update.effective_chat.title or ""
    mode = TickerMode.parse(context.args[1] if len(context.args) > 1 else None)
    service = _engine(context).service

    if service.ctx.registry.is_busy(chat_id):
        await update.message.reply_text(
            "A ticker is already running or scheduled in this group. Use /stop or /reset first."
        )
        return

    await update.message.reply_text("🤖 Analyzing the team schedule... This may take a moment.")

    try:
        next_game = await service.autoschedule(context.args[0], chat_id, group_name, mode)
    except TickerBusyError as e:
        await update.message.reply_text(str(e))
        return
    except (ProviderError, InvalidGameUrlError) as e:
        logger.error(f"[{chat_id}] Auto-schedule failed: {e}")
        await update.message.reply_text(f"An error occurred: {e}")
        return
    except Exception as e:
        logger.error(f"[{chat_id}] Critical error during auto-schedule: {e}", exc_info=True)
        await update.message.reply_text(f"An error occurred: {e}")
        return

    if next_game is not None:
        await update.message.reply_text(
            "✅ Auto-schedule successful! The next game was found and scheduled:\n\n"
            f"{format_next_game(next_game)}\n\n"
            "After each game the following one is scheduled automatically.",
            parse_mode="Markdown"
        )
    else:
        await update.message.reply_text("ℹ️ No upcoming games were found for this team.")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT)
