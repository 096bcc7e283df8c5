"""Telegram implementation of the chat transport."""
import logging

from telegram import Bot
from telegram.error import BadRequest, TelegramError

from liveticker.core.transport import ChatTransport

logger = logging.getLogger(__name__)


class TelegramTransport(ChatTransport):
    """Sends ticker messages through a Telegram bot."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id: str, text: str) -> bool:
        if not text:
            return False
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode="Markdown")
            return True
        except BadRequest as e:
            # Player or team names can break Markdown entities
            logger.warning(f"[{chat_id}] Markdown rejected ({e}), resending as plain text")
        except TelegramError as e:
            logger.error(f"[{chat_id}] Error sending message: {e}")
            return False
        except Exception as e:
            logger.error(f"[{chat_id}] Error sending message: {e}", exc_info=True)
            return False

        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
            return True
        except Exception as e:
            logger.error(f"[{chat_id}] Error sending plain text message: {e}", exc_info=True)
            return False
