"""Unit tests for TelegramTransport."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from telegram.error import BadRequest, NetworkError

from liveticker.bot.transport import TelegramTransport
from tests.conftest import CHAT_ID


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


@pytest.mark.unit
@pytest.mark.asyncio
class TestTelegramTransport:
    """Test message delivery and the Markdown fallback."""

    async def test_sends_markdown(self, bot):
        """✅ Messages are sent with Markdown."""
        assert await TelegramTransport(bot).send_message(CHAT_ID, "*Goal*")

        bot.send_message.assert_awaited_once_with(chat_id=CHAT_ID, text="*Goal*", parse_mode="Markdown")

    async def test_markdown_rejected_resends_plain(self, bot):
        """✅ Broken entities → resent without parse mode."""
        bot.send_message.side_effect = [BadRequest("Can't parse entities"), None]

        assert await TelegramTransport(bot).send_message(CHAT_ID, "*Goal_")

        assert bot.send_message.await_count == 2
        assert bot.send_message.await_args.kwargs == {"chat_id": CHAT_ID, "text": "*Goal_"}

    async def test_plain_resend_fails(self, bot):
        """❌ Both attempts fail → False."""
        bot.send_message.side_effect = [BadRequest("Can't parse entities"), BadRequest("Chat not found")]

        assert not await TelegramTransport(bot).send_message(CHAT_ID, "*Goal_")

    async def test_network_error(self, bot):
        """❌ Network error → False, no retry."""
        bot.send_message.side_effect = NetworkError("timeout")

        assert not await TelegramTransport(bot).send_message(CHAT_ID, "Goal")
        assert bot.send_message.await_count == 1

    async def test_empty_text_skipped(self, bot):
        """✅ Empty message is not sent."""
        assert not await TelegramTransport(bot).send_message(CHAT_ID, "")
        bot.send_message.assert_not_awaited()
