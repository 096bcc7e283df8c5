"""Round-robin poll scheduling across polling tickers."""
import logging
from typing import Optional

from liveticker.core.context import TickerContext
from liveticker.models.job import Job, JobType

logger = logging.getLogger(__name__)


class FairnessScheduler:
    """Queues one poll per tick, rotating over every polling chat."""

    def __init__(self, ctx: TickerContext):
        self.ctx = ctx
        self.cursor = 0

    async def tick(self) -> Optional[str]:
        """
        Queue a poll for the next chat in rotation.

        Returns:
            Chat id that got a poll job, or None
        """
        chat_ids = self.ctx.registry.polling_chat_ids()
        if not chat_ids:
            self.cursor = 0
            return None

        if self.cursor >= len(chat_ids):
            self.cursor = 0
        chat_id = chat_ids[self.cursor]
        self.cursor = (self.cursor + 1) % len(chat_ids)

        if self.ctx.queue.has_job(chat_id, JobType.POLL):
            logger.debug(f"[{chat_id}] Poll already queued or running")
            return None

        state = self.ctx.registry.get(chat_id)
        self.ctx.queue.append(Job(JobType.POLL, chat_id, state.game_id))
        logger.debug(f"[{chat_id}] Poll job queued, queue length {len(self.ctx.queue)}")
        return chat_id
