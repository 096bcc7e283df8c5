"""Batched recap delivery for recap-mode tickers."""
import logging
from typing import Optional

from liveticker.core.context import TickerContext
from liveticker.models.ticker import RecapEntry, TickerState
from liveticker.utils.formatting import format_recap_message, format_window_title

logger = logging.getLogger(__name__)

RECAP_TIMER = "recap"


class RecapBatcher:
    """
    Buffers recap-mode events and flushes them as one message.

    Flushes come from the periodic recap timer or, for period boundaries,
    directly from event processing. The minute cursor on the ticker state
    titles each window.
    """

    def __init__(self, ctx: TickerContext):
        self.ctx = ctx

    @property
    def interval_minutes(self) -> int:
        return self.ctx.settings.recap_interval_minutes

    def start(self, chat_id: str):
        """Arm (or re-arm, resetting the phase) the periodic flush timer."""
        self.ctx.timers.arm_every(chat_id, RECAP_TIMER, self.interval_minutes * 60, self.flush, chat_id)

    def restart(self, chat_id: str):
        """Next timed flush a full interval from now."""
        self.cancel(chat_id)
        self.start(chat_id)

    def cancel(self, chat_id: str) -> bool:
        return self.ctx.timers.cancel(chat_id, RECAP_TIMER)

    @staticmethod
    def add(state: TickerState, entry: RecapEntry):
        state.recap_events.append(entry)

    async def flush(self, chat_id: str, critical: Optional[RecapEntry] = None) -> bool:
        """
        Send everything buffered for a chat.

        Args:
            chat_id: Chat to flush
            critical: Period boundary that forced this flush; appended to the
                message and used as the window end

        Returns:
            True if a recap message was delivered
        """
        state = self.ctx.registry.get(chat_id)
        if state is None:
            return False

        if critical is None and (not state.is_polling or not state.recap_events):
            logger.debug(f"[{chat_id}] No events for recap, skipping")
            return False

        start_minute = state.recap_minute_counter
        if critical is not None:
            end_minute = critical.event.minute
        else:
            end_minute = start_minute + self.interval_minutes
        title = format_window_title(min(start_minute, end_minute), end_minute)
        state.recap_minute_counter = end_minute

        entries = list(state.recap_events)
        if critical is not None:
            entries.append(critical)
        # Cleared before sending: a failed send must not re-deliver next time
        state.recap_events = []

        if not entries:
            logger.debug(f"[{chat_id}] No events for recap {title}, skipping")
            return False

        message = format_recap_message(title, state, entries)
        if not message:
            return False

        logger.info(f"[{chat_id}] Sending {len(entries)} events for recap {title}")
        delivered = await self.ctx.transport.send_message(chat_id, message)
        if not delivered:
            logger.warning(f"[{chat_id}] Recap {title} could not be delivered, buffer dropped")
        return delivered
