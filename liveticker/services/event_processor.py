"""Turn newly fetched game events into chat messages."""
import logging
from typing import Optional

from liveticker.core.context import TickerContext
from liveticker.models.ticker import RecapEntry, TickerMode, TickerState
from liveticker.providers.models import GameData, GameEvent, GameSummary
from liveticker.services.postgame import PostGameActions
from liveticker.services.recap import RecapBatcher
from liveticker.utils.formatting import format_live_event, format_recap_detail, is_final_stop

logger = logging.getLogger(__name__)

# Period boundaries flush the recap buffer immediately
CRITICAL_EVENTS = ("StartPeriod", "StopPeriod")

FINAL_STATE = "Post"


class EventProcessor:
    """
    Delivers every event of a game exactly once.

    Events arrive newest-first and are walked oldest-first. Ids already in
    the ticker's seen set are skipped; everything else is marked seen before
    it is delivered, so a failed send is not retried on the next poll.
    """

    def __init__(self, ctx: TickerContext, recap: RecapBatcher, postgame: PostGameActions):
        self.ctx = ctx
        self.recap = recap
        self.postgame = postgame

    def is_terminal(self, event: GameEvent, summary: Optional[GameSummary] = None) -> bool:
        """
        Whether an event ends the game.

        A period stop past the first half's length is only final when the
        provider's game state agrees; payloads without a state fall back to
        the minute threshold alone (wrong for overtime).
        """
        if not is_final_stop(event, self.ctx.settings.regulation_half_minutes):
            return False
        if summary is not None and summary.state:
            return summary.state == FINAL_STATE
        return True

    async def process(self, game_data: GameData, state: TickerState) -> bool:
        """
        Process unseen events of one fetch.

        Returns:
            True if at least one new event was seen (the seen file needs saving)
        """
        chat_id = state.chat_id
        events = game_data.chronological_events()
        lineup = game_data.lineup
        last_score = state.last_known_score or "0:0"
        processed = False

        for raw_event in events:
            # A stop or reset during a send ends the walk
            if not state.is_polling or self.ctx.registry.get(chat_id) is not state:
                logger.info(f"[{chat_id}] Ticker changed while processing, stopping")
                break

            if raw_event.id in state.seen:
                continue

            state.seen.add(raw_event.id)
            processed = True

            if raw_event.score:
                last_score = raw_event.score
                event = raw_event
            else:
                event = raw_event.model_copy(update={"score": last_score})

            terminal = self.is_terminal(event, game_data.summary)

            if state.mode == TickerMode.LIVE:
                message = format_live_event(event, state, lineup, is_final=terminal)
                if message:
                    logger.info(f"[{chat_id}] Sending event {event.id} ({event.type})")
                    await self.ctx.transport.send_message(chat_id, message)
            else:
                entry = RecapEntry(event, format_recap_detail(event, state, lineup, is_final=terminal))
                if event.type in CRITICAL_EVENTS:
                    logger.info(f"[{chat_id}] Critical event {event.type}, sending recap now")
                    self.recap.cancel(chat_id)
                    await self.recap.flush(chat_id, critical=entry)
                    if not terminal and state.is_polling:
                        self.recap.start(chat_id)
                else:
                    logger.debug(f"[{chat_id}] Buffering event {event.id} ({event.type}) for recap")
                    self.recap.add(state, entry)

            if terminal:
                state.last_known_score = last_score
                self.postgame.finish_game(state, game_data, events)
                break

        state.last_known_score = last_score

        if not state.finished and state.is_polling and game_data.summary.state == FINAL_STATE:
            logger.info(f"[{chat_id}] Game reported as finished by the provider")
            if state.mode == TickerMode.RECAP:
                await self.recap.flush(chat_id)
            if state.is_polling:
                self.postgame.finish_game(state, game_data, events)

        return processed
