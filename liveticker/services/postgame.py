"""Delayed actions after the final whistle."""
import logging
from typing import Dict, List, Optional

from liveticker.core.context import TickerContext
from liveticker.models.ticker import TickerState
from liveticker.providers import ProviderError
from liveticker.providers.models import GameData, GameEvent, Lineup
from liveticker.services.narrative import NarrativeService
from liveticker.services.recap import RecapBatcher
from liveticker.services.stats import extract_game_stats
from liveticker.services.ticker_service import InvalidGameUrlError, TickerBusyError, TickerService
from liveticker.utils.formatting import format_closing_message, format_next_game

logger = logging.getLogger(__name__)

STATS_TIMER = "postgame-stats"
SUMMARY_TIMER = "postgame-summary"
CLOSING_TIMER = "postgame-closing"
CLEANUP_TIMER = "postgame-cleanup"


class PostGameActions:
    """
    Statistics, AI summary, closing message and cleanup for a finished game.

    Every action runs from its own timer and catches its own errors, so a
    failing summary never keeps the closing message or the cleanup from
    running.
    """

    def __init__(
        self,
        ctx: TickerContext,
        service: TickerService,
        recap: RecapBatcher,
        narrative: Optional[NarrativeService] = None
    ):
        self.ctx = ctx
        self.service = service
        self.recap = recap
        self.narrative = narrative or NarrativeService()

    def finish_game(self, state: TickerState, game_data: GameData, events: List[GameEvent]):
        """Stop polling and arm the post-game timers."""
        chat_id = state.chat_id
        logger.info(f"[{chat_id}] Final whistle for {state.game_id}, stopping ticker")

        state.mark_idle()
        state.finished = True
        self.recap.cancel(chat_id)
        self.ctx.queue.remove_for_chat(chat_id)

        settings = self.ctx.settings
        timers = self.ctx.timers
        lineup = game_data.lineup
        team_names = state.team_names or game_data.summary.team_names

        timers.arm_in(chat_id, STATS_TIMER, settings.stats_delay_seconds,
                      self.send_stats, chat_id, lineup, team_names, events)
        timers.arm_in(chat_id, SUMMARY_TIMER, settings.summary_delay_seconds,
                      self.send_summary, chat_id, events, team_names, state.group_name, lineup)
        timers.arm_in(chat_id, CLOSING_TIMER, settings.closing_delay_seconds,
                      self.send_closing, chat_id)
        timers.arm_in(chat_id, CLEANUP_TIMER, settings.cleanup_delay_seconds,
                      self.cleanup, chat_id, state.game_id)

    async def send_stats(self, chat_id: str, lineup: Lineup, team_names: Dict[str, str], events: List[GameEvent]):
        try:
            message = extract_game_stats(lineup, team_names, events)
            if message:
                await self.ctx.transport.send_message(chat_id, message)
        except Exception as e:
            logger.error(f"[{chat_id}] Error sending game statistics: {e}", exc_info=True)

    async def send_summary(
        self,
        chat_id: str,
        events: List[GameEvent],
        team_names: Dict[str, str],
        group_name: str,
        lineup: Lineup
    ):
        try:
            summary = await self.narrative.summarize(events, team_names, group_name, lineup)
            if summary:
                await self.ctx.transport.send_message(chat_id, summary)
        except Exception as e:
            logger.error(f"[{chat_id}] Error generating AI summary: {e}", exc_info=True)

    async def send_closing(self, chat_id: str):
        try:
            await self.ctx.transport.send_message(chat_id, format_closing_message())
        except Exception as e:
            logger.error(f"[{chat_id}] Error sending closing message: {e}", exc_info=True)

    async def cleanup(self, chat_id: str, game_id: str):
        """
        Drop the finished ticker and, for auto-schedule chains, queue the next game.

        Skipped when the chat has moved on to another game in the meantime.
        """
        try:
            state = self.ctx.registry.get(chat_id)
            if state is None or state.game_id != game_id or state.is_busy:
                logger.info(f"[{chat_id}] Cleanup for {game_id} skipped, ticker has changed")
                return

            self.ctx.registry.remove(chat_id)
            self.ctx.store.save_seen(self.ctx.registry.states())
            logger.info(f"[{chat_id}] Ticker data cleaned up")

            if state.is_auto_schedule and state.team_page_url:
                await self._schedule_next(state)
        except Exception as e:
            logger.error(f"[{chat_id}] Error during cleanup: {e}", exc_info=True)

    async def _schedule_next(self, state: TickerState):
        chat_id = state.chat_id
        logger.info(f"[{chat_id}] Auto-schedule: looking for the next game")
        try:
            next_game = await self.service.autoschedule(
                state.team_page_url,
                chat_id,
                state.group_name,
                state.mode,
                exclude_game_id=state.game_id,
                exclude_kickoff=state.kickoff
            )
        except (ProviderError, TickerBusyError, InvalidGameUrlError) as e:
            logger.error(f"[{chat_id}] Auto-schedule failed: {e}")
            await self.ctx.transport.send_message(
                chat_id, f"🤖 Auto-schedule: could not schedule the next game: {e}"
            )
            return

        if next_game is not None:
            await self.ctx.transport.send_message(
                chat_id,
                f"🤖 Auto-schedule: the next game was found and scheduled:\n\n{format_next_game(next_game)}"
            )
        else:
            await self.ctx.transport.send_message(
                chat_id,
                "🤖 Auto-schedule: all games of this season are done. Automatic scheduling has ended."
            )
