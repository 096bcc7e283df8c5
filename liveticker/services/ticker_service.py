"""Ticker lifecycle: start, stop, reset, auto-scheduling and activation."""
import logging
from datetime import datetime
from typing import Optional

from liveticker.core.context import TickerContext
from liveticker.models.job import Job, JobType
from liveticker.models.ticker import TickerMode, TickerState
from liveticker.providers import ScheduleNotFoundError
from liveticker.providers.models import ScheduledGame
from liveticker.services.identifiers import build_game_url, find_next_game, get_game_id_from_url
from liveticker.services.recap import RecapBatcher
from liveticker.utils.formatting import format_legend, format_scheduling_message
from liveticker.utils.time import utcnow

logger = logging.getLogger(__name__)

ACTIVATION_TIMER = "activation"


class InvalidGameUrlError(ValueError):
    """The given URL does not point to a game page."""
    pass


class TickerBusyError(Exception):
    """A ticker is already scheduling, scheduled or polling in this chat."""
    pass


class TickerService:
    """Command surface of the engine, called by the chat front end."""

    def __init__(self, ctx: TickerContext, recap: RecapBatcher):
        self.ctx = ctx
        self.recap = recap

    def _ensure_idle(self, chat_id: str):
        if self.ctx.registry.is_busy(chat_id):
            raise TickerBusyError(
                "A ticker is already running or scheduled in this group. Stop or reset it first."
            )

    async def start(
        self,
        game_url: str,
        chat_id: str,
        group_name: str,
        mode: TickerMode = TickerMode.LIVE,
        is_auto_schedule: bool = False,
        team_url: Optional[str] = None
    ) -> TickerState:
        """
        Begin scheduling a ticker for one game.

        Creates the ticker in state scheduling and queues a schedule job; the
        worker decides between a deferred and an immediate start.

        Raises:
            TickerBusyError: If the chat already has an active ticker
            InvalidGameUrlError: If no game id can be read from the URL
        """
        self._ensure_idle(chat_id)

        game_id = get_game_id_from_url(game_url)
        if not game_id:
            raise InvalidGameUrlError(f"The URL {game_url} is not a valid game URL.")

        # Leftovers of a finished game (post-game timers) must not touch the new one
        self.ctx.timers.cancel_all(chat_id)
        self.ctx.queue.remove_for_chat(chat_id)

        state = self.ctx.registry.create_or_reuse(chat_id)
        state.game_id = game_id
        state.meeting_page_url = game_url
        state.group_name = group_name
        state.mode = mode
        state.is_auto_schedule = is_auto_schedule
        state.team_page_url = team_url
        state.mark_scheduling()

        self.ctx.queue.append(Job(JobType.SCHEDULE, chat_id, game_id, meeting_page_url=game_url))
        logger.info(
            f"[{chat_id}] Schedule job for {game_id} queued "
            f"(mode={mode.value}, auto={is_auto_schedule}), queue length {len(self.ctx.queue)}"
        )

        if not is_auto_schedule:
            await self.ctx.transport.send_message(chat_id, format_scheduling_message(group_name))
        return state

    def stop(self, chat_id: str) -> bool:
        """
        Stop a running or scheduled ticker and end an auto-schedule chain.

        The seen set is kept so a later restart of the same game does not
        repeat events.

        Returns:
            True if a ticker was scheduling, scheduled or polling, or a
            finished game still had post-game messages pending
        """
        state = self.ctx.registry.get(chat_id)
        if state is None:
            return False

        was_active = state.is_busy
        if state.is_auto_schedule:
            state.is_auto_schedule = False
            logger.info(f"[{chat_id}] Auto-schedule chain stopped")

        if state.finished and not was_active:
            # Only post-game timers are left for a finished game
            was_active = self.ctx.timers.cancel_all(chat_id) > 0

        self.ctx.timers.cancel(chat_id, ACTIVATION_TIMER)
        self.recap.cancel(chat_id)
        self.ctx.queue.remove_for_chat(chat_id)
        self.ctx.store.drop_schedule_entry(chat_id)
        state.mark_idle()

        if was_active:
            logger.info(f"[{chat_id}] Ticker stopped")
        return was_active

    def reset(self, chat_id: str):
        """Cancel everything and purge the chat's in-memory and persisted state."""
        self.ctx.timers.cancel_all(chat_id)
        self.ctx.queue.remove_for_chat(chat_id)
        self.ctx.registry.remove(chat_id)
        self.ctx.store.save_seen(self.ctx.registry.states())
        self.ctx.store.drop_schedule_entry(chat_id)
        logger.info(f"[{chat_id}] Ticker data reset")

    async def autoschedule(
        self,
        team_url: str,
        chat_id: str,
        group_name: str,
        mode: TickerMode = TickerMode.LIVE,
        exclude_game_id: Optional[str] = None,
        exclude_kickoff: Optional[datetime] = None
    ) -> Optional[ScheduledGame]:
        """
        Resolve the next upcoming game of a team and start its ticker.

        Args:
            team_url: Team schedule page
            chat_id: Target chat
            group_name: Chat title, passed on to the narrative prompt
            mode: Delivery mode
            exclude_game_id: Game that just finished (may still be listed)
            exclude_kickoff: Kickoff of that game

        Returns:
            The scheduled game, or None if the team has no upcoming game

        Raises:
            TickerBusyError: If the chat already has an active ticker
            ProviderError: If the schedule page cannot be fetched or parsed
        """
        self._ensure_idle(chat_id)

        games = await self.ctx.provider.get_team_schedule(team_url)
        if not games:
            raise ScheduleNotFoundError("No games found on the team page.")

        next_game = find_next_game(games, exclude_game_id=exclude_game_id, exclude_kickoff=exclude_kickoff)
        if next_game is None:
            logger.info(f"[{chat_id}] No upcoming game found on {team_url}")
            return None

        logger.info(f"[{chat_id}] Next game resolved: {next_game.id}")
        await self.start(
            build_game_url(next_game.id),
            chat_id,
            group_name,
            mode,
            is_auto_schedule=True,
            team_url=team_url
        )
        return next_game

    def arm_activation(self, chat_id: str, start_time: datetime):
        """Deferred start of polling at an absolute time."""
        self.ctx.timers.arm_at(chat_id, ACTIVATION_TIMER, start_time, self.begin_polling, chat_id)
        logger.info(f"[{chat_id}] Activation armed for {start_time.isoformat()}")

    async def begin_polling(self, chat_id: str):
        """Switch a scheduled ticker to polling and queue its first poll."""
        state = self.ctx.registry.get(chat_id)
        if state is None:
            logger.warning(f"[{chat_id}] No ticker found when trying to start polling")
            if self.ctx.store.drop_schedule_entry(chat_id):
                logger.info(f"[{chat_id}] Removed leftover schedule entry")
            return

        if state.is_polling:
            logger.info(f"[{chat_id}] Polling already active")
            return

        if not (state.is_scheduled or state.is_scheduling):
            logger.info(f"[{chat_id}] Ticker no longer waiting for activation, ignoring")
            return

        logger.info(f"[{chat_id}] Activating polling (mode={state.mode.value})")
        state.mark_polling()
        state.recap_minute_counter = 0
        self.ctx.timers.cancel(chat_id, ACTIVATION_TIMER)
        self.ctx.store.drop_schedule_entry(chat_id)

        if state.mode == TickerMode.RECAP:
            await self.ctx.transport.send_message(chat_id, format_legend())
            # The legend send is a suspension point
            if not state.is_polling:
                return
            self.recap.start(chat_id)
            logger.info(f"[{chat_id}] Recap timer started ({self.recap.interval_minutes} min)")

        if not self.ctx.queue.has_job(chat_id, JobType.POLL):
            self.ctx.queue.prepend(Job(JobType.POLL, chat_id, state.game_id))

    def restore(self) -> int:
        """
        Rebuild tickers from the persisted files at startup.

        Entries whose start time lies in the future are re-armed for the same
        absolute time; entries already due are discarded.

        Returns:
            Number of re-armed tickers
        """
        for chat_id, seen in self.ctx.store.load_seen().items():
            state = self.ctx.registry.get(chat_id) or self.ctx.registry.create_or_reuse(chat_id)
            state.seen = seen

        entries = self.ctx.store.load_schedule()
        now = utcnow()
        rearmed = 0
        dropped = False

        for chat_id, entry in entries.items():
            game_id = entry.game_id or get_game_id_from_url(entry.meeting_page_url)
            if not game_id:
                logger.warning(f"[{chat_id}] Skipping saved ticker with invalid URL {entry.meeting_page_url}")
                self.ctx.store.schedule_entries.pop(chat_id, None)
                dropped = True
                continue

            if entry.start_time <= now:
                logger.info(f"[{chat_id}] Discarding stale schedule entry for {game_id}")
                self.ctx.store.schedule_entries.pop(chat_id, None)
                dropped = True
                continue

            state = self.ctx.registry.get(chat_id) or self.ctx.registry.create_or_reuse(chat_id)
            entry.apply_to(state)
            state.game_id = game_id
            state.mark_scheduled()
            self.arm_activation(chat_id, entry.start_time)
            rearmed += 1

        if dropped:
            self.ctx.store.save_schedule()
        if rearmed:
            logger.info(f"{rearmed} ticker(s) rescheduled")
        return rearmed

    def shutdown(self):
        """Stop all timers and save seen events (best effort)."""
        self.ctx.timers.shutdown()
        for state in self.ctx.registry.states():
            state.mark_idle()
        self.ctx.store.save_seen(self.ctx.registry.states())
        logger.info("Ticker state saved")
