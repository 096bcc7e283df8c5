"""Fetch worker executing schedule and poll jobs."""
import logging
import time
from datetime import timedelta
from typing import Optional

from liveticker.core.context import TickerContext
from liveticker.models.job import Job, JobType
from liveticker.models.schedule import ScheduleEntry
from liveticker.models.ticker import TickerState
from liveticker.providers import ProviderError
from liveticker.providers.models import GameData
from liveticker.services.event_processor import FINAL_STATE, EventProcessor
from liveticker.services.ticker_service import TickerService
from liveticker.utils.formatting import format_immediate_start_message, format_scheduled_message
from liveticker.utils.time import seconds_until

logger = logging.getLogger(__name__)

SCHEDULE_FAILED_MESSAGE = "Error: scheduling the ticker failed. Please try again."


class FetchWorker:
    """Worker for fetching game data and acting on it."""

    def __init__(self, ctx: TickerContext, service: TickerService, processor: EventProcessor):
        self.ctx = ctx
        self.service = service
        self.processor = processor

    def _is_current(self, job: Job) -> Optional[TickerState]:
        """Ticker state the job still applies to, or None for a stale job."""
        state = self.ctx.registry.get(job.chat_id)
        if state is None or state.game_id != job.game_id:
            return None
        if job.type == JobType.SCHEDULE and not state.is_scheduling:
            return None
        if job.type == JobType.POLL and not state.is_polling:
            return None
        return state

    async def run(self, job: Job):
        """
        Execute one job.

        The ticker is re-validated before and after the fetch; a job whose
        ticker was stopped, reset or restarted in between is discarded.

        Args:
            job: Job taken from the queue
        """
        chat_id = job.chat_id
        state = self._is_current(job)
        if state is None:
            logger.info(f"[{chat_id}] {job} skipped, ticker state is invalid or changed")
            return

        logger.info(f"[{chat_id}] Worker starting {job}, {len(self.ctx.queue)} job(s) left")
        started = time.monotonic()

        try:
            game_data = await self.ctx.provider.get_game_data(job.game_id)

            if self._is_current(job) is not state:
                logger.info(f"[{chat_id}] {job} result discarded, ticker changed during fetch")
                return

            if job.type == JobType.SCHEDULE:
                await self._handle_schedule(state, job, game_data)
            else:
                await self._handle_poll(state, game_data)

        except ProviderError as e:
            logger.warning(f"[{chat_id}] {job} failed: {e}")
            if job.type == JobType.SCHEDULE:
                await self._fail_schedule(state)
        except Exception as e:
            logger.error(f"[{chat_id}] Error in {job}: {e}", exc_info=True)
            if job.type == JobType.SCHEDULE:
                await self._fail_schedule(state)
        finally:
            logger.debug(f"[{chat_id}] {job} took {time.monotonic() - started:.2f}s")

    async def _handle_schedule(self, state: TickerState, job: Job, game_data: GameData):
        chat_id = state.chat_id
        summary = game_data.summary
        settings = self.ctx.settings

        state.team_names = summary.team_names
        state.age_group = summary.age_group
        state.kickoff = summary.starts_at
        state.last_known_score = "0:0"
        if job.meeting_page_url:
            state.meeting_page_url = job.meeting_page_url

        start_time = summary.starts_at - timedelta(minutes=settings.pre_game_start_minutes)

        if seconds_until(start_time) > 0:
            logger.info(f"[{chat_id}] Game {state.game_id} scheduled, polling starts {start_time.isoformat()}")
            state.mark_scheduled()
            self.ctx.store.put_schedule_entry(chat_id, ScheduleEntry.from_state(state, start_time))
            self.service.arm_activation(chat_id, start_time)
            if not state.is_auto_schedule:
                await self.ctx.transport.send_message(
                    chat_id,
                    format_scheduled_message(state, start_time, settings.recap_interval_minutes)
                )
        else:
            logger.info(f"[{chat_id}] Game {state.game_id} already due, starting right away")
            if not state.is_auto_schedule:
                await self.ctx.transport.send_message(
                    chat_id,
                    format_immediate_start_message(state, settings.recap_interval_minutes)
                )
            await self.service.begin_polling(chat_id)

    async def _handle_poll(self, state: TickerState, game_data: GameData):
        chat_id = state.chat_id
        summary = game_data.summary

        if not state.team_names:
            state.team_names = summary.team_names
        if not state.age_group:
            state.age_group = summary.age_group
        if not state.last_known_score:
            state.last_known_score = "0:0"
        if state.kickoff is None:
            state.kickoff = summary.starts_at

        token = summary.updated_at
        unchanged = state.last_updated_at is not None and token == state.last_updated_at
        # A final state is acted on even if the version token lags behind
        if unchanged and summary.state != FINAL_STATE:
            logger.debug(f"[{chat_id}] No new version ({token or 'N/A'})")
            return

        if not unchanged:
            logger.info(f"[{chat_id}] New version detected: {token}")
        state.last_updated_at = token

        if await self.processor.process(game_data, state):
            self.ctx.store.save_seen(self.ctx.registry.states())

    async def _fail_schedule(self, state: TickerState):
        """Drop a ticker whose schedule fetch failed."""
        chat_id = state.chat_id
        if self.ctx.registry.get(chat_id) is not state or not state.is_scheduling:
            return

        if state.is_auto_schedule:
            logger.error(f"[{chat_id}] Auto-schedule job failed")
        else:
            await self.ctx.transport.send_message(chat_id, SCHEDULE_FAILED_MESSAGE)

        if self.ctx.registry.get(chat_id) is state:
            self.ctx.registry.remove(chat_id)
        self.ctx.store.drop_schedule_entry(chat_id)
