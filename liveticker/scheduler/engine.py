"""Ticker engine wiring: timers, queue, workers and services."""
import logging
from typing import Optional

from liveticker.core.config import Settings, settings as default_settings
from liveticker.core.context import TickerContext
from liveticker.core.transport import ChatTransport
from liveticker.providers import GameDataProvider
from liveticker.providers.handball import HandballNetProvider
from liveticker.scheduler.timers import TimerRegistry
from liveticker.services.event_processor import EventProcessor
from liveticker.services.narrative import NarrativeService
from liveticker.services.persistence import TickerStore
from liveticker.services.postgame import PostGameActions
from liveticker.services.recap import RecapBatcher
from liveticker.services.ticker_service import TickerService
from liveticker.workers.dispatcher import Dispatcher
from liveticker.workers.fairness import FairnessScheduler
from liveticker.workers.fetch_worker import FetchWorker

logger = logging.getLogger(__name__)

FAIRNESS_JOB = "fairness_pass"
DISPATCHER_JOB = "dispatcher"


class TickerEngine:
    """Owns every engine component of one bot process."""

    def __init__(
        self,
        transport: ChatTransport,
        provider: Optional[GameDataProvider] = None,
        settings: Optional[Settings] = None,
        timers: Optional[TimerRegistry] = None,
        narrative: Optional[NarrativeService] = None
    ):
        settings = settings or default_settings
        self.ctx = TickerContext(
            settings=settings,
            transport=transport,
            provider=provider or HandballNetProvider(),
            store=TickerStore(settings.seen_path, settings.schedule_path),
            timers=timers or TimerRegistry(),
        )
        self.recap = RecapBatcher(self.ctx)
        self.service = TickerService(self.ctx, self.recap)
        self.narrative = narrative or NarrativeService()
        self.postgame = PostGameActions(self.ctx, self.service, self.recap, self.narrative)
        self.processor = EventProcessor(self.ctx, self.recap, self.postgame)
        self.worker = FetchWorker(self.ctx, self.service, self.processor)
        self.dispatcher = Dispatcher(self.ctx, self.worker)
        self.fairness = FairnessScheduler(self.ctx)

    def start(self):
        """Register the periodic passes, start the timers and restore saved tickers."""
        settings = self.ctx.settings
        logger.info("=" * 60)
        logger.info("Starting ticker engine...")
        logger.info(f"Fairness pass: every {settings.scheduler_interval_seconds}s")
        logger.info(f"Dispatcher: every {settings.dispatcher_interval_seconds}s, {settings.max_workers} workers")
        logger.info("=" * 60)

        self.ctx.timers.every(FAIRNESS_JOB, settings.scheduler_interval_seconds, self.fairness.tick)
        self.ctx.timers.every(DISPATCHER_JOB, settings.dispatcher_interval_seconds, self.dispatcher.tick)
        self.ctx.timers.start()
        self.service.restore()
        logger.info("Ticker engine started")

    async def shutdown(self):
        """Stop timers, save state and close network clients."""
        logger.info("Shutting down ticker engine...")
        self.service.shutdown()
        await self.ctx.provider.close()
        await self.narrative.close()
        logger.info("Ticker engine stopped")
