"""Dispatcher draining the job queue into a bounded worker pool."""
import asyncio
import logging
from typing import Optional, Set

from liveticker.core.context import TickerContext
from liveticker.models.job import Job
from liveticker.workers.fetch_worker import FetchWorker

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Launches queued jobs as asyncio tasks, at most ``max_workers`` at a time.

    Runs from a short fixed-period timer; a slow fetch only occupies its own
    slot and never blocks the next tick.
    """

    def __init__(self, ctx: TickerContext, worker: FetchWorker, max_workers: Optional[int] = None):
        self.ctx = ctx
        self.worker = worker
        self.max_workers = max_workers or ctx.settings.max_workers
        self.active = 0
        self.peak_active = 0
        self._tasks: Set[asyncio.Task] = set()

    async def tick(self):
        """Start jobs until the queue is empty or every slot is taken."""
        while self.ctx.queue and self.active < self.max_workers:
            job = self.ctx.queue.pop()
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
            self.ctx.queue.started(job)

            task = asyncio.create_task(self._run(job))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            logger.debug(f"[{job.chat_id}] Dispatched {job}, active workers {self.active}")

    async def _run(self, job: Job):
        try:
            await self.worker.run(job)
        except Exception as e:
            logger.error(f"[{job.chat_id}] Unhandled error in {job}: {e}", exc_info=True)
        finally:
            self.active -= 1
            self.ctx.queue.finished(job)

    async def drain(self):
        """Wait for every running job."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
