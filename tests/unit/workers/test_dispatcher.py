"""Unit tests for the Dispatcher worker pool."""
import asyncio

import pytest

from liveticker.models import Job, JobType
from liveticker.workers.dispatcher import Dispatcher
from tests.conftest import GAME_ID


class BlockingWorker:
    """Worker whose jobs finish only when released."""

    def __init__(self, fail: bool = False):
        self.release = asyncio.Event()
        self.started = []
        self.fail = fail

    async def run(self, job):
        self.started.append(job)
        await self.release.wait()
        if self.fail:
            raise RuntimeError("worker crashed")


def _fill(queue, count):
    jobs = [Job(JobType.POLL, f"chat-{i}", GAME_ID) for i in range(count)]
    for job in jobs:
        queue.append(job)
    return jobs


@pytest.mark.unit
@pytest.mark.asyncio
class TestDispatcher:
    """Test bounded concurrency and in-flight bookkeeping."""

    async def test_respects_worker_limit(self, ctx):
        """✅ Never more than max_workers jobs at once."""
        worker = BlockingWorker()
        dispatcher = Dispatcher(ctx, worker, max_workers=2)
        _fill(ctx.queue, 5)

        await dispatcher.tick()
        await asyncio.sleep(0)

        assert dispatcher.active == 2
        assert len(worker.started) == 2
        assert len(ctx.queue) == 3
        assert ctx.queue.in_flight == 2

        await dispatcher.tick()
        assert dispatcher.active == 2

        worker.release.set()
        await dispatcher.drain()

        assert dispatcher.active == 0
        assert ctx.queue.in_flight == 0
        assert dispatcher.peak_active == 2

    async def test_drains_whole_queue(self, ctx):
        """✅ Repeated ticks process every job."""
        worker = BlockingWorker()
        worker.release.set()
        dispatcher = Dispatcher(ctx, worker, max_workers=2)
        jobs = _fill(ctx.queue, 5)

        while ctx.queue:
            await dispatcher.tick()
            await dispatcher.drain()

        assert worker.started == jobs
        assert dispatcher.peak_active <= 2

    async def test_in_flight_poll_counts_as_queued(self, ctx):
        """✅ A running poll keeps has_job true until it finishes."""
        worker = BlockingWorker()
        dispatcher = Dispatcher(ctx, worker, max_workers=1)
        _fill(ctx.queue, 1)

        await dispatcher.tick()

        assert ctx.queue.has_job("chat-0", JobType.POLL)
        worker.release.set()
        await dispatcher.drain()
        assert not ctx.queue.has_job("chat-0", JobType.POLL)

    async def test_worker_error_frees_slot(self, ctx):
        """❌ Crashing job → slot released, no exception."""
        worker = BlockingWorker(fail=True)
        worker.release.set()
        dispatcher = Dispatcher(ctx, worker, max_workers=1)
        _fill(ctx.queue, 1)

        await dispatcher.tick()
        await dispatcher.drain()

        assert dispatcher.active == 0
        assert ctx.queue.in_flight == 0

    async def test_default_limit_from_settings(self, ctx):
        """✅ max_workers defaults to the configured pool size."""
        dispatcher = Dispatcher(ctx, BlockingWorker())

        assert dispatcher.max_workers == ctx.settings.max_workers
