"""Unit tests for TickerEngine wiring."""
from datetime import datetime, timedelta, timezone

import pytest

from liveticker.models import ScheduleEntry
from liveticker.scheduler.engine import DISPATCHER_JOB, FAIRNESS_JOB
from tests.conftest import CHAT_ID, GAME_ID, GAME_URL, make_event, make_game_data


@pytest.mark.unit
@pytest.mark.asyncio
class TestTickerEngine:
    """Test start, shutdown and one full poll cycle."""

    async def test_start_registers_jobs_and_restores(self, engine, fake_scheduler):
        """✅ Periodic passes registered, saved ticker re-armed."""
        start = (datetime.now(timezone.utc) + timedelta(hours=1)).replace(microsecond=0)
        engine.ctx.store.put_schedule_entry(CHAT_ID, ScheduleEntry(
            meeting_page_url=GAME_URL, game_id=GAME_ID, start_time=start, group_name="Fans"
        ))

        engine.start()

        assert fake_scheduler.running
        assert FAIRNESS_JOB in fake_scheduler.jobs
        assert DISPATCHER_JOB in fake_scheduler.jobs
        assert fake_scheduler.jobs[DISPATCHER_JOB].trigger.interval == timedelta(seconds=0.5)
        assert engine.ctx.registry.get(CHAT_ID).is_scheduled

    async def test_shutdown_closes_clients(self, engine, provider, fake_scheduler, mock_narrative, polling_state):
        """✅ Timers stopped, state saved, clients closed."""
        polling_state.seen.add(1)
        engine.start()

        await engine.shutdown()

        assert not fake_scheduler.running
        assert provider.closed
        mock_narrative.close.assert_awaited_once()
        assert not polling_state.is_polling
        assert engine.ctx.store.load_seen() == {CHAT_ID: {1}}

    async def test_poll_cycle(self, engine, provider, transport, fake_scheduler, polling_state):
        """✅ Fairness pass → dispatcher → worker → message."""
        provider.game_data = make_game_data([make_event(1, "StartPeriod", time="00:00")])
        engine.start()

        await fake_scheduler.fire(FAIRNESS_JOB)
        await fake_scheduler.fire(DISPATCHER_JOB)
        await engine.dispatcher.drain()

        assert transport.texts() == ["▶️ *The game has started!*"]
        assert polling_state.seen == {1}
        assert FAIRNESS_JOB in fake_scheduler.jobs
