"""Unit tests for PostGameActions.

This module tests the delayed statistics, summary and closing messages,
the cleanup guard, and auto-scheduling of the next game.
"""
from datetime import timedelta

import pytest

from liveticker.models import Job, JobType
from liveticker.providers import ProviderError
from liveticker.services.postgame import CLEANUP_TIMER, CLOSING_TIMER, STATS_TIMER, SUMMARY_TIMER
from liveticker.utils.formatting import format_closing_message
from tests.conftest import CHAT_ID, GAME_ID, TEAM_URL, make_event, make_game_data, make_scheduled_game

NEXT_GAME_ID = "handball4all.baden.8668900"


def _final_events():
    return [
        make_event(1, "StartPeriod", time="00:00"),
        make_event(2, "Goal", time="05:00", score="1:0", message="Goal by Ana Walk (7.)", team="Home"),
        make_event(3, "SevenMeterMissed", time="12:00", message="7m missed by Tina Berg (4.)", team="Away"),
        make_event(4, "StopPeriod", time="60:00", score="1:0"),
    ]


@pytest.fixture
def finished(engine, polling_state):
    """A ticker whose game just ended, post-game timers armed."""
    game_data = make_game_data(_final_events())
    engine.postgame.finish_game(polling_state, game_data, game_data.chronological_events())
    return polling_state


# ============================================================================
# Tests for finish_game
# ============================================================================

@pytest.mark.unit
class TestFinishGame:
    """Test the transition out of polling."""

    def test_stops_ticker_and_arms_timers(self, engine, fake_scheduler, finished):
        """✅ Ticker idle and finished, four timers in delay order."""
        assert not finished.is_busy
        assert finished.finished

        timers = [STATS_TIMER, SUMMARY_TIMER, CLOSING_TIMER, CLEANUP_TIMER]
        run_dates = [fake_scheduler.jobs[f"{CHAT_ID}:{name}"].trigger.run_date for name in timers]
        assert run_dates == sorted(run_dates)
        assert run_dates[-1] - run_dates[0] >= timedelta(seconds=28)

    def test_pending_polls_removed(self, engine, polling_state):
        """✅ Queued polls of the finished game are dropped."""
        engine.ctx.queue.append(Job(JobType.POLL, CHAT_ID, GAME_ID))
        game_data = make_game_data(_final_events())

        engine.postgame.finish_game(polling_state, game_data, game_data.chronological_events())

        assert len(engine.ctx.queue) == 0


# ============================================================================
# Tests for the delayed messages
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestPostGameMessages:
    """Test statistics, summary and closing messages."""

    async def test_stats_message(self, engine, transport, fake_scheduler, finished):
        """✅ Statistics with top scorer and 7m counts."""
        await fake_scheduler.fire(f"{CHAT_ID}:{STATS_TIMER}")

        text = transport.texts()[0]
        assert text.startswith("📊 *Game statistics:*")
        assert "Top scorer: Ana Walk (1 goals)" in text
        assert "7m: 0 of 1" in text

    async def test_summary_sent(self, engine, transport, fake_scheduler, mock_narrative, finished):
        """✅ Narrative text is forwarded."""
        mock_narrative.summarize.return_value = "🤖 *AI game analysis:*\n\nWhat a game."

        await fake_scheduler.fire(f"{CHAT_ID}:{SUMMARY_TIMER}")

        assert transport.texts() == ["🤖 *AI game analysis:*\n\nWhat a game."]
        args = mock_narrative.summarize.await_args.args
        assert args[1] == {"home": "HSG Nord", "guest": "TV Süd"}
        assert args[2] == "HSG Nord Fans"

    async def test_empty_summary_skipped(self, engine, transport, fake_scheduler, finished):
        """✅ No API key → no summary message."""
        await fake_scheduler.fire(f"{CHAT_ID}:{SUMMARY_TIMER}")

        assert transport.sent == []

    async def test_summary_error_contained(self, engine, transport, fake_scheduler, mock_narrative, finished):
        """❌ Narrative failure → logged, closing still sent."""
        mock_narrative.summarize.side_effect = RuntimeError("boom")

        await fake_scheduler.fire(f"{CHAT_ID}:{SUMMARY_TIMER}")
        await fake_scheduler.fire(f"{CHAT_ID}:{CLOSING_TIMER}")

        assert transport.texts() == [format_closing_message()]


# ============================================================================
# Tests for cleanup
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestCleanup:
    """Test cleanup and the auto-schedule chain."""

    async def test_cleanup_removes_ticker(self, engine, fake_scheduler, finished):
        """✅ Finished ticker removed, seen file written without it."""
        await fake_scheduler.fire(f"{CHAT_ID}:{CLEANUP_TIMER}")

        assert CHAT_ID not in engine.ctx.registry
        assert engine.ctx.store.load_seen() == {}

    async def test_cleanup_skipped_for_new_game(self, engine, finished):
        """✅ Chat moved on to another game → nothing removed."""
        finished.game_id = NEXT_GAME_ID
        finished.mark_scheduled()

        await engine.postgame.cleanup(CHAT_ID, GAME_ID)

        assert engine.ctx.registry.get(CHAT_ID) is finished

    async def test_cleanup_skipped_while_busy(self, engine, finished):
        """✅ Same game restarted → nothing removed."""
        finished.mark_polling()

        await engine.postgame.cleanup(CHAT_ID, GAME_ID)

        assert engine.ctx.registry.get(CHAT_ID) is finished

    async def test_auto_schedule_next_game(self, engine, provider, transport, fake_scheduler, finished):
        """✅ Auto-schedule chain → next game queued and announced."""
        finished.is_auto_schedule = True
        finished.team_page_url = TEAM_URL
        provider.schedule = [
            make_scheduled_game(GAME_ID, state="Pre", starts_in=timedelta(minutes=-90)),
            make_scheduled_game(NEXT_GAME_ID),
        ]

        await fake_scheduler.fire(f"{CHAT_ID}:{CLEANUP_TIMER}")

        state = engine.ctx.registry.get(CHAT_ID)
        assert state is not finished
        assert state.game_id == NEXT_GAME_ID
        assert state.is_scheduling
        assert state.is_auto_schedule
        assert state.team_page_url == TEAM_URL
        assert transport.texts()[0].startswith(
            "🤖 Auto-schedule: the next game was found and scheduled:\n\n*HSG Nord* vs *TV Süd*"
        )

    async def test_auto_schedule_season_over(self, engine, provider, transport, fake_scheduler, finished):
        """✅ No upcoming game → chain ends with a message."""
        finished.is_auto_schedule = True
        finished.team_page_url = TEAM_URL
        provider.schedule = [make_scheduled_game(GAME_ID, state="Post")]

        await fake_scheduler.fire(f"{CHAT_ID}:{CLEANUP_TIMER}")

        assert CHAT_ID not in engine.ctx.registry
        assert transport.texts() == [
            "🤖 Auto-schedule: all games of this season are done. Automatic scheduling has ended."
        ]

    async def test_auto_schedule_error(self, engine, provider, transport, fake_scheduler, finished):
        """❌ Schedule fetch fails → error message, chain ends."""
        finished.is_auto_schedule = True
        finished.team_page_url = TEAM_URL
        provider.error = ProviderError("connection refused")

        await fake_scheduler.fire(f"{CHAT_ID}:{CLEANUP_TIMER}")

        assert CHAT_ID not in engine.ctx.registry
        assert transport.texts() == [
            "🤖 Auto-schedule: could not schedule the next game: connection refused"
        ]
