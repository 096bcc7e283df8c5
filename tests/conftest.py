"""Shared pytest fixtures for live ticker tests."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.date import DateTrigger

from liveticker.core.config import Settings
from liveticker.core.transport import ChatTransport
from liveticker.providers import GameDataProvider
from liveticker.providers.models import GameData, GameEvent, ScheduledGame, parse_event
from liveticker.scheduler.engine import TickerEngine
from liveticker.scheduler.timers import TimerRegistry

CHAT_ID = "-100123"
GAME_ID = "handball4all.baden.8668826"
GAME_URL = f"https://www.handball.net/spiele/{GAME_ID}"
TEAM_URL = "https://www.handball.net/mannschaften/handball4all.baden.team-1/spielplan"


class FakeScheduler:
    """Dict-backed stand-in for AsyncIOScheduler; jobs only run via fire()."""

    def __init__(self):
        self.jobs: Dict[str, SimpleNamespace] = {}
        self.running = False

    def add_job(self, func, trigger=None, args=None, id=None, replace_existing=False, **kwargs):
        job = SimpleNamespace(id=id, func=func, trigger=trigger, args=list(args or []), kwargs=kwargs)
        self.jobs[id] = job
        return job

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def get_jobs(self):
        return list(self.jobs.values())

    def start(self):
        self.running = True

    def shutdown(self, wait=True):
        self.running = False

    async def fire(self, job_id):
        """Run a job like the scheduler would; one-shot jobs are removed first."""
        job = self.jobs[job_id]
        if isinstance(job.trigger, DateTrigger):
            del self.jobs[job_id]
        return await job.func(*job.args)


class FakeTransport(ChatTransport):
    """Records every message instead of sending it."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.result = True

    async def send_message(self, chat_id: str, text: str) -> bool:
        self.sent.append((chat_id, text))
        return self.result

    def texts(self, chat_id: str = CHAT_ID) -> List[str]:
        return [text for sent_chat, text in self.sent if sent_chat == chat_id]


class FakeProvider(GameDataProvider):
    """Returns canned game data and schedules, or raises a configured error."""

    def __init__(self):
        self.game_data: Optional[GameData] = None
        self.schedule: List[ScheduledGame] = []
        self.error: Optional[Exception] = None
        self.calls: List[str] = []
        self.closed = False

    async def get_game_data(self, game_id: str) -> GameData:
        self.calls.append(game_id)
        if self.error is not None:
            raise self.error
        return self.game_data

    async def get_team_schedule(self, team_page_url: str) -> List[ScheduledGame]:
        self.calls.append(team_page_url)
        if self.error is not None:
            raise self.error
        return self.schedule

    async def close(self):
        self.closed = True


def make_event(
    event_id: Any,
    event_type: str,
    time: Optional[str] = "10:00",
    score: Optional[str] = None,
    message: str = "",
    team: Optional[str] = None
) -> GameEvent:
    """Factory function to create game events for testing."""
    return parse_event({
        "id": event_id,
        "type": event_type,
        "time": time,
        "score": score,
        "message": message,
        "team": team,
    })


def make_lineup() -> Dict[str, list]:
    return {
        "home": [
            {"number": 7, "firstname": "Ana", "lastname": "Walk"},
            {"number": 11, "firstname": "Lea Marie", "lastname": "Roth"},
        ],
        "away": [
            {"number": 4, "firstname": "Tina", "lastname": "Berg"},
        ],
    }


def make_game_data(
    events: Optional[List[GameEvent]] = None,
    state: Optional[str] = None,
    updated_at: Optional[str] = "v1",
    starts_at: Optional[datetime] = None,
    lineup: Optional[dict] = None
) -> GameData:
    """
    Factory function to create a combined game payload.

    ``events`` are given oldest-first and stored newest-first, the way the
    provider lists them.
    """
    starts_at = starts_at or datetime(2025, 10, 18, 18, 0, tzinfo=timezone.utc)
    summary = {
        "id": GAME_ID,
        "startsAt": starts_at.isoformat(),
        "updatedAt": updated_at,
        "homeTeam": {"name": "HSG Nord"},
        "awayTeam": {"name": "TV Süd"},
        "ageGroup": "Men",
    }
    if state is not None:
        summary["state"] = state
    return GameData.model_validate({
        "summary": summary,
        "events": [event.model_dump() for event in reversed(events or [])],
        "lineup": lineup if lineup is not None else make_lineup(),
    })


def make_scheduled_game(game_id: str, state: str = "Pre", starts_in: Optional[timedelta] = timedelta(days=7)) -> ScheduledGame:
    starts_at = datetime.now(timezone.utc) + starts_in if starts_in is not None else None
    return ScheduledGame.model_validate({
        "id": game_id,
        "state": state,
        "startsAt": starts_at.isoformat() if starts_at else None,
        "homeTeam": {"name": "HSG Nord"},
        "awayTeam": {"name": "TV Süd"},
    })


@pytest.fixture
def test_settings(tmp_path):
    """Settings with data files in a temporary directory."""
    return Settings(
        _env_file=None,
        telegram_bot_token="test-token",
        gemini_api_key=None,
        data_dir=tmp_path,
    )


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def mock_narrative():
    """Narrative service that produces no summary."""
    narrative = MagicMock()
    narrative.summarize = AsyncMock(return_value="")
    narrative.close = AsyncMock()
    return narrative


@pytest.fixture
def engine(test_settings, transport, provider, fake_scheduler, mock_narrative):
    """Fully wired engine on fakes."""
    return TickerEngine(
        transport=transport,
        provider=provider,
        settings=test_settings,
        timers=TimerRegistry(fake_scheduler),
        narrative=mock_narrative,
    )


@pytest.fixture
def ctx(engine):
    return engine.ctx


@pytest.fixture
def polling_state(engine):
    """A ticker that is already polling GAME_ID in live mode."""
    state = engine.ctx.registry.create_or_reuse(CHAT_ID)
    state.game_id = GAME_ID
    state.meeting_page_url = GAME_URL
    state.group_name = "HSG Nord Fans"
    state.team_names = {"home": "HSG Nord", "guest": "TV Süd"}
    state.last_known_score = "0:0"
    state.mark_polling()
    return state
