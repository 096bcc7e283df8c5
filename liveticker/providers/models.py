"""Payload schemas for handball.net game data and team schedules.

The combined game endpoint returns an untyped JSON blob. Every field the
engine relies on is declared here and validated at the fetch boundary, so a
malformed response fails as a ``PayloadError`` in the worker instead of deep
inside event formatting.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_score(value: Optional[str]) -> Optional[str]:
    """Normalize '12-10' and '12:10' to '12:10'."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    return value.replace("-", ":")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps from the provider are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def minute_of(clock: Optional[str]) -> int:
    """In-game minute of a 'MM:SS' clock string (0 when unknown)."""
    if not clock:
        return 0
    try:
        return int(clock.split(":")[0])
    except ValueError:
        return 0


class Team(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class Player(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: Optional[int] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None


class Lineup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    home: List[Player] = Field(default_factory=list)
    away: List[Player] = Field(default_factory=list)

    def for_side(self, side: Optional[str]) -> List[Player]:
        """Players of 'Home' or 'Away' (case-insensitive)."""
        if not side:
            return []
        return self.home if side.lower() == "home" else self.away


class GameSummary(BaseModel):
    """Header of a game: version token, kickoff and the two teams."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    starts_at: datetime = Field(alias="startsAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    home_team: Team = Field(alias="homeTeam")
    away_team: Team = Field(alias="awayTeam")
    age_group: Optional[str] = Field(default=None, alias="ageGroup")
    state: Optional[str] = None

    @field_validator("updated_at", "id", mode="before")
    @classmethod
    def _as_token(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("starts_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def team_names(self) -> Dict[str, str]:
        return {"home": self.home_team.name, "guest": self.away_team.name}


class GameEvent(BaseModel):
    """One occurrence reported by the provider (generic variant)."""
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    type: str
    time: Optional[str] = None
    score: Optional[str] = None
    message: str = ""
    team: Optional[str] = None
    timestamp: Optional[Union[int, float, str]] = None

    @field_validator("score", mode="before")
    @classmethod
    def _normalize_score(cls, v: Any) -> Optional[str]:
        return normalize_score(v)

    @field_validator("message", mode="before")
    @classmethod
    def _message_or_empty(cls, v: Any) -> str:
        return v or ""

    @property
    def minute(self) -> int:
        return minute_of(self.time)

    @property
    def is_home(self) -> bool:
        return (self.team or "").lower() == "home"


class ScoreEvent(GameEvent):
    """Goal or 7m goal; a missing score is carried forward from earlier events."""


class PeriodEvent(GameEvent):
    """StartPeriod / StopPeriod boundaries."""

    @property
    def is_stop(self) -> bool:
        return self.type == "StopPeriod"


class PlayerEvent(GameEvent):
    """Penalties, cards and missed 7m throws attributed to a player."""


class TimeoutEvent(GameEvent):
    """Team timeout."""


EVENT_VARIANTS = {
    "Goal": ScoreEvent,
    "SevenMeterGoal": ScoreEvent,
    "StartPeriod": PeriodEvent,
    "StopPeriod": PeriodEvent,
    "SevenMeterMissed": PlayerEvent,
    "TwoMinutePenalty": PlayerEvent,
    "Warning": PlayerEvent,
    "Disqualification": PlayerEvent,
    "DisqualificationWithReport": PlayerEvent,
    "Timeout": TimeoutEvent,
}


def parse_event(raw: Any) -> GameEvent:
    """Validate one raw event into the variant registered for its type."""
    if isinstance(raw, GameEvent):
        return raw
    event_type = raw.get("type") if isinstance(raw, dict) else None
    model = EVENT_VARIANTS.get(event_type, GameEvent)
    return model.model_validate(raw)


class GameData(BaseModel):
    """Combined payload of the per-game endpoint."""
    model_config = ConfigDict(extra="ignore")

    summary: GameSummary
    events: List[GameEvent]
    lineup: Lineup = Field(default_factory=Lineup)

    @field_validator("events", mode="before")
    @classmethod
    def _parse_variants(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [parse_event(item) for item in v]

    @field_validator("lineup", mode="before")
    @classmethod
    def _lineup_or_empty(cls, v: Any) -> Any:
        return v or {}

    def chronological_events(self) -> List[GameEvent]:
        """Events oldest-first (the provider lists them newest-first)."""
        return list(reversed(self.events))


class ScheduledGame(BaseModel):
    """One entry of a team's schedule listing."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    state: Optional[str] = None
    starts_at: Optional[datetime] = Field(default=None, alias="startsAt")
    home_team: Optional[Team] = Field(default=None, alias="homeTeam")
    away_team: Optional[Team] = Field(default=None, alias="awayTeam")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("starts_at")
    @classmethod
    def _aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def home_name(self) -> str:
        return self.home_team.name if self.home_team else "?"

    @property
    def away_name(self) -> str:
        return self.away_team.name if self.away_team else "?"
