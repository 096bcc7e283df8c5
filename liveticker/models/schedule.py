"""Persisted pending-schedule entries."""
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from liveticker.models.ticker import TickerMode, TickerState


class ScheduleEntry(BaseModel):
    """
    On-disk mirror of a ticker waiting for its game.

    ``start_time`` is already shifted by the pre-game lead, i.e. it is the
    absolute moment polling has to begin.
    """
    model_config = ConfigDict(extra="ignore")

    meeting_page_url: str
    game_id: Optional[str] = None
    start_time: datetime
    kickoff: Optional[datetime] = None
    group_name: str = ""
    mode: TickerMode = TickerMode.LIVE
    is_auto_schedule: bool = False
    team_page_url: Optional[str] = None
    age_group: Optional[str] = None
    team_names: Optional[Dict[str, str]] = None

    @field_validator("start_time", "kickoff")
    @classmethod
    def _aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Entries written without an offset are UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, v):
        return v if isinstance(v, TickerMode) else TickerMode.parse(v)

    @classmethod
    def from_state(cls, state: TickerState, start_time: datetime) -> "ScheduleEntry":
        return cls(
            meeting_page_url=state.meeting_page_url or "",
            game_id=state.game_id,
            start_time=start_time,
            kickoff=state.kickoff,
            group_name=state.group_name,
            mode=state.mode,
            is_auto_schedule=state.is_auto_schedule,
            team_page_url=state.team_page_url,
            age_group=state.age_group,
            team_names=state.team_names,
        )

    def apply_to(self, state: TickerState):
        """Restore the descriptive fields of a ticker from this entry."""
        state.meeting_page_url = self.meeting_page_url
        state.game_id = self.game_id or state.game_id
        state.group_name = self.group_name
        state.mode = self.mode
        state.is_auto_schedule = self.is_auto_schedule
        state.team_page_url = self.team_page_url
        state.age_group = self.age_group
        state.team_names = self.team_names
        state.kickoff = self.kickoff
