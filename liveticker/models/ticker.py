"""Per-chat ticker (subscription) state."""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Union

from liveticker.providers.models import GameEvent

EventId = Union[int, str]


class TickerMode(str, enum.Enum):
    """Delivery strategy, fixed for one game's tracking."""
    LIVE = "live"
    RECAP = "recap"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TickerMode":
        """Anything other than 'recap' means live updates."""
        if value and value.lower() == cls.RECAP.value:
            return cls.RECAP
        return cls.LIVE


class TickerStatus(str, enum.Enum):
    IDLE = "idle"
    SCHEDULING = "scheduling"
    SCHEDULED = "scheduled"
    POLLING = "polling"


@dataclass
class RecapEntry:
    """A buffered occurrence plus the detail text computed when it arrived."""
    event: GameEvent
    detail: str = ""


@dataclass
class TickerState:
    """
    Mutable state of one chat's ticker.

    At most one of is_scheduling / is_scheduled / is_polling is set; use the
    mark_* helpers to move between them. ``seen`` only grows until the
    ticker is reset.
    """
    chat_id: str
    game_id: Optional[str] = None
    meeting_page_url: Optional[str] = None
    team_page_url: Optional[str] = None
    group_name: str = ""
    mode: TickerMode = TickerMode.LIVE
    is_auto_schedule: bool = False

    is_scheduling: bool = False
    is_scheduled: bool = False
    is_polling: bool = False

    seen: Set[EventId] = field(default_factory=set)
    recap_events: List[RecapEntry] = field(default_factory=list)
    recap_minute_counter: int = 0

    last_updated_at: Optional[str] = None
    last_known_score: Optional[str] = None
    team_names: Optional[Dict[str, str]] = None
    age_group: Optional[str] = None
    kickoff: Optional[datetime] = None
    finished: bool = False

    @property
    def status(self) -> TickerStatus:
        if self.is_polling:
            return TickerStatus.POLLING
        if self.is_scheduled:
            return TickerStatus.SCHEDULED
        if self.is_scheduling:
            return TickerStatus.SCHEDULING
        return TickerStatus.IDLE

    @property
    def is_busy(self) -> bool:
        return self.status is not TickerStatus.IDLE

    @property
    def home_name(self) -> str:
        return self.team_names["home"] if self.team_names else "Home"

    @property
    def guest_name(self) -> str:
        return self.team_names["guest"] if self.team_names else "Guest"

    def mark_scheduling(self):
        self.is_scheduling, self.is_scheduled, self.is_polling = True, False, False

    def mark_scheduled(self):
        self.is_scheduling, self.is_scheduled, self.is_polling = False, True, False

    def mark_polling(self):
        self.is_scheduling, self.is_scheduled, self.is_polling = False, False, True

    def mark_idle(self):
        self.is_scheduling, self.is_scheduled, self.is_polling = False, False, False
