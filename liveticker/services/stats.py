"""Post-game statistics compiled from the event log."""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

from liveticker.providers.models import GameEvent, Lineup, Player
from liveticker.utils.formatting import shirt_number

logger = logging.getLogger(__name__)

NOBODY = "Nobody"


@dataclass
class TeamStats:
    name: str
    penalties: int = 0
    seven_meters_made: int = 0
    seven_meters_missed: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    blue_cards: int = 0
    top_scorer: str = NOBODY

    @property
    def seven_meters(self) -> str:
        attempts = self.seven_meters_made + self.seven_meters_missed
        return f"{self.seven_meters_made} of {attempts}"


@dataclass
class GameStats:
    home: TeamStats
    guest: TeamStats


_COUNTERS = {
    "SevenMeterGoal": "seven_meters_made",
    "SevenMeterMissed": "seven_meters_missed",
    "TwoMinutePenalty": "penalties",
    "Warning": "yellow_cards",
    "Disqualification": "red_cards",
    "DisqualificationWithReport": "blue_cards",
}


def _display_name(player: Optional[Player], number: int) -> str:
    if player is not None:
        first = (player.firstname or "").strip()
        last = (player.lastname or "").strip()
        if last and first and first != "N.N.":
            return f"{first.split(' ')[0]} {last}"
        if last and last != "N.N.":
            return last
        if first and first != "N.N.":
            return first
    return f"No. {number}"


def find_top_scorer(players: List[Player], events: List[GameEvent], side: str) -> str:
    """Top scorer(s) of one side, e.g. 'Ana Walk & Lea Roth (7 goals)'."""
    if not players or not events:
        return NOBODY

    goals = Counter()
    for event in events:
        if (event.team or "").lower() != side.lower():
            continue
        if event.type in ("Goal", "SevenMeterGoal"):
            number = shirt_number(event.message, strict=False)
            if number is not None:
                goals[number] += 1

    if not goals:
        return NOBODY

    top = max(goals.values())
    by_number = {p.number: p for p in players if p.number is not None}
    names = [_display_name(by_number.get(number), number) for number, count in goals.items() if count == top]
    return f"{' & '.join(names)} ({top} goals)"


def compute_game_stats(lineup: Lineup, team_names: Dict[str, str], events: List[GameEvent]) -> GameStats:
    """Count cards, suspensions and 7m throws per side from chronological events."""
    stats = GameStats(home=TeamStats(team_names["home"]), guest=TeamStats(team_names["guest"]))

    for event in events:
        attr = _COUNTERS.get(event.type)
        if attr is None:
            continue
        target = stats.home if event.is_home else stats.guest
        setattr(target, attr, getattr(target, attr) + 1)

    stats.home.top_scorer = find_top_scorer(lineup.home, events, "Home")
    stats.guest.top_scorer = find_top_scorer(lineup.away, events, "Away")
    return stats


def _team_block(team: TeamStats) -> List[str]:
    lines = [
        f"*{team.name}:*",
        f"  - Top scorer: {team.top_scorer}",
        f"  - 7m: {team.seven_meters}",
        f"  - 2-minute suspensions: {team.penalties}",
        f"  - Yellow cards: {team.yellow_cards}",
        f"  - Red cards: {team.red_cards}",
    ]
    if team.blue_cards > 0:
        lines.append(f"  - Blue cards: {team.blue_cards}")
    return lines


def format_stats_message(stats: GameStats) -> str:
    separator = "-----------------------------------"
    lines = ["📊 *Game statistics:*", separator]
    lines += _team_block(stats.home)
    lines.append(separator)
    lines += _team_block(stats.guest)
    return "\n".join(lines)


def extract_game_stats(lineup: Optional[Lineup], team_names: Optional[Dict[str, str]], events: List[GameEvent]) -> str:
    """Statistics message, or empty string when lineup or events are missing."""
    if lineup is None or not lineup.home or not lineup.away or not team_names:
        logger.info("No lineup data for statistics")
        return ""
    if not events:
        logger.info("No event data for statistics")
        return ""
    return format_stats_message(compute_game_stats(lineup, team_names, events))
