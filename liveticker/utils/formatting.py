"""Chat message formatting for ticker updates."""
import re
from typing import Dict, List, Optional

from liveticker.core.config import settings
from liveticker.models.ticker import RecapEntry, TickerMode, TickerState
from liveticker.providers.models import GameEvent, Lineup, Player, ScheduledGame
from liveticker.utils.time import format_local_date, format_local_time

EVENT_MAP: Dict[str, Dict[str, str]] = {
    "Goal": {"emoji": "🤾", "label": "Goal"},
    "SevenMeterGoal": {"emoji": "🎯", "label": "7m goal"},
    "SevenMeterMissed": {"emoji": "❌", "label": "7m missed"},
    "TwoMinutePenalty": {"emoji": "⏱️", "label": "2-minute suspension"},
    "Warning": {"emoji": "🟨", "label": "Yellow card"},
    "Disqualification": {"emoji": "🟥", "label": "Red card"},
    "DisqualificationWithReport": {"emoji": "🟦", "label": "Blue card"},
    "Timeout": {"emoji": "⏸️", "label": "Team timeout"},
    "StartPeriod": {"emoji": "▶️", "label": "Period start"},
    "StopPeriod": {"emoji": "⏹️", "label": "Period end"},
    "default": {"emoji": "ℹ️", "label": "Event"},
}

PLAYER_ACTIONS = {
    "TwoMinutePenalty": "gets a 2-minute suspension",
    "Warning": "gets a yellow card",
    "Disqualification": "gets a red card",
    "DisqualificationWithReport": "gets a blue card",
}

_SHIRT_IN_PARENS_RE = re.compile(r"\((\d+)\.\)")
_SHIRT_RE = re.compile(r"(\d+)\.")
_TRAILING_TEAM_RE = re.compile(r"\s\([^)]*?\)$")


def event_info(event_type: str) -> Dict[str, str]:
    return EVENT_MAP.get(event_type, EVENT_MAP["default"])


def abbreviate_player_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    """'Thore Kjell Meyer' -> 'T. Meyer'."""
    if not last_name:
        return first_name or ""
    if not first_name:
        return last_name
    return f"{first_name.split(' ')[0][:1]}. {last_name}".strip()


def shirt_number(message: str, strict: bool = True) -> Optional[int]:
    """Shirt number from an event message, e.g. 'Goal by Ana Walk (15.)'."""
    match = (_SHIRT_IN_PARENS_RE if strict else _SHIRT_RE).search(message or "")
    return int(match.group(1)) if match else None


def find_player(lineup: Optional[Lineup], side: Optional[str], number: Optional[int]) -> Optional[Player]:
    if lineup is None or number is None:
        return None
    for player in lineup.for_side(side):
        if player.number == number:
            return player
    return None


def split_score(score: Optional[str]) -> List[str]:
    parts = (score or "0:0").split(":")
    return parts if len(parts) == 2 else [score or "0", "0"]


def is_final_stop(event: GameEvent, regulation_minutes: Optional[int] = None) -> bool:
    """Heuristic: a period stop past the first half's length is full time."""
    threshold = regulation_minutes or settings.regulation_half_minutes
    return event.type == "StopPeriod" and event.minute > threshold


def _stop_label(event: GameEvent, is_final: Optional[bool]) -> str:
    if is_final is None:
        is_final = is_final_stop(event)
    if is_final:
        return "Full time"
    # Past the first half but not final: overtime follows
    if event.minute > settings.regulation_half_minutes:
        return "End of regulation"
    return "Half time"


def _player_message(event: GameEvent, lineup: Optional[Lineup]) -> str:
    label = event_info(event.type)["label"]
    player = find_player(lineup, event.team, shirt_number(event.message))

    if player is None:
        # Unknown player: strip the team and shirt annotations
        cleaned = _TRAILING_TEAM_RE.sub("", event.message)
        cleaned = _SHIRT_IN_PARENS_RE.sub("", cleaned).replace("  ", " ").strip()
        return cleaned or label

    name = abbreviate_player_name(player.firstname, player.lastname)
    if event.type in PLAYER_ACTIONS:
        return f"{name} {PLAYER_ACTIONS[event.type]}"
    return f"{label} by {name}"


def format_live_event(
    event: GameEvent,
    state: TickerState,
    lineup: Optional[Lineup] = None,
    is_final: Optional[bool] = None
) -> str:
    """
    Format one event for live mode.

    Args:
        event: Event with the running score already filled in
        state: Ticker state (team names)
        lineup: Lineup used to resolve shirt numbers to names
        is_final: Whether a StopPeriod ends the game (None: minute heuristic)

    Returns:
        Message text, empty for events that produce no message
    """
    info = event_info(event.type)
    home, guest = state.home_name, state.guest_name
    time_str = f" ({event.time})" if event.time else ""

    if event.type in ("Goal", "SevenMeterGoal"):
        points_home, points_guest = split_score(event.score)
        if event.is_home:
            score_line = f"{home}  *{points_home}*:{points_guest}  {guest}"
        else:
            score_line = f"{home}  {points_home}:*{points_guest}*  {guest}"
        return f"{score_line}\n{info['emoji']} {_player_message(event, lineup)}{time_str}"

    if event.type == "SevenMeterMissed" or event.type in PLAYER_ACTIONS:
        return f"{info['emoji']} {_player_message(event, lineup)}{time_str}"

    if event.type == "Timeout":
        return f"{info['emoji']} {event.message or info['label']}{time_str}"

    if event.type == "StartPeriod":
        if event.minute == 0:
            return "▶️ *The game has started!*"
        return "▶️ *The second half has started!*"

    if event.type == "StopPeriod":
        points_home, points_guest = split_score(event.score)
        label = _stop_label(event, is_final)
        emoji = "🏁" if label == "Full time" else "⏸️"
        return f"{emoji} *{label}*\n{home}  *{points_home}:{points_guest}*  {guest}"

    return f"{info['emoji']} {event.message or info['label']}{time_str}"


def format_recap_detail(
    event: GameEvent,
    state: TickerState,
    lineup: Optional[Lineup] = None,
    is_final: Optional[bool] = None
) -> str:
    """Short detail text stored with a buffered recap event."""
    team_name = state.home_name if event.is_home else state.guest_name
    number = shirt_number(event.message, strict=False)
    player = find_player(lineup, event.team, number)
    player_name = abbreviate_player_name(player.firstname, player.lastname) if player else None

    if event.type in ("Goal", "SevenMeterGoal"):
        if player_name:
            return player_name
        return f"No. {number}" if number else ""

    if event.type == "SevenMeterMissed" or event.type in PLAYER_ACTIONS:
        if player_name:
            return f"{player_name} (*{team_name}*)"
        if number:
            return f"No. {number} (*{team_name}*)"
        return f"*{team_name}*"

    if event.type == "Timeout":
        return f"*{team_name}*"

    if event.type == "StartPeriod":
        return "The game has started!" if event.minute == 0 else "The second half has started!"

    if event.type == "StopPeriod":
        return _stop_label(event, is_final)

    return ""


def format_recap_line(entry: RecapEntry) -> str:
    """One line of a recap message: emoji | clock | score | detail."""
    event = entry.event
    info = event_info(event.type)
    clock = event.time or "--:--"
    score = event.score or "--:--"
    detail = entry.detail or event.message or info["label"]

    if event.type in ("Goal", "SevenMeterGoal"):
        home, away = split_score(score)
        score = f"*{home}*:{away}" if event.is_home else f"{home}:*{away}*"
        return f"{info['emoji']} {clock} | {score} | {detail}"

    if event.type in ("StartPeriod", "StopPeriod"):
        return f"{info['emoji']} {clock} | *{detail}* | *{score}*"

    return f"{info['emoji']} {clock} | {score} | {detail}"


def format_window_title(start_minute: int, end_minute: int) -> str:
    return f"Minute {start_minute:02d} - {end_minute:02d}"


def format_recap_message(title: str, state: TickerState, entries: List[RecapEntry]) -> str:
    """Whole recap message, empty if no entry produced a line."""
    lines = [line for line in (format_recap_line(entry) for entry in entries) if line.strip()]
    if not lines:
        return ""
    header = f"*{state.home_name}* : *{state.guest_name}*"
    body = "\n".join(lines)
    return f"📬 *{title}*\n\n{header}\n{body}"


def format_legend() -> str:
    """Emoji legend sent when a recap-mode ticker starts."""
    lines = ["ℹ️ *Ticker legend:*"]
    for key, details in EVENT_MAP.items():
        if key in ("default", "StartPeriod", "StopPeriod"):
            continue
        lines.append(f"{details['emoji']} = {details['label']}")
    return "\n".join(lines)


def format_scheduling_message(group_name: str) -> str:
    return f"⏳ Setting up the ticker for \"{group_name}\"..."


def format_scheduled_message(state: TickerState, start_time, recap_interval: int) -> str:
    """Confirmation for a ticker that starts later."""
    if state.mode == TickerMode.RECAP:
        mode_text = f"in recap mode ({recap_interval}-minute summaries)"
    else:
        mode_text = "with live updates"
    return (
        f"✅ Ticker for *{state.home_name}* vs *{state.guest_name}* is scheduled ({mode_text}) "
        f"and starts automatically on {format_local_date(start_time)} "
        f"at about {format_local_time(start_time)}."
    )


def format_immediate_start_message(state: TickerState, recap_interval: int) -> str:
    message = f"▶️ Ticker for *{state.home_name}* vs *{state.guest_name}* starts right away. "
    if state.mode == TickerMode.RECAP:
        return message + f"You will get a summary every {recap_interval} minutes. 📬"
    return message + "You will get every event live! 🤾"


def format_next_game(game: ScheduledGame) -> str:
    """'*A* vs *B*' plus local date and time of a schedule entry."""
    when = ""
    if game.starts_at is not None:
        when = (
            f"\non {format_local_date(game.starts_at, weekday=True)}"
            f" at {format_local_time(game.starts_at)}"
        )
    return f"*{game.home_name}* vs *{game.away_name}*{when}"


def format_closing_message() -> str:
    return (
        "Thanks for cheering along! 🥳\n\n"
        f"The source code of this bot is available here:\n{settings.source_code_url}"
    )
