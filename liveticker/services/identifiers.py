"""Game identifier resolution from handball.net URLs and schedules."""
import logging
import re
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import urlparse

from liveticker.core.config import settings
from liveticker.providers.models import ScheduledGame

logger = logging.getLogger(__name__)

_DIGIT_RE = re.compile(r"\d")


def looks_like_game_id(segment: Optional[str]) -> bool:
    """Game ids look like 'handball4all.baden.8668826': a dot and a digit."""
    if not segment:
        return False
    return "." in segment and bool(_DIGIT_RE.search(segment))


def get_game_id_from_url(meeting_page_url: str) -> Optional[str]:
    """
    Extract the canonical game id from a game page URL.

    The last path segment is tried first, then the one before it (game pages
    have sub-pages such as ``/spiele/<id>/ticker``).

    Returns:
        The game id, or None if the URL is not a recognizable game page
    """
    try:
        parsed = urlparse(meeting_page_url.strip())
    except (AttributeError, ValueError) as e:
        logger.warning(f"Could not parse URL {meeting_page_url!r}: {e}")
        return None

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None

    segments = [segment for segment in parsed.path.split("/") if segment]
    for segment in reversed(segments[-2:]):
        if looks_like_game_id(segment):
            return segment
    return None


def build_game_url(game_id: str) -> str:
    """Public game page for a game id."""
    return f"{settings.provider_base_url.rstrip('/')}/spiele/{game_id}"


def find_next_game(
    games: Iterable[ScheduledGame],
    exclude_game_id: Optional[str] = None,
    exclude_kickoff: Optional[datetime] = None
) -> Optional[ScheduledGame]:
    """
    First upcoming game of a schedule listing.

    The listing may still show a just-finished game as upcoming, so the
    finished game is excluded by id and, as a secondary guard against the
    same game listed under another id, by kickoff time.
    """
    for game in games:
        if game.state != "Pre" or game.starts_at is None:
            continue
        if exclude_game_id is not None and game.id == exclude_game_id:
            continue
        if exclude_kickoff is not None and game.starts_at == exclude_kickoff:
            logger.info(f"Skipping game {game.id}: same kickoff as the finished game")
            continue
        return game
    return None
