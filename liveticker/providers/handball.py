"""handball.net provider implementation."""
import json
import logging
import re
import time
from typing import List, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from liveticker.core.config import settings
from liveticker.providers import (
    GameDataProvider,
    PayloadError,
    ProviderError,
    ScheduleNotFoundError
)
from liveticker.providers.models import GameData, ScheduledGame


logger = logging.getLogger(__name__)

# Next.js streams page data as JS string literals inside push() calls
NEXT_CHUNK_RE = re.compile(r'self\.__next_f\.push\(\[1,"((?:[^"\\]|\\.)*)"\]\)', re.S)
SCHEDULE_KEY = '"schedule":['


def _unescape_chunk(chunk: str) -> str:
    """Decode a JS string literal body into plain text."""
    try:
        return json.loads(f'"{chunk}"')
    except ValueError:
        return chunk.replace('\\"', '"').replace('\\\\', '\\')


def _balanced_array(text: str, start: int) -> Optional[str]:
    """
    Return the JSON array starting at text[start] ('[') up to its matching ']'.

    Brackets inside JSON strings are ignored, escapes inside strings honored.
    Returns None if the array is never closed.
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '[':
            depth += 1
        elif char == ']':
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def extract_schedule_json(html: str) -> List[dict]:
    """
    Locate and parse the team's schedule array embedded in page markup.

    Every streamed Next.js chunk is unescaped and searched for the
    ``"schedule":[`` key, then all chunks joined in page order (large
    payloads are split across several pushes); the raw page is searched last
    in case the block is served unescaped. The array end is found by bracket
    balancing, never by fixed offsets.

    Raises:
        ScheduleNotFoundError: If no candidate contains a parsable array
    """
    chunks = [_unescape_chunk(m.group(1)) for m in NEXT_CHUNK_RE.finditer(html)]
    candidates = list(chunks)
    if len(chunks) > 1:
        candidates.append("".join(chunks))
    candidates.append(html)
    logger.debug(f"Searching {len(chunks)} script chunks for schedule data")

    last_error = "schedule key not found"
    for text in candidates:
        key_index = text.find(SCHEDULE_KEY)
        if key_index == -1:
            continue

        array_text = _balanced_array(text, key_index + len(SCHEDULE_KEY) - 1)
        if array_text is None:
            last_error = "schedule array is never closed"
            logger.warning("Found schedule key, but the closing bracket is missing")
            continue

        try:
            games = json.loads(array_text)
        except ValueError as e:
            last_error = f"schedule JSON is malformed: {e}"
            logger.warning(f"Schedule JSON malformed (first 200 chars): {array_text[:200]}")
            continue

        if isinstance(games, list):
            return games
        last_error = "schedule block is not a list"

    raise ScheduleNotFoundError(f"Could not extract schedule data: {last_error}")


class HandballNetProvider(GameDataProvider):
    """handball.net implementation of the game data provider."""

    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.provider_base_url).rstrip("/")
        self.timeout = timeout or settings.fetch_timeout_seconds
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.USER_AGENT},
            follow_redirects=True
        )

    def build_data_url(self, game_id: str) -> str:
        """Combined summary/events/lineup endpoint of one game."""
        return f"{self.base_url}/a/sportdata/1/games/{game_id}/combined"

    async def get_game_data(self, game_id: str) -> GameData:
        """
        Fetch one game's combined data.

        Not retried: the fairness pass re-polls soon enough, and a failed
        schedule job is reported to the user instead.
        """
        url = self.build_data_url(game_id)
        try:
            # Cache buster, the CDN otherwise serves stale versions
            response = await self.client.get(url, params={"_": int(time.time() * 1000)})
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise ProviderError(f"handball.net timeout for {game_id}: {e}")
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"handball.net returned HTTP {e.response.status_code} for {game_id}")
        except httpx.HTTPError as e:
            raise ProviderError(f"handball.net connection error for {game_id}: {e}")
        except ValueError as e:
            raise PayloadError(f"handball.net returned invalid JSON for {game_id}: {e}")

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise PayloadError(f"Invalid data structure received for {game_id}: missing 'data'")

        try:
            return GameData.model_validate(data)
        except ValidationError as e:
            raise PayloadError(f"Invalid data structure received for {game_id}: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _fetch_page(self, url: str) -> str:
        """Fetch an HTML page with retry logic for transient failures."""
        response = await self.client.get(url)
        response.raise_for_status()
        return response.text

    async def get_team_schedule(self, team_page_url: str) -> List[ScheduledGame]:
        """Fetch a team page and return its parsed schedule."""
        logger.info(f"Fetching team schedule page: {team_page_url}")
        try:
            html = await self._fetch_page(team_page_url)
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"Team page returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            raise ProviderError(f"Could not fetch team page: {e}")

        raw_games = extract_schedule_json(html)
        games = []
        for raw in raw_games:
            try:
                games.append(ScheduledGame.model_validate(raw))
            except ValidationError as e:
                logger.debug(f"Skipping unparsable schedule entry: {e}")

        logger.info(f"Parsed {len(games)} games from team schedule")
        return games

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
