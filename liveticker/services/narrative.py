"""
AI game summaries via the Google Gemini API.

The preferred model is tried first; when it reports a capacity problem the
lighter fallback model gets one attempt before a placeholder is returned.
Without an API key summaries are skipped entirely.
"""
import logging
from typing import Dict, List, Optional

import httpx

from liveticker.core.config import settings
from liveticker.providers.models import GameEvent, Lineup
from liveticker.services.stats import compute_game_stats

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

SUMMARY_HEADER = "🤖 *AI game analysis:*"
UNAVAILABLE_MESSAGE = (
    f"{SUMMARY_HEADER}\n\nThe AI model is currently overloaded. "
    "No analysis is available right now."
)


class NarrativeError(Exception):
    """Error from the Gemini API."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    @property
    def is_capacity(self) -> bool:
        """Overload / quota answers that a lighter model may not hit."""
        return self.status in (429, 503) or "overloaded" in str(self).lower()


class GeminiClient:
    """Async client for the Gemini generateContent endpoint."""

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = (api_key if api_key is not None else settings.gemini_api_key or "").strip()
        self.timeout = timeout or settings.gemini_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def generate(self, prompt: str, model: str) -> str:
        """
        Generate text with one model.

        Raises:
            NarrativeError: On HTTP errors, timeouts or an empty answer
        """
        if not self.api_key:
            raise NarrativeError("GEMINI_API_KEY not configured")

        client = await self._get_client()
        url = f"{GEMINI_BASE_URL}/{model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.TimeoutException:
            raise NarrativeError(f"{model} timed out")
        except httpx.HTTPError as e:
            raise NarrativeError(f"{model} connection error: {e}")

        if response.status_code != 200:
            raise NarrativeError(
                f"{model} returned HTTP {response.status_code}: {response.text[:300]}",
                status=response.status_code
            )

        text = self._extract_text(response.json())
        if not text:
            raise NarrativeError(f"{model} returned no text")
        return text

    @staticmethod
    def _extract_text(response: dict) -> str:
        candidates = response.get("candidates", [])
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts).strip()


def score_progression(events: List[GameEvent], duration: int) -> str:
    """Score at every 10th minute, e.g. 'Start: 0:0, 10min: 5:4, ...'."""
    progression = ["Start: 0:0"]
    for minute in range(10, duration + 1, 10):
        latest = None
        for event in events:
            if event.time and event.score and event.minute <= minute:
                latest = event
        if latest is not None:
            progression.append(f"{minute}min: {latest.score}")
    return ", ".join(progression)


def build_summary_prompt(
    events: List[GameEvent],
    team_names: Dict[str, str],
    group_name: str,
    lineup: Lineup,
    regulation_minutes: Optional[int] = None
) -> str:
    threshold = regulation_minutes or settings.regulation_half_minutes
    stops = [e for e in events if e.type == "StopPeriod"]
    final_event = next((e for e in stops if e.minute > threshold), None)
    halftime_event = next((e for e in stops if e.minute <= threshold), None)

    final_score = final_event.score if final_event and final_event.score else "N/A"
    halftime_score = halftime_event.score if halftime_event and halftime_event.score else "N/A"
    duration = final_event.minute if final_event else threshold * 2

    stats = compute_game_stats(lineup, team_names, events)
    home, guest = stats.home, stats.guest

    return f"""You are a witty, slightly sarcastic and knowledgeable handball commentator.
Write a short, entertaining summary (about 2-4 sentences) of a game that just ended.

IMPORTANT: The chat group you are posting in is called "{group_name}". Use the name to work out which team to support.
If the group name does not clearly belong to one team, stay neutral and ignore it. If it clearly does, support that team wholeheartedly and feel free to tease the opponent.

Game data:
- Home team: {home.name}
- Away team: {guest.name}
- Half-time score: {halftime_score}
- Final score: {final_score}
- Game length: {duration} minutes
- Score progression: {score_progression(events, duration)}, end: {final_score}
- Top scorer {home.name}: {home.top_scorer}
- Top scorer {guest.name}: {guest.top_scorer}
- 7m {home.name}: {home.seven_meters}
- 7m {guest.name}: {guest.seven_meters}
- 2-minute suspensions {home.name}: {home.penalties}
- 2-minute suspensions {guest.name}: {guest.penalties}
- Yellow cards {home.name}: {home.yellow_cards}
- Yellow cards {guest.name}: {guest.yellow_cards}
- Red cards {home.name}: {home.red_cards}
- Red cards {guest.name}: {guest.red_cards}
- Blue cards {home.name}: {home.blue_cards}
- Blue cards {guest.name}: {guest.blue_cards}

Instructions:
1. Give the summary a creative, punchy headline in bold (e.g. *Thriller in the home hall!*).
2. Use the statistics for pointed remarks, but only where they mattered for the game.
3. Be creative and avoid stock phrases. Stick to the facts; do not invent things the data does not show.

Your summary (headline and text only):"""


class NarrativeService:
    """Post-game narrative generation with model fallback."""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None
    ):
        self.client = client or GeminiClient()
        self.primary_model = primary_model or settings.gemini_primary_model
        self.fallback_model = fallback_model or settings.gemini_fallback_model

    async def summarize(
        self,
        events: List[GameEvent],
        team_names: Dict[str, str],
        group_name: str,
        lineup: Lineup
    ) -> str:
        """
        Summary message for a finished game.

        Returns:
            Summary text, "" when no API key is configured, or a placeholder
            when both models fail
        """
        if not self.client.configured:
            logger.info("GEMINI_API_KEY not found, skipping AI summary")
            return ""

        prompt = build_summary_prompt(events, team_names, group_name, lineup)

        try:
            logger.info(f"Generating AI summary with {self.primary_model}")
            text = await self.client.generate(prompt, self.primary_model)
            return f"{SUMMARY_HEADER}\n\n{text}"
        except NarrativeError as e:
            logger.warning(f"AI summary with {self.primary_model} failed: {e}")
            if not e.is_capacity:
                return UNAVAILABLE_MESSAGE

        try:
            logger.info(f"Primary model overloaded, falling back to {self.fallback_model}")
            text = await self.client.generate(prompt, self.fallback_model)
            return f"🤖 *AI game analysis (fallback model):*\n\n{text}"
        except NarrativeError as e:
            logger.error(f"AI summary fallback with {self.fallback_model} failed: {e}")
            return UNAVAILABLE_MESSAGE

    async def close(self):
        await self.client.close()
