"""Abstract interface for live game data providers."""
from abc import ABC, abstractmethod
from typing import List

from liveticker.providers.models import GameData, ScheduledGame


class GameDataProvider(ABC):
    """Abstract base class for live game data providers."""

    @abstractmethod
    async def get_game_data(self, game_id: str) -> GameData:
        """
        Fetch the combined summary/events/lineup payload of one game.

        Args:
            game_id: Canonical game identifier

        Returns:
            Validated GameData

        Raises:
            ProviderError: If the fetch fails or times out
            PayloadError: If the response does not match the schema
        """
        pass

    @abstractmethod
    async def get_team_schedule(self, team_page_url: str) -> List[ScheduledGame]:
        """
        Fetch and parse the game list embedded in a team's schedule page.

        Raises:
            ProviderError: If the page cannot be fetched
            ScheduleNotFoundError: If no schedule block can be extracted
        """
        pass

    async def close(self):
        """Release network resources."""
        pass


class ProviderError(Exception):
    """Exception raised when provider API fails."""
    pass


class PayloadError(ProviderError):
    """The provider answered, but with a structurally invalid payload."""
    pass


class ScheduleNotFoundError(ProviderError):
    """No parsable schedule block was found on a team page."""
    pass
