"""In-memory store of ticker state, keyed by chat id."""
from typing import Dict, Iterator, List, Optional, Tuple

from liveticker.models.ticker import TickerState


class TickerRegistry:
    """Single source of truth for every chat's lifecycle flags."""

    def __init__(self):
        self._tickers: Dict[str, TickerState] = {}

    def __contains__(self, chat_id: str) -> bool:
        return chat_id in self._tickers

    def __len__(self) -> int:
        return len(self._tickers)

    def get(self, chat_id: str) -> Optional[TickerState]:
        return self._tickers.get(chat_id)

    def create_or_reuse(self, chat_id: str) -> TickerState:
        """
        Fresh state for a new game, carrying over the chat's seen set.

        A new object is stored so that anything still holding the previous
        game's state can not mutate the new one.
        """
        previous = self._tickers.get(chat_id)
        state = TickerState(chat_id=chat_id)
        if previous is not None:
            state.seen = previous.seen
        self._tickers[chat_id] = state
        return state

    def put(self, state: TickerState):
        self._tickers[state.chat_id] = state

    def remove(self, chat_id: str) -> Optional[TickerState]:
        return self._tickers.pop(chat_id, None)

    def is_busy(self, chat_id: str) -> bool:
        """True while a ticker is scheduling, scheduled or polling."""
        state = self._tickers.get(chat_id)
        return state is not None and state.is_busy

    def polling_chat_ids(self) -> List[str]:
        """Chats currently polling, in insertion order."""
        return [chat_id for chat_id, state in self._tickers.items() if state.is_polling]

    def items(self) -> Iterator[Tuple[str, TickerState]]:
        return iter(list(self._tickers.items()))

    def states(self) -> List[TickerState]:
        return list(self._tickers.values())
