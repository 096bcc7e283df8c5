"""Abstract chat transport used by the ticker engine."""
from abc import ABC, abstractmethod


class ChatTransport(ABC):
    """Outgoing message channel to a chat group."""

    @abstractmethod
    async def send_message(self, chat_id: str, text: str) -> bool:
        """
        Send a text message to a chat.

        Implementations must never raise: delivery failures are logged and
        reported as False so a failed notification can not abort event
        processing.
        """
        pass
