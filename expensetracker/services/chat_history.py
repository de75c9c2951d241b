"""
Chat History Persistence

The chat box keeps a per-user conversation. Where it lives (process
memory, a Streamlit session, a table) is behind ChatHistoryStore so that
nothing else depends on it. The extraction pipeline never reads history.
"""

from abc import ABC, abstractmethod

from expensetracker.models.expense import ChatMessage


class ChatHistoryStore(ABC):
    """Per-user ordered chat turns."""

    @abstractmethod
    def load(self, user_id: str) -> list[ChatMessage]:
        """All turns for ``user_id``, oldest first. Empty if none."""
        pass

    @abstractmethod
    def append(self, user_id: str, message: ChatMessage) -> None:
        pass

    @abstractmethod
    def clear(self, user_id: str) -> None:
        pass


class InMemoryChatHistoryStore(ChatHistoryStore):
    """Process-local history, capped per user."""

    def __init__(self, max_messages: int = 200):
        self._max_messages = max_messages
        self._history: dict[str, list[ChatMessage]] = {}

    def load(self, user_id: str) -> list[ChatMessage]:
        return list(self._history.get(user_id, []))

    def append(self, user_id: str, message: ChatMessage) -> None:
        messages = self._history.setdefault(user_id, [])
        messages.append(message)
        if len(messages) > self._max_messages:
            del messages[: len(messages) - self._max_messages]

    def clear(self, user_id: str) -> None:
        self._history.pop(user_id, None)
