from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator


MAX_MESSAGES = 30


@dataclass(frozen=True)
class ChatMessage:
    author_channel_id: str
    author_name: str | None
    message: str

    def display_name(self) -> str:
        return self.author_name or "no name"


class LatestChatMessages:
    """Ring buffer of the most recent chat messages (oldest dropped first)."""

    def __init__(self, max_messages: int = MAX_MESSAGES) -> None:
        self._messages: deque[ChatMessage] = deque(maxlen=max_messages)

    def add(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
