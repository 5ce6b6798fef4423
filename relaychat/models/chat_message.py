"""Chat message model for the local conversation log."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Sender(Enum):
    """Who produced a conversation entry."""
    USER = "user"
    REMOTE = "remote"


@dataclass(frozen=True)
class ChatMessage:
    """Represents one line in the conversation log."""

    id: str
    content: str
    sender: Sender
    timestamp: datetime = field(default_factory=datetime.now)

    def __repr__(self) -> str:
        return f"ChatMessage(id={self.id!r}, sender={self.sender.value!r}, content={self.content!r})"
