"""Frame model for units placed on the event stream."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class FrameKind(Enum):
    """Kinds of frames carried by the stream."""
    MESSAGE = "message"


@dataclass(frozen=True)
class BroadcastFrame:
    """A single message unit sent to every open stream."""

    kind: str
    content: str

    @classmethod
    def message(cls, content: str) -> 'BroadcastFrame':
        """Create a frame of kind ``message``."""
        return cls(kind=FrameKind.MESSAGE.value, content=content)

    @property
    def is_message(self) -> bool:
        return self.kind == FrameKind.MESSAGE.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert frame to its wire dictionary."""
        return {
            'type': self.kind,
            'content': self.content
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BroadcastFrame':
        """Create BroadcastFrame instance from its wire dictionary."""
        return cls(
            kind=data['type'],
            content=data['content']
        )

    def __repr__(self) -> str:
        return f"BroadcastFrame(kind={self.kind!r}, content={self.content!r})"
