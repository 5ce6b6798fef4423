"""Connection state model for the client side of the channel."""

from dataclasses import dataclass
from enum import Enum


class ConnectionStatus(Enum):
    """Lifecycle states of one subscription."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of a connection controller's status and bound endpoint."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    endpoint: str = ""

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def __repr__(self) -> str:
        return f"ConnectionState(status={self.status.value!r}, endpoint={self.endpoint!r})"
