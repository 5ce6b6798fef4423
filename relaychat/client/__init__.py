"""Client side of the relay chat channel."""

from relaychat.client.connection import ConnectionController
from relaychat.client.session import MessageSession

__all__ = ["ConnectionController", "MessageSession"]
