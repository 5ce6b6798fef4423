"""Minimal real-time messaging channel over Server-Sent Events."""

__version__ = "1.0.0"

from relaychat.client.connection import ConnectionController
from relaychat.client.session import MessageSession
from relaychat.core.channel import BroadcastChannel
from relaychat.core.exceptions import (
    ChannelError,
    DeliveryError,
    FrameError,
    RegistryWriteError,
    TransportError,
)
from relaychat.core.registry import ClientRegistry
from relaychat.models.chat_message import ChatMessage, Sender
from relaychat.models.connection import ConnectionState, ConnectionStatus
from relaychat.models.frame import BroadcastFrame

__all__ = [
    "__version__",
    "BroadcastChannel",
    "BroadcastFrame",
    "ChannelError",
    "ChatMessage",
    "ClientRegistry",
    "ConnectionController",
    "ConnectionState",
    "ConnectionStatus",
    "DeliveryError",
    "FrameError",
    "MessageSession",
    "RegistryWriteError",
    "Sender",
    "TransportError",
]
