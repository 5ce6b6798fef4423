"""Broadcast channel fanning messages out to every open stream."""

import logging
from typing import AsyncIterator, Optional

from relaychat.core import frame_codec
from relaychat.core.registry import ClientRegistry, QueueSink
from relaychat.models.frame import BroadcastFrame

logger = logging.getLogger(__name__)

DEFAULT_WELCOME_MESSAGE = "Welcome to the relay chat SSE server!"
ECHO_PREFIX = "Echo from server: "


def format_echo(message: str) -> str:
    return f"{ECHO_PREFIX}{message}"


class BroadcastChannel:
    """Encodes messages and delivers them to every registered stream."""

    def __init__(self, registry: Optional[ClientRegistry] = None, welcome_message: str = DEFAULT_WELCOME_MESSAGE):
        self.registry = registry if registry is not None else ClientRegistry()
        self.welcome_message = welcome_message

    @property
    def connected_clients(self) -> int:
        return self.registry.count

    async def broadcast(self, content: str) -> int:
        """
        Send a ``message`` frame carrying content to all open streams.

        Args:
            content: Text payload

        Returns:
            Number of streams the frame was written to
        """
        data = frame_codec.encode(BroadcastFrame.message(content))
        return await self.registry.broadcast(data)

    async def publish_echo(self, message: str) -> int:
        """Broadcast the echo of a posted message."""
        return await self.broadcast(format_echo(message))

    async def stream(self, origin: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Register a new stream and yield its encoded frames.

        The first frame is the welcome message. The registration is removed
        when the generator is closed or cancelled.

        Args:
            origin: Origin header of the request, for logging only
        """
        sink = QueueSink()
        registration_id = await self.registry.register(sink)
        logger.info(f"Client {registration_id} connected to SSE endpoint from origin: {origin}")
        try:
            await sink.send(frame_codec.encode(BroadcastFrame.message(self.welcome_message)))
            while True:
                yield await sink.get()
        finally:
            sink.close()
            await self.registry.unregister(registration_id)
            logger.info(f"Client {registration_id} disconnected")
