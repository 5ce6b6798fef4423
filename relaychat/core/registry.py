"""Registry of open event streams."""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from relaychat.core.exceptions import RegistryWriteError
from relaychat.models.registration import ClientRegistration

logger = logging.getLogger(__name__)


class QueueSink:
    """Writable end of one open stream, drained by the stream's response."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, data: bytes) -> None:
        """Queue an encoded frame for the stream."""
        if self._closed:
            raise RegistryWriteError("Sink is closed")
        self._queue.put_nowait(data)

    async def get(self) -> bytes:
        """Wait for the next encoded frame."""
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class ClientRegistry:
    """
    Tracks the sinks of currently open streams.

    Structural changes go through a single lock and broadcasts iterate over a
    snapshot, so streams may join or leave while a broadcast is running.
    """

    def __init__(self):
        self._registrations: Dict[str, ClientRegistration] = {}
        self._mutex = asyncio.Lock()
        self._broadcast_mutex = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._registrations)

    @property
    def count(self) -> int:
        """Number of registered streams."""
        return len(self._registrations)

    def ids(self) -> Tuple[str, ...]:
        """Snapshot of the registered ids."""
        return tuple(self._registrations)

    def __contains__(self, registration_id: str) -> bool:
        return registration_id in self._registrations

    async def register(self, sink) -> str:
        """
        Register a sink as a broadcast target.

        Args:
            sink: Object with an awaitable ``send(data: bytes)``

        Returns:
            Unique id of the new registration
        """
        registration = ClientRegistration(sink=sink)
        async with self._mutex:
            self._registrations[registration.id] = registration
        logger.info(f"Registered stream {registration.id} ({len(self._registrations)} open)")
        return registration.id

    async def unregister(self, registration_id: str) -> Optional[ClientRegistration]:
        """
        Remove a registration. Unknown ids are ignored.

        Args:
            registration_id: Id returned by ``register``

        Returns:
            The removed registration, or None if it was not present
        """
        async with self._mutex:
            registration = self._registrations.pop(registration_id, None)
        if registration is not None:
            logger.info(f"Unregistered stream {registration_id} ({len(self._registrations)} open)")
        return registration

    async def broadcast(self, data: bytes) -> int:
        """
        Write an encoded frame to every registered sink.

        A failing sink is unregistered without affecting the others.

        Args:
            data: Encoded frame

        Returns:
            Number of sinks that accepted the frame
        """
        # Serializing broadcasts keeps per-sink delivery in call order
        async with self._broadcast_mutex:
            async with self._mutex:
                targets = list(self._registrations.values())
            if not targets:
                return 0

            results = await asyncio.gather(
                *(registration.sink.send(data) for registration in targets),
                return_exceptions=True
            )

            delivered = 0
            for registration, result in zip(targets, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, BaseException):
                    error = result if isinstance(result, RegistryWriteError) else RegistryWriteError(str(result))
                    logger.error(f"Failed to send frame to {registration.id}: {str(error)}")
                    await self.unregister(registration.id)
                else:
                    delivered += 1
            return delivered
