"""Event stream subscriptions for the chat client."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import aiohttp

from relaychat.core.exceptions import TransportError
from relaychat.core.frame_codec import FrameDecoder

logger = logging.getLogger(__name__)

STREAM_SUFFIX = "/sse"
MESSAGE_SUFFIX = "/message"


def derive_send_endpoint(endpoint: str) -> str:
    """
    Derive the send endpoint from a stream endpoint.

    The first ``/sse`` in the address is replaced with ``/message``, so
    ``http://host:3001/sse`` becomes ``http://host:3001/message``.

    Raises:
        ValueError: If the endpoint is blank
    """
    if not endpoint or not endpoint.strip():
        raise ValueError("Endpoint must not be empty")
    return endpoint.strip().replace(STREAM_SUFFIX, MESSAGE_SUFFIX, 1)


class Subscription(ABC):
    """
    One subscription to the event stream.

    Reports through three callbacks: ``on_open()`` once the stream is
    established, ``on_frame(unit)`` for every complete SSE unit and
    ``on_error(exc)`` when the stream fails. Nothing is reported after
    ``close()``.
    """

    def __init__(self, endpoint: str,
                 on_open: Callable[[], None],
                 on_frame: Callable[[str], None],
                 on_error: Callable[[Exception], None]):
        self.endpoint = endpoint
        self._on_open = on_open
        self._on_frame = on_frame
        self._on_error = on_error
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    def start(self) -> None:
        """Begin reading the stream without blocking."""
        pass

    async def close(self) -> None:
        """Close the subscription. Closing twice is a no-op."""
        self._closed = True

    def _emit_open(self) -> None:
        if not self._closed:
            self._on_open()

    def _emit_frame(self, unit: str) -> None:
        if not self._closed:
            self._on_frame(unit)

    def _emit_error(self, error: Exception) -> None:
        if not self._closed:
            self._on_error(error)


class SseSubscription(Subscription):
    """Subscription reading a Server-Sent Events stream with aiohttp."""

    def __init__(self, endpoint: str,
                 on_open: Callable[[], None],
                 on_frame: Callable[[str], None],
                 on_error: Callable[[Exception], None]):
        super().__init__(endpoint, on_open, on_frame, on_error)
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Start reading the stream in a background task."""
        if self._task is None and not self._closed:
            self._task = asyncio.create_task(self._run())

    async def close(self) -> None:
        await super().close()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            task.cancel()
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        timeout = aiohttp.ClientTimeout(total=None, sock_read=None)
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.endpoint, headers=headers) as response:
                    if response.status != 200:
                        raise TransportError(f"Stream request failed: {response.status}")
                    if response.content_type != "text/event-stream":
                        raise TransportError(f"Unexpected content type: {response.content_type}")

                    self._emit_open()
                    decoder = FrameDecoder()
                    async for chunk in response.content.iter_any():
                        for unit in decoder.feed(chunk):
                            self._emit_frame(unit)
                    raise TransportError("Stream closed by remote")
        except TransportError as e:
            self._emit_error(e)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._emit_error(TransportError(f"Stream error: {str(e)}"))
