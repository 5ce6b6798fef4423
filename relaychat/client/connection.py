"""Connection controller owning the client's single stream subscription."""

import asyncio
import logging
from typing import Callable, Optional

from relaychat.client.transport import SseSubscription, Subscription
from relaychat.core import frame_codec
from relaychat.core.exceptions import FrameError
from relaychat.models.connection import ConnectionState, ConnectionStatus

logger = logging.getLogger(__name__)

SubscriptionFactory = Callable[..., Subscription]


class ConnectionController:
    """
    Turns the event stream into a four-state machine.

    ``disconnected -> connecting -> connected``, with ``error`` entered on any
    transport failure. Retrying is left to the caller: ``connect`` works from
    every state and always closes the previous subscription first.

    Every status change is reported through ``on_status_change(state)`` and
    every ``message`` frame through ``on_message(content)``. Callbacks of a
    replaced or closed subscription are ignored.
    """

    def __init__(self,
                 on_message: Optional[Callable[[str], None]] = None,
                 on_status_change: Optional[Callable[[ConnectionState], None]] = None,
                 subscription_factory: SubscriptionFactory = SseSubscription):
        self.on_message = on_message
        self.on_status_change = on_status_change
        self._subscription_factory = subscription_factory
        self._subscription: Optional[Subscription] = None
        self._state = ConnectionState()
        self._mutex = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def endpoint(self) -> str:
        return self._state.endpoint

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    async def connect(self, endpoint: str) -> None:
        """
        Open a subscription to the stream endpoint.

        Returns once the subscription is started; the outcome arrives later as
        a transition to ``connected`` or ``error``.

        Args:
            endpoint: Stream address, e.g. ``http://localhost:3001/sse``

        Raises:
            ValueError: If the endpoint is blank
        """
        if not endpoint or not endpoint.strip():
            raise ValueError("Endpoint must not be empty")
        endpoint = endpoint.strip()

        async with self._mutex:
            await self._close_subscription()
            self._open_subscription(endpoint)

    def _open_subscription(self, endpoint: str) -> None:
        self._set_state(ConnectionStatus.CONNECTING, endpoint)

        subscription = None

        def on_open() -> None:
            self._handle_open(subscription)

        def on_frame(unit: str) -> None:
            self._handle_frame(subscription, unit)

        def on_error(error: Exception) -> None:
            self._handle_error(subscription, error)

        subscription = self._subscription_factory(endpoint, on_open, on_frame, on_error)
        self._subscription = subscription
        subscription.start()

    async def disconnect(self) -> None:
        """Close the subscription, if any, and return to ``disconnected``."""
        async with self._mutex:
            await self._close_subscription()
            self._set_state(ConnectionStatus.DISCONNECTED, "")

    async def _close_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    def _set_state(self, status: ConnectionStatus, endpoint: str) -> None:
        state = ConnectionState(status=status, endpoint=endpoint)
        if state == self._state:
            return
        self._state = state
        if self.on_status_change is not None:
            self.on_status_change(state)

    def _is_current(self, subscription: Optional[Subscription]) -> bool:
        return subscription is not None and subscription is self._subscription

    def _handle_open(self, subscription: Subscription) -> None:
        if not self._is_current(subscription) or self.status is not ConnectionStatus.CONNECTING:
            return
        logger.info(f"Connected to {self.endpoint}")
        self._set_state(ConnectionStatus.CONNECTED, self.endpoint)

    def _handle_frame(self, subscription: Subscription, unit: str) -> None:
        if not self._is_current(subscription) or self.status is not ConnectionStatus.CONNECTED:
            return
        try:
            frame = frame_codec.decode(unit)
        except FrameError as e:
            logger.warning(f"Dropping malformed frame: {str(e)}")
            return
        if not frame.is_message:
            logger.debug(f"Ignoring frame of kind {frame.kind!r}")
            return
        if self.on_message is not None:
            self.on_message(frame.content)

    def _handle_error(self, subscription: Subscription, error: Exception) -> None:
        if not self._is_current(subscription):
            return
        if self.status not in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            return
        logger.error(f"Stream error on {self.endpoint}: {str(error)}")
        self._set_state(ConnectionStatus.ERROR, self.endpoint)
