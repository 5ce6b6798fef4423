"""Message session keeping the local conversation log."""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from relaychat.client.connection import ConnectionController
from relaychat.client.delivery import deliver
from relaychat.client.transport import derive_send_endpoint
from relaychat.config import ClientConfig
from relaychat.core.exceptions import DeliveryError
from relaychat.models.chat_message import ChatMessage, Sender
from relaychat.models.connection import ConnectionState, ConnectionStatus

logger = logging.getLogger(__name__)

OFFLINE_REPLY = "I'm not connected to a chat server right now. Please connect to a server to start chatting!"
DELIVERY_FAILED_REPLY = "Sorry, I couldn't send your message. Please check your connection."

DeliverFn = Callable[[str, str, Optional[str]], Awaitable[Any]]


class MessageSession:
    """
    Ordered log of sent and received messages for one chat view.

    User input is echoed into the log before anything is sent. Without a live
    connection a canned reply follows after ``offline_reply_delay`` seconds;
    with one, the text is posted to the send endpoint and the reply arrives
    later through the stream. ``is_composing`` is true between a send and the
    next remote entry.
    """

    def __init__(self, controller: ConnectionController,
                 config: Optional[ClientConfig] = None,
                 deliver_fn: DeliverFn = deliver,
                 on_update: Optional[Callable[[], None]] = None):
        self.controller = controller
        self.config = config if config is not None else ClientConfig()
        self.on_update = on_update
        self._deliver = deliver_fn
        self._messages: List[ChatMessage] = []
        self._ids = itertools.count(1)
        self._composing = False
        self._closed = False

        controller.on_message = self.receive
        controller.on_status_change = self._handle_status_change

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def is_composing(self) -> bool:
        return self._composing

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Send user input.

        Args:
            text: Raw input; blank input is ignored

        Returns:
            The user entry appended to the log, or None for blank input
        """
        if not text or not text.strip():
            return None

        message = self._append(text, Sender.USER, composing=True)

        if not self.controller.is_connected:
            await asyncio.sleep(self.config.offline_reply_delay)
            if not self._closed:
                self._append(OFFLINE_REPLY, Sender.REMOTE, composing=False)
            return message

        try:
            send_endpoint = derive_send_endpoint(self.controller.endpoint)
            await self._deliver(send_endpoint, text, self.config.user_id)
        except DeliveryError as e:
            logger.error(f"Error sending message: {str(e)}")
            if not self._closed:
                self._append(DELIVERY_FAILED_REPLY, Sender.REMOTE, composing=False)
        return message

    def receive(self, content: str) -> None:
        """Append a message delivered by the stream."""
        if self._closed:
            return
        self._append(content, Sender.REMOTE, composing=False)

    def close(self) -> None:
        """Stop appending to the log; pending replies are dropped."""
        self._closed = True
        self._composing = False

    def _append(self, content: str, sender: Sender, composing: bool) -> ChatMessage:
        message = ChatMessage(id=str(next(self._ids)), content=content, sender=sender)
        self._messages.append(message)
        self._composing = composing
        self._notify()
        return message

    def _handle_status_change(self, state: ConnectionState) -> None:
        if state.status is ConnectionStatus.ERROR:
            self._composing = False
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update()
