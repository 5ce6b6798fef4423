"""Test doubles for the client transport."""

import asyncio

from relaychat.client.transport import Subscription
from relaychat.core import frame_codec
from relaychat.core.exceptions import TransportError
from relaychat.models.frame import BroadcastFrame


class FakeSubscription(Subscription):
    """Subscription driven by the test instead of a network stream."""

    def __init__(self, endpoint, on_open, on_frame, on_error):
        super().__init__(endpoint, on_open, on_frame, on_error)
        self.started = False
        self.close_calls = 0

    def start(self):
        self.started = True

    async def close(self):
        self.close_calls += 1
        await super().close()

    def open(self):
        self._emit_open()

    def push(self, content):
        self._emit_frame(frame_codec.encode(BroadcastFrame.message(content)).decode("utf-8"))

    def push_raw(self, unit):
        self._emit_frame(unit)

    def fail(self, error=None):
        self._emit_error(error or TransportError("stream closed by remote"))

    def fire_after_close(self, content):
        """Invoke the callbacks directly, as a late network event would."""
        self._on_frame(frame_codec.encode(BroadcastFrame.message(content)).decode("utf-8"))


class FakeSubscriptionFactory:
    """Creates FakeSubscriptions and remembers them."""

    def __init__(self):
        self.created = []

    def __call__(self, endpoint, on_open, on_frame, on_error):
        subscription = FakeSubscription(endpoint, on_open, on_frame, on_error)
        self.created.append(subscription)
        return subscription

    @property
    def last(self):
        return self.created[-1]


class SlowClosingSubscription(FakeSubscription):
    """Subscription whose close waits like a real reader task does."""

    async def close(self):
        self.close_calls += 1
        await asyncio.sleep(0.01)
        await Subscription.close(self)


class SlowClosingSubscriptionFactory(FakeSubscriptionFactory):
    """Creates SlowClosingSubscriptions and remembers them."""

    def __call__(self, endpoint, on_open, on_frame, on_error):
        subscription = SlowClosingSubscription(endpoint, on_open, on_frame, on_error)
        self.created.append(subscription)
        return subscription

    def open_subscriptions(self):
        return [s.endpoint for s in self.created if not s.closed]
