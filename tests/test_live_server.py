"""End-to-end tests against the application served by uvicorn."""

import asyncio
import socket
import threading
import time
import pytest
import uvicorn
from relaychat.client.connection import ConnectionController
from relaychat.client.session import MessageSession
from relaychat.config import ClientConfig, ServerConfig
from relaychat.core.channel import DEFAULT_WELCOME_MESSAGE
from relaychat.main import create_app
from relaychat.models.chat_message import Sender
from relaychat.models.connection import ConnectionStatus


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def wait_until(predicate, timeout=5.0):
    """Poll until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


@pytest.fixture
def live_server():
    """Application served on a local port from a background thread."""
    port = free_port()
    app = create_app(ServerConfig(host="127.0.0.1", port=port, ping_interval=0.1))
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        if time.monotonic() > deadline or not thread.is_alive():
            raise RuntimeError("server did not start")
        time.sleep(0.02)

    yield app, f"http://127.0.0.1:{port}/sse"

    server.should_exit = True
    thread.join(timeout=10)


def log(session):
    return [(message.sender, message.content) for message in session.messages]


@pytest.mark.asyncio
async def test_send_round_trip_through_server(live_server):
    """Test welcome, optimistic echo and broadcast echo over real HTTP."""
    app, endpoint = live_server
    channel = app.state.channel
    controller = ConnectionController()
    session = MessageSession(controller, ClientConfig(endpoint=endpoint))
    try:
        await controller.connect(endpoint)
        await wait_until(lambda: len(session.messages) == 1)
        assert controller.status is ConnectionStatus.CONNECTED
        assert log(session) == [(Sender.REMOTE, DEFAULT_WELCOME_MESSAGE)]
        assert channel.connected_clients == 1

        # keep-alive pings arrive between frames and must not surface
        await asyncio.sleep(0.3)
        assert len(session.messages) == 1
        assert controller.is_connected

        await session.send("hi")
        await wait_until(lambda: len(session.messages) == 3)
        assert log(session)[1:] == [(Sender.USER, "hi"), (Sender.REMOTE, "Echo from server: hi")]
        assert not session.is_composing
    finally:
        await controller.disconnect()

    await wait_until(lambda: channel.connected_clients == 0)
    assert controller.status is ConnectionStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_broadcast_reaches_every_live_client(live_server):
    """Test that one client's message reaches all open streams."""
    app, endpoint = live_server
    received = []
    first = ConnectionController()
    second = ConnectionController(on_message=received.append)
    sender = MessageSession(first, ClientConfig(endpoint=endpoint))
    try:
        await first.connect(endpoint)
        await second.connect(endpoint)
        await wait_until(lambda: app.state.channel.connected_clients == 2)
        await wait_until(lambda: first.is_connected and second.is_connected)

        await sender.send("hello")

        await wait_until(lambda: "Echo from server: hello" in received)
        await wait_until(lambda: sender.messages[-1].content == "Echo from server: hello")
        assert received == [DEFAULT_WELCOME_MESSAGE, "Echo from server: hello"]
    finally:
        await first.disconnect()
        await second.disconnect()

    await wait_until(lambda: app.state.channel.connected_clients == 0)
