"""Tests for the HTTP endpoints."""

import asyncio
import pytest
from fastapi.testclient import TestClient
from relaychat.config import ServerConfig
from relaychat.core import frame_codec
from relaychat.main import create_app


class RecordingSink:
    """Sink remembering everything written to it."""

    def __init__(self):
        self.frames = []

    async def send(self, data):
        self.frames.append(data)


@pytest.fixture
def app():
    """Application instance with default settings."""
    return create_app(ServerConfig())


@pytest.fixture
def client(app):
    """Test client for the application."""
    return TestClient(app)


def register(app, sink):
    return asyncio.run(app.state.channel.registry.register(sink))


def test_root(client):
    """Test the service information endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"] == {"stream": "/sse", "message": "/message"}


def test_health_reports_connected_clients(app, client):
    """Test the health check endpoint."""
    register(app, RecordingSink())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "connected_clients": 1}


def test_message_is_echoed_to_registered_streams(app, client):
    """Test that a posted message reaches every stream registered before it."""
    first = RecordingSink()
    second = RecordingSink()
    register(app, first)
    register(app, second)

    response = client.post("/message", json={"message": "hello", "userId": "u1"})

    assert response.status_code == 200
    assert response.json() == {"status": "Message received"}
    for sink in (first, second):
        assert len(sink.frames) == 1
        assert frame_codec.decode(sink.frames[0]).content == "Echo from server: hello"

    late = RecordingSink()
    register(app, late)
    assert late.frames == []


def test_message_without_listeners_is_acknowledged(client):
    """Test that sending with no open streams still succeeds."""
    response = client.post("/message", json={"message": "anyone?"})
    assert response.status_code == 200
    assert response.json()["status"] == "Message received"


def test_message_requires_message_field(client):
    """Test request validation."""
    response = client.post("/message", json={"text": "wrong field"})
    assert response.status_code == 422


@pytest.mark.parametrize("path,method", [("/sse", "GET"), ("/message", "POST")])
def test_cors_preflight_is_allowed(client, path, method):
    """Test that browsers on another origin pass the preflight check."""
    response = client.options(path, headers={
        "Origin": "http://localhost:5173",
        "Access-Control-Request-Method": method,
        "Access-Control-Request-Headers": "content-type",
    })

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert method in response.headers["access-control-allow-methods"]


def test_cors_header_on_simple_request(client):
    """Test the CORS header on a cross-origin POST."""
    response = client.post("/message", json={"message": "hi"}, headers={"Origin": "http://localhost:5173"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_origins_are_configurable():
    """Test restricting the allowed origins."""
    client = TestClient(create_app(ServerConfig(cors_origins=["http://allowed.example"])))

    response = client.options("/message", headers={
        "Origin": "http://other.example",
        "Access-Control-Request-Method": "POST",
    })

    assert response.status_code == 400
