"""Main FastAPI application with the SSE stream and message endpoints."""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from relaychat import __version__
from relaychat.config import ServerConfig
from relaychat.core.channel import BroadcastChannel

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STREAM_PATH = "/sse"
MESSAGE_PATH = "/message"


class MessageRequest(BaseModel):
    """Body of a send request."""

    message: str
    userId: Optional[str] = None


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the application with its own broadcast channel.

    Args:
        config: Server settings, read from the environment when omitted
    """
    config = config if config is not None else ServerConfig.from_env()
    channel = BroadcastChannel(welcome_message=config.welcome_message)

    app = FastAPI(title="Relay Chat SSE API", version=__version__)
    app.state.channel = channel
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Root endpoint returning API information."""
        return {
            "message": "Relay Chat SSE API",
            "version": __version__,
            "endpoints": {
                "stream": STREAM_PATH,
                "message": MESSAGE_PATH
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "connected_clients": channel.connected_clients
        }

    @app.get(STREAM_PATH)
    async def sse_endpoint(request: Request):
        """Long-lived event stream receiving every broadcast message."""
        return EventSourceResponse(
            channel.stream(origin=request.headers.get("origin")),
            ping=config.ping_interval,
        )

    @app.post(MESSAGE_PATH)
    async def message_endpoint(body: MessageRequest):
        """Broadcast an echo of the posted message to every open stream."""
        logger.info(f"Received message: {body.message!r} (user: {body.userId})")
        delivered = await channel.publish_echo(body.message)
        logger.info(f"Broadcast to {delivered} client(s)")
        return {"status": "Message received"}

    return app


app = create_app()


def run(config: Optional[ServerConfig] = None) -> None:
    """Run the server with uvicorn."""
    config = config if config is not None else ServerConfig.from_env()
    logger.info(f"Relay chat SSE server starting on http://{config.host}:{config.port}")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level
    )


if __name__ == "__main__":
    run()
