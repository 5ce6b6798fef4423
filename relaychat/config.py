"""Configuration for the relay chat server and client."""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from relaychat.core.channel import DEFAULT_WELCOME_MESSAGE

ENV_PREFIX = "RELAYCHAT_"
DEFAULT_ENDPOINT = "http://localhost:3001/sse"


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_number(environ: Mapping[str, str], name: str, cast, default):
    value = _env(environ, name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be a {cast.__name__}, got {value!r}") from e


@dataclass
class ServerConfig:
    """Settings for the SSE broadcast server."""

    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    """Origins allowed to use both endpoints. ``*`` allows any origin."""
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    ping_interval: float = 15.0
    """Seconds between keep-alive comments on idle streams."""
    log_level: str = "info"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """Build a config from ``RELAYCHAT_*`` environment variables."""
        environ = os.environ if environ is None else environ
        defaults = cls()
        origins = _env(environ, "CORS_ORIGINS")
        return cls(
            host=_env(environ, "HOST") or defaults.host,
            port=_env_number(environ, "PORT", int, defaults.port),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins,
            welcome_message=_env(environ, "WELCOME") or defaults.welcome_message,
            ping_interval=_env_number(environ, "PING_INTERVAL", float, defaults.ping_interval),
            log_level=(_env(environ, "LOG_LEVEL") or defaults.log_level).lower(),
        )


@dataclass
class ClientConfig:
    """Settings for a chat client session."""

    endpoint: str = DEFAULT_ENDPOINT
    """Stream endpoint. The send endpoint replaces ``/sse`` with ``/message``."""
    offline_reply_delay: float = 1.0
    user_id: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ClientConfig':
        """Build a config from ``RELAYCHAT_*`` environment variables."""
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            endpoint=_env(environ, "ENDPOINT") or defaults.endpoint,
            offline_reply_delay=_env_number(environ, "OFFLINE_DELAY", float, defaults.offline_reply_delay),
            user_id=_env(environ, "USER_ID"),
        )
