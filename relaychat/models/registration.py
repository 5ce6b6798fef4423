"""Registration model for open streams."""

import uuid
from dataclasses import dataclass, field
from typing import Any


def new_registration_id() -> str:
    """Allocate an opaque, unique registration token."""
    return uuid.uuid4().hex


@dataclass
class ClientRegistration:
    """Binds a unique id to the writable sink of one open stream."""

    sink: Any
    id: str = field(default_factory=new_registration_id)

    def __repr__(self) -> str:
        return f"ClientRegistration(id={self.id!r})"
