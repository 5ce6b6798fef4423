"""One-shot delivery of outgoing messages to the send endpoint."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from relaychat.core.exceptions import DeliveryError

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=10)


async def deliver(send_endpoint: str, text: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Post a message to the send endpoint.

    Args:
        send_endpoint: Address derived from the stream endpoint
        text: Message to broadcast
        user_id: Optional sender id included as ``userId``

    Returns:
        The server's acknowledgment

    Raises:
        DeliveryError: If the request fails or is not acknowledged
    """
    payload: Dict[str, Any] = {"message": text}
    if user_id is not None:
        payload["userId"] = user_id

    try:
        async with aiohttp.ClientSession(timeout=DEFAULT_TIMEOUT) as session:
            async with session.post(send_endpoint, json=payload) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise DeliveryError(f"Failed to send message: {resp.status}")
                try:
                    return await resp.json(content_type=None)
                except ValueError:
                    return {}
    except aiohttp.ClientError as e:
        raise DeliveryError(f"Failed to send message: {str(e)}") from e
    except asyncio.TimeoutError as e:
        raise DeliveryError("Failed to send message: request timed out") from e
