"""Server-Sent Events framing for broadcast frames.

A frame travels as a single ``data:`` line holding a JSON object and is
terminated by a blank line::

    data: {"type": "message", "content": "hello"}

"""

import codecs
import json
from typing import List, Union

from relaychat.core.exceptions import FrameError
from relaychat.models.frame import BroadcastFrame

FRAME_TERMINATOR = "\n\n"


def encode(frame: BroadcastFrame) -> bytes:
    """
    Encode a frame into one self-terminated SSE unit.

    Args:
        frame: Frame to encode

    Returns:
        UTF-8 bytes ending with a blank line
    """
    # json.dumps escapes newlines, so the payload always fits on one data line
    payload = json.dumps(frame.to_dict())
    return f"data: {payload}{FRAME_TERMINATOR}".encode("utf-8")


def _data_lines(unit: str) -> List[str]:
    lines = []
    for line in unit.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if not line or line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if name != "data":
            continue
        if value.startswith(" "):
            value = value[1:]
        lines.append(value)
    return lines


def decode(unit: Union[bytes, str]) -> BroadcastFrame:
    """
    Decode one SSE unit into a frame.

    Args:
        unit: A complete unit as produced by ``encode``

    Returns:
        The decoded frame

    Raises:
        FrameError: If the unit is not a well-formed frame
    """
    if isinstance(unit, bytes):
        try:
            unit = unit.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameError(f"Frame is not valid UTF-8: {str(e)}") from e

    lines = _data_lines(unit)
    if not lines:
        raise FrameError("Frame has no data field")

    try:
        data = json.loads("\n".join(lines))
    except json.JSONDecodeError as e:
        raise FrameError(f"Invalid JSON payload: {str(e)}") from e

    if not isinstance(data, dict):
        raise FrameError(f"Frame payload must be an object, got {type(data).__name__}")
    for key in ("type", "content"):
        if not isinstance(data.get(key), str):
            raise FrameError(f"Frame field {key!r} is missing or not a string")

    return BroadcastFrame.from_dict(data)


class FrameDecoder:
    """Splits a chunked byte stream into complete SSE units."""

    def __init__(self):
        self._buffer = ""
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending_cr = False

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """
        Buffer a chunk and return every unit completed by it.

        Units carrying no ``data`` field (keep-alive comments) are skipped.

        Args:
            chunk: Next piece of the stream

        Returns:
            Complete units in stream order
        """
        if isinstance(chunk, bytes):
            chunk = self._text.decode(chunk)

        # A CR at the end of the previous chunk may be half of a CRLF pair
        if self._pending_cr:
            chunk = "\r" + chunk
            self._pending_cr = False
        if chunk.endswith("\r"):
            chunk = chunk[:-1]
            self._pending_cr = True

        self._buffer += chunk.replace("\r\n", "\n").replace("\r", "\n")

        units = []
        while FRAME_TERMINATOR in self._buffer:
            unit, self._buffer = self._buffer.split(FRAME_TERMINATOR, 1)
            if _data_lines(unit):
                units.append(unit)
        return units
