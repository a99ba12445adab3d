"""Newline framing for the compositor byte stream."""
from __future__ import annotations

from typing import List

FRAME_DELIMITER = b"\n"


class LineFramer:
    """Accumulate stream bytes and hand back complete newline-terminated frames.

    Bytes after the last delimiter stay buffered until a later ``feed`` call
    completes them. Frames are returned without their delimiter.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        return bytes(self._buffer)

    def feed(self, data: bytes) -> List[bytes]:
        if not data:
            return []
        self._buffer.extend(data)
        if FRAME_DELIMITER not in data:
            return []
        *frames, tail = bytes(self._buffer).split(FRAME_DELIMITER)
        self._buffer = bytearray(tail)
        return frames

    def reset(self) -> None:
        self._buffer.clear()
