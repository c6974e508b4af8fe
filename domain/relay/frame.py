"""
Length-prefixed frame codec.

Wire format (all integers big-endian, unsigned):

    byte 0       frame type (0x00 message, 0x80 header metadata)
    bytes 1-4    payload length L
    bytes 5..    payload (exactly L bytes)
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Union

from domain.common.exceptions import InvalidFrameException, MessageTooLargeException


HEADER_SIZE = 5
MAX_PAYLOAD_SIZE = 0xFFFFFFFF
# gRPC default receive limit
MAX_MESSAGE_SIZE = 4 * 1024 * 1024

_LENGTH = struct.Struct(">I")

BytesLike = Union[bytes, bytearray, memoryview]


class FrameType(IntEnum):
    MESSAGE = 0x00
    HEADERS = 0x80


@dataclass(frozen=True, slots=True)
class Frame:
    type: int
    payload: bytes

    @property
    def is_trailer(self) -> bool:
        return bool(self.type & FrameType.HEADERS)


def decode_frame(frame: BytesLike) -> bytes:
    """Return the payload of a single complete frame.

    Raises:
        InvalidFrameException: frame shorter than the header, or the declared
            length does not match the remaining bytes.
    """
    if len(frame) < HEADER_SIZE:
        raise InvalidFrameException(
            "Frame is too short to contain a valid message.",
            details={"size": len(frame)},
        )
    (length,) = _LENGTH.unpack_from(frame, 1)
    if len(frame) != length + HEADER_SIZE:
        raise InvalidFrameException(
            "Frame length doesn't match the expected message length.",
            details={"declared": length, "actual": len(frame) - HEADER_SIZE},
        )
    return bytes(frame[HEADER_SIZE:])


def encode_frame(payload: BytesLike, frame_type: int = FrameType.MESSAGE) -> bytes:
    """Wrap ``payload`` in a frame of ``frame_type``."""
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise InvalidFrameException(
            "Payload does not fit a 32-bit frame length.",
            details={"size": len(payload)},
        )
    if not 0 <= frame_type <= 0xFF:
        raise InvalidFrameException("Frame type must be a single byte.", details={"type": frame_type})
    frame = bytearray(HEADER_SIZE + len(payload))
    frame[0] = frame_type
    _LENGTH.pack_into(frame, 1, len(payload))
    frame[HEADER_SIZE:] = payload
    return bytes(frame)


class FrameParser:
    """Incremental parser for a body made of back-to-back frames.

    Chunks may split a frame anywhere; complete frames are returned in order.
    A frame declaring more than ``max_message_size`` payload bytes raises
    ``MessageTooLargeException`` as soon as its header is seen, without waiting
    for the payload.
    """

    def __init__(self, max_message_size: int = MAX_MESSAGE_SIZE) -> None:
        self.max_message_size = max_message_size
        self._buffer = bytearray()

    def feed(self, chunk: BytesLike) -> List[Frame]:
        self._buffer += chunk
        frames: List[Frame] = []
        while len(self._buffer) >= HEADER_SIZE:
            (length,) = _LENGTH.unpack_from(self._buffer, 1)
            if length > self.max_message_size:
                raise MessageTooLargeException(length, self.max_message_size)
            end = HEADER_SIZE + length
            if len(self._buffer) < end:
                break
            frames.append(Frame(type=self._buffer[0], payload=bytes(self._buffer[HEADER_SIZE:end])))
            del self._buffer[:end]
        return frames

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def close(self) -> None:
        if self._buffer:
            raise InvalidFrameException(
                "Stream ended inside a frame.",
                details={"pending": len(self._buffer)},
            )


__all__ = [
    "HEADER_SIZE",
    "MAX_PAYLOAD_SIZE",
    "MAX_MESSAGE_SIZE",
    "FrameType",
    "Frame",
    "FrameParser",
    "decode_frame",
    "encode_frame",
]
