"""Relay domain: frame codec, header metadata and exchange outcome."""
from .frame import (
    HEADER_SIZE,
    MAX_MESSAGE_SIZE,
    Frame,
    FrameParser,
    FrameType,
    decode_frame,
    encode_frame,
)
from .metadata import (
    GRPC_MESSAGE,
    GRPC_STATUS,
    Metadata,
    encode_ascii,
    encode_header_frame,
    parse_headers,
    serialize_headers,
)
from .outcome import RelayOutcome

__all__ = [
    "HEADER_SIZE",
    "MAX_MESSAGE_SIZE",
    "Frame",
    "FrameParser",
    "FrameType",
    "decode_frame",
    "encode_frame",
    "GRPC_MESSAGE",
    "GRPC_STATUS",
    "Metadata",
    "encode_ascii",
    "encode_header_frame",
    "parse_headers",
    "serialize_headers",
    "RelayOutcome",
]
