"""
gRPC-Web call port and event DTOs (contracts-first).

The application layer consumes one call as a strictly ordered async
iterator of events:

    HeadersEvent*  MessageEvent*  (HeadersEvent)  EndEvent

The last ``HeadersEvent`` before ``EndEvent`` carries the trailers when the
server sent any. Concrete transports live in infrastructure.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol, TypeVar, Union

import grpc

from domain.relay.metadata import Metadata


@dataclass(frozen=True, slots=True)
class HeadersEvent:
    metadata: Metadata


@dataclass(frozen=True, slots=True)
class MessageEvent:
    data: bytes


@dataclass(frozen=True, slots=True)
class EndEvent:
    code: grpc.StatusCode
    message: Optional[str] = None
    trailers: Metadata = field(default_factory=Metadata)


CallEvent = Union[HeadersEvent, MessageEvent, EndEvent]


class GrpcWebTransportPort(Protocol):
    """Starts one call: sends ``request`` as the only message, then closes the send side."""

    def invoke(
        self,
        method_path: str,
        request: bytes,
        metadata: Optional[Metadata] = None,
    ) -> AsyncIterator[CallEvent]: ...

    async def aclose(self) -> None: ...  # pragma: no cover - optional


M = TypeVar("M")


class MessageCodec(Protocol[M]):
    """Native message capability the bridge is generic over."""

    def serialize(self, message: M) -> bytes: ...

    def deserialize(self, data: bytes) -> M: ...


__all__ = [
    "HeadersEvent",
    "MessageEvent",
    "EndEvent",
    "CallEvent",
    "GrpcWebTransportPort",
    "MessageCodec",
]
