"""
RPC bridge: runs one outbound gRPC-Web call and turns its events into frames.

Per invocation:

    IDLE -> SENDING -> AWAITING_FIRST_EVENT -> STREAMING_EVENTS -> TERMINATED

Header events become 0x80 frames, message events become 0x00 frames, both in
arrival order. A header set carrying ``grpc-status`` is the trailer; every
header set seen before it is merged into one consolidated leading record.
"""
from __future__ import annotations

import enum
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

import grpc

from application.ports.grpc_web import (
    CallEvent,
    EndEvent,
    GrpcWebTransportPort,
    HeadersEvent,
    MessageCodec,
    MessageEvent,
)
from application.services.bounded_relay import race_with_deadline
from core.logging_config import get_logger
from domain.common.exceptions import InvalidFrameException, RemoteCallFailedException
from domain.relay.frame import FrameType, encode_frame
from domain.relay.metadata import GRPC_STATUS, Metadata, encode_header_frame


logger = get_logger(__name__)

Req = TypeVar("Req")
Resp = TypeVar("Resp")

NO_MESSAGE = "response closed without a message"
NO_STATUS = "Response closed without grpc-status"
BAD_RESPONSE = "response message could not be decoded"


class BridgeState(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_FIRST_EVENT = "awaiting_first_event"
    STREAMING_EVENTS = "streaming_events"
    TERMINATED = "terminated"


@dataclass
class CallState:
    """Everything one invocation accumulates. Owned by a single call, never shared."""

    method: str
    state: BridgeState = BridgeState.IDLE
    frames: List[bytes] = field(default_factory=list)
    leading: List[Metadata] = field(default_factory=list)
    headers: Optional[Metadata] = None
    trailers: Optional[Metadata] = None
    code: Optional[grpc.StatusCode] = None
    status_message: Optional[str] = None
    messages: int = 0

    def transition(self, new_state: BridgeState) -> None:
        if new_state is self.state:
            return
        logger.debug("bridge_state", method=self.method, src=self.state.value, dst=new_state.value)
        self.state = new_state

    def on_event(self) -> None:
        if self.state is BridgeState.AWAITING_FIRST_EVENT:
            self.transition(BridgeState.STREAMING_EVENTS)

    def on_headers(self, metadata: Metadata, *, emit: bool = True) -> None:
        self.on_event()
        if emit:
            self.frames.append(encode_header_frame(metadata))
        if not metadata.has(GRPC_STATUS):
            self.leading.append(metadata)
            return
        self.trailers = metadata
        merged = Metadata()
        for md in self.leading:
            merged.merge(md)
        self.headers = merged

    def on_message(self, frame: bytes, *, emit: bool = True) -> None:
        self.on_event()
        self.messages += 1
        if emit:
            self.frames.append(frame)

    def on_end(self, event: EndEvent) -> None:
        self.transition(BridgeState.TERMINATED)
        self.code = event.code
        self.status_message = event.message
        if self.trailers is None and len(event.trailers):
            self.on_headers(event.trailers, emit=False)

    @property
    def succeeded(self) -> bool:
        return self.code == grpc.StatusCode.OK or self.status_message is None


class RpcBridge(Generic[Req, Resp]):
    """Bridges frame payloads to one remote method.

    The remote address lives in the transport; the project id is written into
    every request before it is sent.
    """

    def __init__(
        self,
        transport: GrpcWebTransportPort,
        method_path: str,
        request_codec: MessageCodec[Req],
        response_codec: MessageCodec[Resp],
        *,
        project_id: str,
        timeout_ms: int = 5000,
        cancel_on_timeout: bool = True,
        project_field: str = "project_id",
    ) -> None:
        self._transport = transport
        self._method_path = method_path
        self._request_codec = request_codec
        self._response_codec = response_codec
        self._project_id = project_id
        self._project_field = project_field
        self.timeout_ms = timeout_ms
        self.cancel_on_timeout = cancel_on_timeout

    def prepare_request(self, payload: bytes) -> bytes:
        """Decode the inbound payload, stamp the project id and re-encode it."""
        request = self._request_codec.deserialize(payload)
        setattr(request, self._project_field, self._project_id)
        return self._request_codec.serialize(request)

    def _message_frame(self, data: bytes) -> bytes:
        try:
            message = self._response_codec.deserialize(data)
        except InvalidFrameException as exc:
            raise RemoteCallFailedException(BAD_RESPONSE, grpc_code=grpc.StatusCode.INTERNAL.name) from exc
        return encode_frame(self._response_codec.serialize(message), FrameType.MESSAGE)

    def _start(self, call: CallState, request: bytes):
        events = self._transport.invoke(self._method_path, request)
        call.transition(BridgeState.AWAITING_FIRST_EVENT)
        return events

    def _begin(self, payload: bytes) -> tuple[CallState, bytes]:
        call = CallState(method=self._method_path)
        call.transition(BridgeState.SENDING)
        return call, self.prepare_request(payload)

    def _finish(self, call: CallState, event: EndEvent) -> None:
        call.on_end(event)
        if call.succeeded:
            return
        raise RemoteCallFailedException(event.message or "", grpc_code=event.code.name)

    async def _collect(self, call: CallState, request: bytes) -> List[bytes]:
        async with aclosing(self._start(call, request)) as events:
            event: CallEvent
            async for event in events:
                if isinstance(event, HeadersEvent):
                    call.on_headers(event.metadata)
                elif isinstance(event, MessageEvent):
                    call.on_message(self._message_frame(event.data))
                elif isinstance(event, EndEvent):
                    self._finish(call, event)
                    return call.frames
        self._finish(call, EndEvent(grpc.StatusCode.INTERNAL, NO_STATUS))
        return call.frames

    async def _first_message(self, call: CallState, request: bytes) -> bytes:
        async with aclosing(self._start(call, request)) as events:
            async for event in events:
                if isinstance(event, HeadersEvent):
                    call.on_headers(event.metadata, emit=False)
                elif isinstance(event, MessageEvent):
                    frame = self._message_frame(event.data)
                    call.on_message(frame, emit=False)
                    call.transition(BridgeState.TERMINATED)
                    return frame
                elif isinstance(event, EndEvent):
                    self._finish(call, event)
                    break
            else:
                self._finish(call, EndEvent(grpc.StatusCode.INTERNAL, NO_STATUS))
        raise RemoteCallFailedException(NO_MESSAGE, grpc_code=(call.code or grpc.StatusCode.INTERNAL).name)

    async def stream(self, payload: bytes) -> List[bytes]:
        """Full-streaming mode: every header and message frame once the call ends."""
        call, request = self._begin(payload)
        start = time.perf_counter()
        try:
            return await race_with_deadline(
                self._collect(call, request), self.timeout_ms, cancel_on_timeout=self.cancel_on_timeout
            )
        finally:
            logger.info(
                "bridge_call_done",
                method=self._method_path,
                mode="streaming",
                state=call.state.value,
                frames=len(call.frames),
                messages=call.messages,
                code=call.code.name if call.code else None,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            )

    async def unary(self, payload: bytes) -> bytes:
        """Single-response mode: the first message frame, later events are ignored."""
        call, request = self._begin(payload)
        start = time.perf_counter()
        try:
            return await race_with_deadline(
                self._first_message(call, request), self.timeout_ms, cancel_on_timeout=self.cancel_on_timeout
            )
        finally:
            logger.info(
                "bridge_call_done",
                method=self._method_path,
                mode="unary",
                state=call.state.value,
                messages=call.messages,
                code=call.code.name if call.code else None,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            )


__all__ = ["BridgeState", "CallState", "RpcBridge"]
