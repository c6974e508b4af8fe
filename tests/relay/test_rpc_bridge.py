import asyncio

import grpc
import pytest

from application.ports.grpc_web import EndEvent, HeadersEvent, MessageEvent
from application.services.rpc_bridge import BridgeState, CallState, RpcBridge
from domain.common.exceptions import (
    InvalidAsciiException,
    InvalidFrameException,
    RemoteCallFailedException,
    TimeoutExceededException,
)
from domain.relay.frame import FrameType, encode_frame
from domain.relay.metadata import Metadata, encode_header_frame
from grpc_app.messages import (
    GENERATE_BADGE_PATH,
    Badge,
    GenerateBadgeRequest,
    GenerateBadgeResponse,
    ProtobufCodec,
)


PROJECT_ID = "project-under-test"


def _response(epoch: int = 7) -> bytes:
    return GenerateBadgeResponse(
        badge=Badge(cu_allocation=1000, epoch=epoch, address="lava@user", lava_chain_id="lava"),
        badge_signer_address="lava@signer",
    ).SerializeToString()


def _request() -> bytes:
    return GenerateBadgeRequest(badge_address="lava@user", spec_id="ETH1").SerializeToString()


def _bridge(transport, timeout_ms: int = 1000, cancel_on_timeout: bool = True) -> RpcBridge:
    return RpcBridge(
        transport,
        GENERATE_BADGE_PATH,
        ProtobufCodec(GenerateBadgeRequest),
        ProtobufCodec(GenerateBadgeResponse),
        project_id=PROJECT_ID,
        timeout_ms=timeout_ms,
        cancel_on_timeout=cancel_on_timeout,
    )


def _ok(trailers: Metadata | None = None) -> EndEvent:
    return EndEvent(grpc.StatusCode.OK, None, trailers or Metadata({"grpc-status": ["0"]}))


@pytest.mark.asyncio
async def test_unary_returns_single_message_frame(scripted_transport):
    m = _response()
    transport = scripted_transport([HeadersEvent(Metadata({"content-type": ["application/grpc-web+proto"]})), MessageEvent(m), _ok()])

    frame = await _bridge(transport).unary(_request())

    assert frame == encode_frame(m, FrameType.MESSAGE)
    method, sent = transport.calls[0]
    assert method == "lavanet.lava.pairing.BadgeGenerator/GenerateBadge"
    request = GenerateBadgeRequest.FromString(sent)
    assert request.project_id == PROJECT_ID
    assert request.badge_address == "lava@user"
    assert request.spec_id == "ETH1"


@pytest.mark.asyncio
async def test_unary_stops_after_first_message(scripted_transport):
    first, second = _response(1), _response(2)
    transport = scripted_transport([MessageEvent(first), MessageEvent(second), _ok()])

    frame = await _bridge(transport).unary(_request())

    assert frame == encode_frame(first)
    assert transport.closed


@pytest.mark.asyncio
async def test_unary_without_message_fails(scripted_transport):
    transport = scripted_transport([HeadersEvent(Metadata({"grpc-status": ["0"]})), _ok()])

    with pytest.raises(RemoteCallFailedException, match="response closed without a message"):
        await _bridge(transport).unary(_request())


@pytest.mark.asyncio
async def test_unary_error_status_before_message_fails(scripted_transport):
    transport = scripted_transport(
        [HeadersEvent(Metadata({"x": ["1"]})), EndEvent(grpc.StatusCode.RESOURCE_EXHAUSTED, "rate limited")]
    )

    with pytest.raises(RemoteCallFailedException) as ei:
        await _bridge(transport).unary(_request())

    assert "rate limited" in ei.value.message
    assert ei.value.details == {"grpc_code": "RESOURCE_EXHAUSTED"}


@pytest.mark.asyncio
async def test_unary_hung_call_times_out_and_is_closed(scripted_transport, eventually):
    transport = scripted_transport([HeadersEvent(Metadata({"x": ["1"]}))], hang=True)

    with pytest.raises(TimeoutExceededException):
        await _bridge(transport, timeout_ms=50).unary(_request())

    await eventually(lambda: transport.closed)


@pytest.mark.asyncio
async def test_streaming_keeps_arrival_order(scripted_transport):
    m1 = _response()
    leading = Metadata({"x": ["1"]})
    trailing = Metadata({"y": ["2"], "grpc-status": ["0"]})
    transport = scripted_transport([HeadersEvent(leading), MessageEvent(m1), HeadersEvent(trailing), _ok(trailing)])

    frames = await _bridge(transport).stream(_request())

    assert frames == [
        encode_header_frame(leading),
        encode_frame(m1),
        encode_header_frame(trailing),
    ]
    assert [f[0] for f in frames] == [0x80, 0x00, 0x80]


@pytest.mark.asyncio
async def test_remote_error_status_carries_message(scripted_transport):
    transport = scripted_transport([EndEvent(grpc.StatusCode.RESOURCE_EXHAUSTED, "rate limited")])

    with pytest.raises(RemoteCallFailedException) as ei:
        await _bridge(transport).stream(_request())

    assert "rate limited" in ei.value.message
    assert ei.value.message.startswith("Failed fetching a badge from the badge server, message: ")
    assert ei.value.details == {"grpc_code": "RESOURCE_EXHAUSTED"}


@pytest.mark.asyncio
async def test_error_status_without_message_still_returns_frames(scripted_transport):
    trailing = Metadata({"grpc-status": ["14"]})
    transport = scripted_transport([HeadersEvent(trailing), EndEvent(grpc.StatusCode.UNAVAILABLE, None, trailing)])

    frames = await _bridge(transport).stream(_request())

    assert frames == [encode_header_frame(trailing)]


@pytest.mark.asyncio
async def test_stream_ending_without_status_fails(scripted_transport):
    transport = scripted_transport([MessageEvent(_response())])

    with pytest.raises(RemoteCallFailedException, match="without grpc-status"):
        await _bridge(transport).stream(_request())


@pytest.mark.asyncio
async def test_undecodable_request_never_reaches_transport(scripted_transport):
    transport = scripted_transport([_ok()])

    with pytest.raises(InvalidFrameException, match="invalid data"):
        await _bridge(transport).stream(b"\x0a\x05ab")

    assert transport.calls == []


@pytest.mark.asyncio
async def test_undecodable_response_is_a_remote_failure(scripted_transport):
    transport = scripted_transport([MessageEvent(b"\x0a\x05ab"), _ok()])

    with pytest.raises(RemoteCallFailedException, match="could not be decoded"):
        await _bridge(transport).stream(_request())


@pytest.mark.asyncio
async def test_non_ascii_header_fails_the_call(scripted_transport):
    transport = scripted_transport([HeadersEvent(Metadata({"x": ["naïve"]})), _ok()])

    with pytest.raises(InvalidAsciiException):
        await _bridge(transport).stream(_request())


@pytest.mark.asyncio
async def test_hung_call_times_out_and_is_closed(scripted_transport):
    transport = scripted_transport([HeadersEvent(Metadata({"x": ["1"]}))], hang=True)

    with pytest.raises(TimeoutExceededException):
        await _bridge(transport, timeout_ms=50).stream(_request())

    for _ in range(5):
        await asyncio.sleep(0)
    assert transport.closed


@pytest.mark.asyncio
async def test_abandoned_call_keeps_running_past_deadline(scripted_transport, eventually):
    gate = asyncio.Event()
    transport = scripted_transport([MessageEvent(_response()), _ok()], gate=gate)

    with pytest.raises(TimeoutExceededException):
        await _bridge(transport, timeout_ms=20, cancel_on_timeout=False).stream(_request())

    assert not transport.closed
    gate.set()
    await eventually(lambda: transport.closed)


def test_call_state_consolidates_every_leading_wave():
    call = CallState(method="svc/M")
    first = Metadata({"a": ["1"]})
    second = Metadata({"a": ["2"], "b": ["3"]})
    trailer = Metadata({"grpc-status": ["0"], "t": ["z"]})

    call.on_headers(first)
    call.on_headers(second)
    assert call.headers is None
    call.on_headers(trailer)

    assert call.leading == [first, second]
    assert call.headers == Metadata({"a": ["1", "2"], "b": ["3"]})
    assert call.trailers == trailer
    assert len(call.frames) == 3


def test_call_state_takes_trailers_from_end_event():
    call = CallState(method="svc/M", state=BridgeState.STREAMING_EVENTS)
    call.on_headers(Metadata({"a": ["1"]}))
    trailer = Metadata({"grpc-status": ["0"]})

    call.on_end(EndEvent(grpc.StatusCode.OK, None, trailer))

    assert call.state is BridgeState.TERMINATED
    assert call.trailers == trailer
    assert call.headers == Metadata({"a": ["1"]})
    assert len(call.frames) == 1
    assert call.succeeded
