"""
gRPC-Web 客户端传输

Runs one gRPC-Web call over HTTP/1.1 with httpx:

- POST ``{host}/{service}/{method}`` with a single length-prefixed message
- HTTP response headers are the leading metadata
- the body is a run of frames: 0x00 messages, then one 0x80 trailer frame
- ``grpc-status`` in the HTTP headers means a trailers-only response
- a frame above ``max_message_size`` ends the call with RESOURCE_EXHAUSTED

Every failure ends the event stream with an ``EndEvent``; nothing is raised
to the consumer and nothing is retried.
"""
from __future__ import annotations

from typing import AsyncIterator, Dict, Optional

import grpc
import httpx

from application.ports.grpc_web import CallEvent, EndEvent, HeadersEvent, MessageEvent
from core.logging_config import get_logger
from domain.common.exceptions import InvalidFrameException, MessageTooLargeException
from domain.relay.frame import MAX_MESSAGE_SIZE, FrameParser, encode_frame
from domain.relay.metadata import Metadata, parse_headers
from infrastructure.external.grpc_web.status import http_status_to_code, status_from_metadata


logger = get_logger(__name__)

CONTENT_TYPE = "application/grpc-web+proto"
NO_STATUS = "Response closed without grpc-status"


class GrpcWebTransport:
    """
    gRPC-Web transport over a shared ``httpx.AsyncClient``

    One instance serves every call of the process; the client is created on
    first use and released by ``aclose()``.
    """

    def __init__(
        self,
        host: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        verify_ssl: bool = True,
        user_agent: str = "badge-relay/1.0",
        headers: Optional[Dict[str, str]] = None,
        debug: bool = False,
        max_message_size: int = MAX_MESSAGE_SIZE,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            host: scheme://host[:port] of the gRPC-Web endpoint
            connect_timeout: TCP connect timeout (seconds)
            read_timeout: timeout between body chunks (seconds)
            verify_ssl: verify TLS certificates
            user_agent: sent as ``x-user-agent``
            headers: extra request headers sent with every call
            debug: log every frame received
            max_message_size: largest response message accepted; a bigger frame
                ends the call with RESOURCE_EXHAUSTED
            http_transport: custom httpx transport (tests use ``httpx.MockTransport``)
        """
        self.host = host.rstrip("/")
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self.verify_ssl = verify_ssl
        self.debug = debug
        self.max_message_size = max_message_size
        self._http_transport = http_transport

        self.default_headers = {
            "content-type": CONTENT_TYPE,
            "accept": CONTENT_TYPE,
            "x-grpc-web": "1",
            "x-user-agent": user_agent,
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    @property
    async def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify_ssl,
                transport=self._http_transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _build_url(self, method_path: str) -> str:
        return f"{self.host}/{method_path.lstrip('/')}"

    def _request_headers(self, metadata: Optional[Metadata]) -> list[tuple[str, str]]:
        pairs = list(self.default_headers.items())
        if metadata:
            for name, values in metadata.items():
                pairs.extend((name, value) for value in values)
        return pairs

    async def invoke(
        self,
        method_path: str,
        request: bytes,
        metadata: Optional[Metadata] = None,
    ) -> AsyncIterator[CallEvent]:
        url = self._build_url(method_path)
        client = await self.client
        logger.info("grpc_web_call", url=url, request_bytes=len(request))
        try:
            async with client.stream(
                "POST",
                url,
                content=encode_frame(request),
                headers=self._request_headers(metadata),
            ) as response:
                headers = Metadata.from_pairs(response.headers.multi_items())
                yield HeadersEvent(headers)

                status = status_from_metadata(headers)
                if status is not None:
                    yield EndEvent(status[0], status[1], trailers=headers)
                    return

                if response.status_code != 200:
                    code = http_status_to_code(response.status_code)
                    logger.warning("grpc_web_http_error", url=url, status_code=response.status_code, code=code.name)
                    yield EndEvent(code, f"Unexpected HTTP status {response.status_code}")
                    return

                parser = FrameParser(self.max_message_size)
                async for chunk in response.aiter_bytes():
                    try:
                        frames = parser.feed(chunk)
                    except MessageTooLargeException as exc:
                        logger.warning("grpc_web_message_too_large", url=url, **exc.details)
                        yield EndEvent(grpc.StatusCode.RESOURCE_EXHAUSTED, exc.message)
                        return
                    for frame in frames:
                        if self.debug:
                            logger.debug("grpc_web_frame", type=frame.type, size=len(frame.payload))
                        if not frame.is_trailer:
                            yield MessageEvent(frame.payload)
                            continue
                        trailers = parse_headers(frame.payload.decode("latin-1"))
                        yield HeadersEvent(trailers)
                        status = status_from_metadata(trailers)
                        if status is None:
                            yield EndEvent(grpc.StatusCode.INTERNAL, NO_STATUS, trailers=trailers)
                        else:
                            yield EndEvent(status[0], status[1], trailers=trailers)
                        return

                try:
                    parser.close()
                except InvalidFrameException as exc:
                    yield EndEvent(grpc.StatusCode.INTERNAL, exc.message)
                    return
                yield EndEvent(grpc.StatusCode.INTERNAL, NO_STATUS)
        except httpx.TimeoutException as exc:
            logger.warning("grpc_web_timeout", url=url, error=str(exc))
            yield EndEvent(grpc.StatusCode.DEADLINE_EXCEEDED, f"Request timeout: {exc}")
        except httpx.HTTPError as exc:
            logger.warning("grpc_web_network_error", url=url, error=str(exc), error_type=type(exc).__name__)
            yield EndEvent(grpc.StatusCode.UNAVAILABLE, f"Network error: {exc}")


__all__ = ["GrpcWebTransport", "CONTENT_TYPE"]
