"""
``badge_request`` plugin: forwards raw frames between the host and the bridge.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from application.services.badge_relay_service import BadgeRelayService
from application.services.rpc_bridge import RpcBridge
from core.config import Settings, settings as default_settings
from core.logging_config import get_logger, relay_log_context
from domain.common.exceptions import InvalidFrameException, RelayError
from grpc_app.messages import GENERATE_BADGE_PATH, GenerateBadgeRequest, GenerateBadgeResponse, ProtobufCodec
from infrastructure.external.grpc_web import GrpcWebTransport
from plugin.host import MethodSpec, PluginAPI


logger = get_logger(__name__)

PLUGIN_NAME = "lavanet"
METHOD_NAME = "badge_request"

HandlerResult = Union[List[List[int]], List[int], RelayError]


def _byte_list(values: Any) -> bytes:
    try:
        return bytes(values)
    except (TypeError, ValueError) as exc:
        raise InvalidFrameException("invalid data") from exc


def normalize_data(data: Any) -> bytes:
    """Accept bytes-likes, a list of ints or an index -> int mapping (a JSON'd typed array)."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, dict):
        try:
            keys = sorted(data, key=int)
        except (TypeError, ValueError) as exc:
            raise InvalidFrameException("invalid data") from exc
        return _byte_list([data[k] for k in keys])
    if isinstance(data, (list, tuple)):
        return _byte_list(data)
    raise InvalidFrameException("invalid data", details={"data_type": type(data).__name__})


class BadgePlugin:
    name = PLUGIN_NAME

    def __init__(self, service: BadgeRelayService, transport: Optional[GrpcWebTransport] = None) -> None:
        self.service = service
        self.transport = transport

    def register(self, api: PluginAPI) -> None:
        api.register_method(METHOD_NAME, MethodSpec(handler=self.handle, cacheable=False))

    async def handle(self, request: Dict[str, Any]) -> HandlerResult:
        data = normalize_data(request.get("data") if isinstance(request, dict) else None)
        with relay_log_context(PLUGIN_NAME, METHOD_NAME):
            outcome = await self.service.relay(data)
        if not outcome.ok:
            return outcome.error
        if self.service.mode == "unary":
            return list(outcome.frames[0])
        return [list(frame) for frame in outcome.frames]

    async def aclose(self) -> None:
        if self.transport is not None:
            await self.transport.aclose()


def create_plugin(
    cfg: Optional[Settings] = None,
    transport: Optional[GrpcWebTransport] = None,
) -> BadgePlugin:
    cfg = cfg or default_settings
    relay = cfg.relay
    web = cfg.grpc_web
    if transport is None:
        transport = GrpcWebTransport(
            relay.endpoint,
            connect_timeout=web.connect_timeout,
            read_timeout=web.read_timeout,
            verify_ssl=web.verify_ssl,
            user_agent=web.user_agent,
            debug=web.debug,
            max_message_size=web.max_message_size,
        )
    bridge = RpcBridge(
        transport,
        f"{relay.service}/{relay.method}" if relay.service else GENERATE_BADGE_PATH,
        ProtobufCodec(GenerateBadgeRequest),
        ProtobufCodec(GenerateBadgeResponse),
        project_id=relay.project_id,
        timeout_ms=relay.timeout_ms,
        cancel_on_timeout=relay.cancel_on_timeout,
    )
    logger.info("plugin_created", plugin=PLUGIN_NAME, endpoint=relay.endpoint, mode=relay.mode)
    return BadgePlugin(BadgeRelayService(bridge, mode=relay.mode), transport=transport)


__all__ = ["PLUGIN_NAME", "METHOD_NAME", "BadgePlugin", "create_plugin", "normalize_data"]
