from __future__ import annotations

from typing import Literal

from application.services.rpc_bridge import RpcBridge
from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidAsciiException,
    InvalidFrameException,
    RemoteCallFailedException,
    TimeoutExceededException,
)
from domain.relay.frame import decode_frame
from domain.relay.outcome import RelayOutcome


logger = get_logger(__name__)

RelayMode = Literal["streaming", "unary"]


class BadgeRelayService:
    """One inbound frame in, one relay outcome out.

    ``InvalidFrameException`` is raised before any network activity. Remote
    failures and timeouts come back as a failed ``RelayOutcome``.
    """

    def __init__(self, bridge: RpcBridge, mode: RelayMode = "streaming") -> None:
        if mode not in ("streaming", "unary"):
            raise ValueError(f"unknown relay mode: {mode!r}")
        self._bridge = bridge
        self.mode = mode

    async def relay(self, data: bytes) -> RelayOutcome:
        try:
            payload = decode_frame(data)
        except InvalidFrameException as exc:
            logger.warning("relay_invalid_frame", reason=exc.message, details=exc.details)
            raise InvalidFrameException("invalid data", details=exc.details) from exc
        logger.info("relay_started", mode=self.mode, payload_bytes=len(payload))
        try:
            if self.mode == "unary":
                frames = [await self._bridge.unary(payload)]
            else:
                frames = await self._bridge.stream(payload)
        except (RemoteCallFailedException, TimeoutExceededException, InvalidAsciiException) as exc:
            logger.warning(
                "relay_failed",
                mode=self.mode,
                error_type=exc.error_type,
                code=int(exc.code),
                message=exc.message,
            )
            return RelayOutcome.failure(exc)
        logger.info("relay_done", mode=self.mode, frames=len(frames))
        return RelayOutcome.success(frames)
