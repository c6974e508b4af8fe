"""Domain exceptions shared by the relay layers.

The plugin adapter only maps these to its calling convention; lower layers
never depend on the adapter.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import RelayCode


class BusinessException(Exception):
    """Base class for every error the relay raises on purpose."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        super().__init__(self.message)


class RelayError(BusinessException):
    pass


class InvalidFrameException(RelayError):
    def __init__(self, message: str = "invalid data", *, details: Optional[dict] = None):
        super().__init__(
            code=RelayCode.INVALID_FRAME,
            message=message,
            error_type="InvalidFrame",
            details=details,
        )


class InvalidAsciiException(RelayError):
    def __init__(self, position: int, char_code: int):
        super().__init__(
            code=RelayCode.INVALID_ASCII,
            message="Metadata contains invalid ASCII.",
            error_type="InvalidAscii",
            details={"position": position, "char_code": char_code},
        )


class RemoteCallFailedException(RelayError):
    """Non-OK terminal status of the remote call; the remote message is kept verbatim."""

    PREFIX = "Failed fetching a badge from the badge server, message: "

    def __init__(self, status_message: str, *, grpc_code: Optional[str] = None):
        self.status_message = status_message
        super().__init__(
            code=RelayCode.REMOTE_CALL_FAILED,
            message=self.PREFIX + status_message,
            error_type="RemoteCallFailed",
            details={"grpc_code": grpc_code} if grpc_code else None,
        )


class MessageTooLargeException(RelayError):
    """A received frame declares a payload above the configured receive limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code=RelayCode.MESSAGE_TOO_LARGE,
            message=f"Received message larger than max ({size} vs. {limit})",
            error_type="MessageTooLarge",
            details={"size": size, "limit": limit},
        )


class TimeoutExceededException(RelayError):
    def __init__(self, timeout_ms: int):
        super().__init__(
            code=RelayCode.TIMEOUT_EXCEEDED,
            message="Timeout exceeded",
            error_type="TimeoutExceeded",
            details={"timeout_ms": timeout_ms},
        )


__all__ = [
    "BusinessException",
    "RelayError",
    "InvalidFrameException",
    "InvalidAsciiException",
    "MessageTooLargeException",
    "RemoteCallFailedException",
    "TimeoutExceededException",
]
