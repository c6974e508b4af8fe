"""gRPC status helpers for the gRPC-Web transport."""
from __future__ import annotations

from typing import Dict, Optional, Tuple
from urllib.parse import unquote

import grpc

from domain.relay.metadata import GRPC_MESSAGE, GRPC_STATUS, Metadata


_CODES_BY_VALUE: Dict[int, grpc.StatusCode] = {code.value[0]: code for code in grpc.StatusCode}

_HTTP_TO_GRPC: Dict[int, grpc.StatusCode] = {
    400: grpc.StatusCode.INTERNAL,
    401: grpc.StatusCode.UNAUTHENTICATED,
    403: grpc.StatusCode.PERMISSION_DENIED,
    404: grpc.StatusCode.UNIMPLEMENTED,
    429: grpc.StatusCode.UNAVAILABLE,
    502: grpc.StatusCode.UNAVAILABLE,
    503: grpc.StatusCode.UNAVAILABLE,
    504: grpc.StatusCode.UNAVAILABLE,
}


def code_from_int(value: int) -> grpc.StatusCode:
    return _CODES_BY_VALUE.get(value, grpc.StatusCode.UNKNOWN)


def http_status_to_code(status_code: int) -> grpc.StatusCode:
    return _HTTP_TO_GRPC.get(status_code, grpc.StatusCode.UNKNOWN)


def status_from_metadata(md: Metadata) -> Optional[Tuple[grpc.StatusCode, Optional[str]]]:
    """``(code, message)`` from ``grpc-status``/``grpc-message``, or None when absent."""
    raw = md.first(GRPC_STATUS)
    if raw is None:
        return None
    try:
        code = code_from_int(int(raw.strip()))
    except ValueError:
        code = grpc.StatusCode.UNKNOWN
    message = md.first(GRPC_MESSAGE)
    return code, unquote(message) if message is not None else None


__all__ = ["code_from_int", "http_status_to_code", "status_from_metadata"]
