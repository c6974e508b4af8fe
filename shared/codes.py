"""
Shared relay codes used across layers (Domain/Application/Plugin).

This module provides a single source of truth to avoid drift between
multiple enum definitions scattered across the codebase.
"""
from enum import IntEnum


class RelayCode(IntEnum):
    """Relay status codes (single source of truth)."""

    # Inbound data errors (1xxxx)
    INVALID_FRAME = 10001
    INVALID_ASCII = 10002
    MESSAGE_TOO_LARGE = 10003

    # Remote call errors (2xxxx)
    REMOTE_CALL_FAILED = 20000

    # Deadline errors (3xxxx)
    TIMEOUT_EXCEEDED = 30000


__all__ = ["RelayCode"]
