"""Pytest bootstrap configuration.

Keep settings deterministic before modules that read them are imported,
and provide a scripted transport that stands in for the gRPC-Web client.
"""
import os

os.environ.setdefault("DEBUG", "false")

import asyncio
from typing import Callable, List, Optional

import pytest
import structlog

from application.ports.grpc_web import CallEvent
from domain.relay.metadata import Metadata


class ScriptedTransport:
    """Yields a fixed event script for every call; optionally never ends.

    With ``gate`` the script only starts once the event is set, which lets a
    test hold a call past its deadline and release it afterwards.
    """

    def __init__(self, events: List[CallEvent], *, hang: bool = False, gate: Optional[asyncio.Event] = None) -> None:
        self.events = list(events)
        self.hang = hang
        self.gate = gate
        self.calls: List[tuple] = []
        self.log_context: dict = {}
        self.closed = False

    async def invoke(self, method_path: str, request: bytes, metadata: Optional[Metadata] = None):
        self.calls.append((method_path, request))
        self.log_context = structlog.contextvars.get_contextvars()
        try:
            if self.gate is not None:
                await self.gate.wait()
            for event in self.events:
                await asyncio.sleep(0)
                yield event
            if self.hang:
                await asyncio.Event().wait()
        finally:
            self.closed = True

    async def aclose(self) -> None:
        return None


async def _eventually(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.001)


@pytest.fixture
def eventually():
    """Await until ``predicate()`` holds, failing after ``timeout`` seconds."""
    return _eventually


@pytest.fixture
def scripted_transport():
    def _make(events: List[CallEvent], *, hang: bool = False, gate: Optional[asyncio.Event] = None) -> ScriptedTransport:
        return ScriptedTransport(events, hang=hang, gate=gate)

    return _make
