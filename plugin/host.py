"""
Host plugin API port and an in-memory host.

The relay host owns method dispatch; a plugin only registers handlers
through ``PluginAPI``. ``InMemoryPluginHost`` is single-process and is used
by the CLI and the tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Protocol

from core.logging_config import get_logger


logger = get_logger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class MethodSpec:
    handler: Handler
    cacheable: bool = False


class PluginAPI(Protocol):
    def register_method(self, name: str, spec: MethodSpec) -> None: ...


class InMemoryPluginHost(PluginAPI):
    def __init__(self) -> None:
        self._methods: Dict[str, MethodSpec] = {}

    def register_method(self, name: str, spec: MethodSpec) -> None:
        if name in self._methods:
            raise ValueError(f"method already registered: {name}")
        self._methods[name] = spec
        logger.info("plugin_method_registered", method=name, cacheable=spec.cacheable)

    def method(self, name: str) -> MethodSpec:
        try:
            return self._methods[name]
        except KeyError:
            raise LookupError(f"unknown method: {name}") from None

    async def call(self, name: str, request: Dict[str, Any]) -> Any:
        return await self.method(name).handler(request)


__all__ = ["Handler", "MethodSpec", "PluginAPI", "InMemoryPluginHost"]
