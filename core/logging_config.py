"""
Structlog 日志配置模块
"""
import logging
import json
import uuid
from contextlib import contextmanager
import structlog
from structlog.processors import TimeStamper, add_log_level, JSONRenderer
from structlog.dev import ConsoleRenderer
from structlog.contextvars import bound_contextvars, merge_contextvars
from structlog.stdlib import ProcessorFormatter
from typing import Any, Iterator, List, Optional

from core.config import settings


def get_renderer() -> Any:
    """Console in DEBUG, JSON otherwise.

    structlog passes ``default``/``sort_keys`` to the serializer, so it has to accept them.
    """
    if settings.DEBUG:
        return ConsoleRenderer(colors=True)

    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def configure_logging() -> None:
    """Configure structlog and route stdlib logging (httpx included) through the same chain."""
    timestamper = TimeStamper(fmt="iso")

    shared_pre_chain: List[Any] = [
        merge_contextvars,
        add_log_level,
        timestamper,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_pre_chain,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = get_renderer()
    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[
            ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL or (logging.DEBUG if settings.DEBUG else logging.INFO))
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.grpc_web.debug else logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)


@contextmanager
def relay_log_context(plugin: str, method: str, relay_id: Optional[str] = None) -> Iterator[str]:
    """Bind plugin, method and a per-call ``relay_id`` to every log line emitted inside the block.

    Tasks started inside the block copy the context, so the deadline race and the
    transport generator log with the same ids.
    """
    relay_id = relay_id or uuid.uuid4().hex
    with bound_contextvars(plugin=plugin, method=method, relay_id=relay_id):
        yield relay_id


configure_logging()
