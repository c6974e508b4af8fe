from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from core.logging_config import get_logger
from domain.common.exceptions import TimeoutExceededException


logger = get_logger(__name__)

T = TypeVar("T")


def _discard_abandoned(task: "asyncio.Future") -> None:
    # Retrieve the late outcome so asyncio does not report it as never retrieved
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.info("relay_abandoned_failed", error=str(exc), error_type=type(exc).__name__)
    else:
        logger.info("relay_abandoned_completed")


async def race_with_deadline(
    work: Awaitable[T],
    timeout_ms: int,
    *,
    cancel_on_timeout: bool = True,
) -> T:
    """Await ``work`` for at most ``timeout_ms`` milliseconds.

    Returns the result of ``work`` or re-raises its exception unchanged. When
    the deadline fires first ``TimeoutExceededException`` is raised and the
    work is cancelled, or left running and discarded when
    ``cancel_on_timeout`` is False.
    """
    task = asyncio.ensure_future(work)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    if cancel_on_timeout:
        task.cancel()
    else:
        task.add_done_callback(_discard_abandoned)
    logger.warning("relay_timeout", timeout_ms=timeout_ms, cancelled=cancel_on_timeout)
    raise TimeoutExceededException(timeout_ms)
