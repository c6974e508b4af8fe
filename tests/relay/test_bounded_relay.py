import asyncio
import gc

import pytest

from application.services.bounded_relay import race_with_deadline
from domain.common.exceptions import TimeoutExceededException
from shared.codes import RelayCode


async def _value(v, delay=0.0):
    await asyncio.sleep(delay)
    return v


@pytest.mark.asyncio
async def test_returns_result_when_work_finishes_first():
    assert await race_with_deadline(_value("done", 0.01), 1000) == "done"


@pytest.mark.asyncio
async def test_work_failure_is_not_reported_as_timeout():
    async def boom():
        raise ValueError("remote broke")

    with pytest.raises(ValueError, match="remote broke"):
        await race_with_deadline(boom(), 1000)


@pytest.mark.asyncio
async def test_never_completing_work_times_out_after_deadline():
    loop = asyncio.get_running_loop()
    start = loop.time()
    with pytest.raises(TimeoutExceededException) as ei:
        await race_with_deadline(asyncio.Event().wait(), 50)
    elapsed = loop.time() - start

    assert 0.049 <= elapsed < 0.5
    assert ei.value.message == "Timeout exceeded"
    assert ei.value.code == RelayCode.TIMEOUT_EXCEEDED
    assert ei.value.details == {"timeout_ms": 50}


@pytest.mark.asyncio
async def test_timeout_cancels_work_by_default():
    cancelled = asyncio.Event()

    async def hang():
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(TimeoutExceededException):
        await race_with_deadline(hang(), 20)
    await asyncio.wait_for(cancelled.wait(), 1)


@pytest.mark.asyncio
async def test_timeout_can_abandon_work_instead():
    release = asyncio.Event()
    finished = asyncio.Event()

    async def slow():
        await release.wait()
        finished.set()
        return "late"

    with pytest.raises(TimeoutExceededException):
        await race_with_deadline(slow(), 20, cancel_on_timeout=False)

    release.set()
    await asyncio.wait_for(finished.wait(), 1)


@pytest.mark.asyncio
async def test_abandoned_work_failing_after_deadline_is_not_reported():
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    release = asyncio.Event()
    failing = asyncio.Event()

    async def slow_failure():
        await release.wait()
        failing.set()
        raise RuntimeError("late failure")

    try:
        with pytest.raises(TimeoutExceededException):
            await race_with_deadline(slow_failure(), 20, cancel_on_timeout=False)

        release.set()
        await asyncio.wait_for(failing.wait(), 1)
        for _ in range(5):
            await asyncio.sleep(0)
        # an unretrieved task exception is reported when the task is collected
        gc.collect()
    finally:
        loop.set_exception_handler(previous)

    assert reported == []


@pytest.mark.asyncio
async def test_outer_cancellation_reaches_work():
    cancelled = asyncio.Event()

    async def hang():
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    outer = asyncio.ensure_future(race_with_deadline(hang(), 10_000))
    await asyncio.sleep(0.01)
    outer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await outer
    await asyncio.wait_for(cancelled.wait(), 1)
