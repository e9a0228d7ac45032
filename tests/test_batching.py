import asyncio

import pytest

from utils.batching import run_bounded


@pytest.mark.asyncio
async def test_default_runs_sequentially_in_order():
    active = 0
    peak = 0

    async def worker(item):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0)
        active -= 1
        return item * 2

    assert await run_bounded([1, 2, 3], worker) == [2, 4, 6]
    assert peak == 1


@pytest.mark.asyncio
async def test_concurrency_is_bounded_and_order_kept():
    active = 0
    peak = 0

    async def worker(item):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01 * (5 - item))
        active -= 1
        return item

    assert await run_bounded(list(range(5)), worker, concurrency=2) == [0, 1, 2, 3, 4]
    assert peak == 2


@pytest.mark.asyncio
async def test_invalid_concurrency():
    async def worker(item):
        return item

    with pytest.raises(ValueError):
        await run_bounded([1], worker, concurrency=0)


@pytest.mark.asyncio
async def test_failure_cancels_running_siblings():
    cancelled = []

    async def worker(item):
        if item == 0:
            await asyncio.sleep(0)
            raise RuntimeError("boom")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(item)
            raise
        return item

    with pytest.raises(RuntimeError):
        await run_bounded([0, 1, 2], worker, concurrency=3)

    assert sorted(cancelled) == [1, 2]
