"""
Bounded batch execution.

Bulk jobs (course population, course re-processing) call rate-limited
collaborators, so they run through run_bounded with a configurable
concurrency. The default of 1 keeps them strictly sequential.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int = 1,
) -> List[R]:
    """
    Run worker over items with at most `concurrency` in flight.

    Results are returned in input order. Workers are expected to handle
    their own per-item failures; an exception raised by a worker cancels
    the items still running and propagates.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    if concurrency == 1:
        results = []
        for item in items:
            results.append(await worker(item))
        return results

    semaphore = asyncio.Semaphore(concurrency)

    async def _run(item: T) -> R:
        async with semaphore:
            return await worker(item)

    logger.info(f"Running {len(items)} items with concurrency {concurrency}")
    tasks = [asyncio.ensure_future(_run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        # Stop the workers still in flight
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
