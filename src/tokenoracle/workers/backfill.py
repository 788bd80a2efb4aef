"""Historical backfill: one price per UTC day from a token's first transfer until now.

The handler is a plain coroutine over injected callables so the Celery task,
tests and scripts can all drive it. Queue-level retry and stall detection stay
in the job runtime.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable

from tokenoracle.domain.models.price import BackfillJob, BackfillOutcome

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60

FetchPrice = Callable[[int], Awaitable[float | None]]
StorePrices = Callable[[list[tuple[int, float | None]]], Awaitable[int]]
ReportProgress = Callable[[int], None]


def daily_timestamps(start: int, end: int) -> list[int]:
    """start, start + 1 day, ... up to and including end."""
    return list(range(start, end + 1, DAY_SECONDS))


def progress_percent(done: int, total: int) -> int:
    # Half-up rounding, so 12.5 reports as 13
    return math.floor(done / total * 100 + 0.5)


async def run_backfill(
    job: BackfillJob,
    fetch_price: FetchPrice,
    store_prices: StorePrices,
    report_progress: ReportProgress,
    *,
    batch_size: int = 5,
    batch_delay: float = 1.5,
    now: int | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BackfillOutcome:
    """Fetch and persist daily prices for ``job`` in sequential, concurrently-fetched batches.

    A failed fetch only drops that day. Errors from ``store_prices`` or anything
    else unexpected propagate so the job runtime marks the job failed.
    """
    end = now if now is not None else int(time.time())
    dates = daily_timestamps(job.start_date, end)
    total = len(dates)
    logger.info(
        "Backfilling %d daily prices for %s on %s starting %d", total, job.token, job.network.value, job.start_date,
    )

    stored = 0
    failed: list[int] = []
    for i in range(0, total, batch_size):
        batch = dates[i:i + batch_size]
        results = await asyncio.gather(*(fetch_price(ts) for ts in batch), return_exceptions=True)

        fetched: list[tuple[int, float | None]] = []
        for ts, result in zip(batch, results):
            if isinstance(result, Exception):
                logger.error("Error fetching price for %s on %s at %d: %s", job.token, job.network.value, ts, result)
                failed.append(ts)
            elif isinstance(result, BaseException):
                raise result
            else:
                fetched.append((ts, result))

        if fetched:
            stored += await store_prices(fetched)

        report_progress(progress_percent(i, total))
        await sleep(batch_delay)

    logger.info(
        "Backfill for %s on %s finished: %d stored, %d failed of %d",
        job.token, job.network.value, stored, len(failed), total,
    )
    return BackfillOutcome(total=total, stored=stored, failed_dates=failed)
