"""Backfill daily prices for one token in-process, without Celery.

Usage:
    PYTHONPATH=src python scripts/run_backfill.py 0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48 ethereum
"""

import asyncio
import logging
import sys

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger("run_backfill")


async def main(token: str, network: str) -> None:
    from tokenoracle.config import settings
    from tokenoracle.infra.http.backoff import BackoffRegistry
    from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
    from tokenoracle.infra.price.service import build_price_provider
    from tokenoracle.services.scheduler import BackfillScheduler
    from tokenoracle.workers.tasks import _backfill_async

    backoff = BackoffRegistry(settings.backoff_base_delay, timeout=settings.external_call_timeout)
    async with RateLimitedClient(rate_per_second=settings.provider_rate_per_second) as http:
        provider = build_price_provider(
            http, coingecko_api_key=settings.coingecko_api_key, alchemy_api_key=settings.alchemy_api_key,
        )
        # Resolve the start date but run the job here instead of enqueueing it
        scheduler = BackfillScheduler(provider, backoff, enqueue=lambda job: "inline")
        job = await scheduler.schedule(token, network)

    outcome = await _backfill_async(job, lambda pct: logger.info("Progress: %d%%", pct))
    print(f"Stored {outcome.stored}/{outcome.total} daily prices, {outcome.failed} days failed")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2]))
