"""Celery tasks for background processing."""

import asyncio
import logging

from tokenoracle.config import settings
from tokenoracle.domain.enums import JobState, Network
from tokenoracle.domain.models.price import BackfillJob, BackfillOutcome
from tokenoracle.workers.celery_app import JOB_TIME_LIMIT, celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="fetch_historical_prices",
    time_limit=JOB_TIME_LIMIT,
)
def backfill_prices_task(self, token: str, network: str, start_date: int) -> dict:
    """Backfill daily prices for a token.

    Bridges to async code via asyncio.run() — each task invocation
    creates its own engine, session factory and HTTP client.
    """
    job = BackfillJob(token=token, network=Network(network), start_date=start_date, job_id=self.request.id)

    def report_progress(percent: int) -> None:
        self.update_state(state=JobState.PROGRESS.value, meta={"progress": percent})

    try:
        outcome = asyncio.run(_backfill_async(job, report_progress))
    except Exception:
        logger.exception("Backfill job %s for %s on %s failed", self.request.id, token, network)
        raise
    logger.info("Job %s completed", self.request.id)
    return outcome.model_dump()


async def _backfill_async(job: BackfillJob, report_progress) -> BackfillOutcome:
    from tokenoracle.db.repos.price_record_repo import PriceRecordRepo
    from tokenoracle.db.session import build_engine, build_session_factory
    from tokenoracle.infra.http.backoff import BackoffRegistry
    from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
    from tokenoracle.infra.price.coingecko import COINGECKO_HOST
    from tokenoracle.infra.price.service import build_price_provider
    from tokenoracle.workers.backfill import run_backfill

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)
    backoff = BackoffRegistry(settings.backoff_base_delay, timeout=settings.external_call_timeout)

    try:
        async with RateLimitedClient(
            rate_per_second=settings.provider_rate_per_second,
            host_rates={COINGECKO_HOST: settings.coingecko_rate_per_second},
        ) as http_client:
            provider = build_price_provider(
                http_client,
                coingecko_api_key=settings.coingecko_api_key,
                alchemy_api_key=settings.alchemy_api_key,
            )
            executor = backoff.for_context(job.token, job.network)

            async def fetch_price(timestamp: int) -> float | None:
                return await executor.execute(lambda: provider.get_price_at_date(job.token, job.network, timestamp))

            async def store_prices(points: list[tuple[int, float | None]]) -> int:
                async with session_factory() as session:
                    written = await PriceRecordRepo(session).upsert_many(job.token, job.network, points)
                    await session.commit()
                return written

            return await run_backfill(
                job,
                fetch_price,
                store_prices,
                report_progress,
                batch_size=settings.backfill_batch_size,
                batch_delay=settings.backfill_batch_delay,
            )
    finally:
        await engine.dispose()
