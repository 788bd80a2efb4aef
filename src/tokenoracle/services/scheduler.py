"""BackfillScheduler — resolves a token's creation date and enqueues its historical backfill."""

import logging
from typing import Callable

from tokenoracle.domain.enums import JobState, Network
from tokenoracle.domain.models.price import BackfillJob
from tokenoracle.infra.http.backoff import BackoffRegistry
from tokenoracle.infra.price.base import TokenPriceProvider
from tokenoracle.services.price_resolver import validate_request

logger = logging.getLogger(__name__)

Enqueue = Callable[[BackfillJob], str]


def celery_enqueue(job: BackfillJob) -> str:
    from tokenoracle.workers.tasks import backfill_prices_task

    result = backfill_prices_task.delay(job.token, job.network.value, job.start_date)
    return result.id


class BackfillScheduler:
    def __init__(self, provider: TokenPriceProvider, backoff: BackoffRegistry, enqueue: Enqueue = celery_enqueue) -> None:
        self._provider = provider
        self._backoff = backoff
        self._enqueue = enqueue

    async def schedule(self, token: str, network: Network | str) -> BackfillJob:
        """Enqueue a backfill starting at the token's first transfer.

        Raises CreationDateNotFoundError (or another ExternalServiceError) when
        the start date cannot be determined; nothing is enqueued in that case.
        """
        token, network = validate_request(token, network)
        executor = self._backoff.for_context(token, network)
        start_date = await executor.execute(lambda: self._provider.get_earliest_transfer_timestamp(token, network))

        job = BackfillJob(token=token, network=network, start_date=start_date)
        job_id = self._enqueue(job)
        logger.info("Scheduled backfill %s for %s on %s from %d", job_id, token, network.value, start_date)
        return job.model_copy(update={"job_id": job_id})


def job_progress(job_id: str) -> tuple[JobState, int]:
    """Current state and percent complete of a backfill job, read from the Celery result backend."""
    from celery.result import AsyncResult

    from tokenoracle.workers.celery_app import celery_app

    result = AsyncResult(job_id, app=celery_app)
    state = JobState(result.state)
    if state == JobState.SUCCESS:
        return state, 100
    info = result.info if isinstance(result.info, dict) else {}
    return state, int(info.get("progress", 0))
