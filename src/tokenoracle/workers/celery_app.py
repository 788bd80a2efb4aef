from celery import Celery

from tokenoracle.config import settings

# Hard ceiling on a single backfill run
JOB_TIME_LIMIT = settings.job_lock_seconds * settings.job_max_stalled

celery_app = Celery("tokenoracle", broker=settings.redis_url, backend=settings.redis_url, include=["tokenoracle.workers.tasks"])

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    # Ack after the handler returns; a worker that dies mid-backfill has the job
    # rejected back to the queue. The broker redelivers unacked messages only
    # after visibility_timeout, which must outlast the longest live run.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    broker_transport_options={"visibility_timeout": JOB_TIME_LIMIT + settings.job_lock_seconds},
    result_expires=24 * 60 * 60,
)
