"""Tests for the Celery backfill task wrapper."""

from unittest.mock import patch

import pytest

from tokenoracle.domain.enums import Network
from tokenoracle.domain.models.price import BackfillOutcome
from tokenoracle.workers.celery_app import JOB_TIME_LIMIT, celery_app
from tokenoracle.workers.tasks import backfill_prices_task


class TestBackfillPricesTask:
    def test_runs_job_and_returns_outcome(self):
        outcome = BackfillOutcome(total=3, stored=2, failed_dates=[200])

        async def fake_backfill(job, report_progress):
            assert job.token == "0xabc"
            assert job.network == Network.POLYGON
            assert job.start_date == 100
            report_progress(50)
            return outcome

        with (
            patch("tokenoracle.workers.tasks._backfill_async", side_effect=fake_backfill),
            patch.object(backfill_prices_task, "update_state") as update_state,
        ):
            result = backfill_prices_task.apply(args=["0xabc", "polygon", 100])

        assert result.successful()
        assert result.get() == {"total": 3, "stored": 2, "failed_dates": [200]}
        update_state.assert_called_once_with(state="PROGRESS", meta={"progress": 50})

    def test_fatal_error_fails_the_job(self):
        async def broken(job, report_progress):
            raise RuntimeError("database gone")

        with patch("tokenoracle.workers.tasks._backfill_async", side_effect=broken):
            result = backfill_prices_task.apply(args=["0xabc", "ethereum", 100])

        assert result.failed()
        with pytest.raises(RuntimeError, match="database gone"):
            result.get()


class TestCeleryConfig:
    def test_running_job_is_not_redelivered_before_time_limit(self):
        visibility = celery_app.conf.broker_transport_options["visibility_timeout"]
        assert backfill_prices_task.time_limit == JOB_TIME_LIMIT
        assert visibility > backfill_prices_task.time_limit

    def test_dead_worker_returns_job_to_queue(self):
        assert celery_app.conf.task_acks_late is True
        assert celery_app.conf.task_reject_on_worker_lost is True
