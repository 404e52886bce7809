from __future__ import annotations

import unittest
from unittest.mock import MagicMock

import pytest

from cubetriggers.config import Settings
from cubetriggers.errors import InvalidStatusTransitionError
from cubetriggers.job_payloads import (
    AGGREGATE_COMPUTATION_QUEUE,
    IMPORT_PROCESSING_QUEUE,
    AggregateJobPayload,
    ImportJobPayload,
)
from cubetriggers.job_queue import JobQueue, run_aggregate_job, run_import_job

IMPORT_PAYLOAD = ImportJobPayload(import_run_id="run-1", source_id="src-1", algorithms_text="R U")
AGGREGATE_PAYLOAD = AggregateJobPayload(import_run_id="run-1")


def _settings() -> Settings:
    settings = Settings()
    settings.jobs.import_max_attempts = 3
    settings.jobs.aggregate_max_attempts = 2
    settings.jobs.retry_backoff_s = 0.0
    settings.jobs.aggregate_delay_s = 0.0
    settings.jobs.import_workers = 1
    settings.jobs.aggregate_workers = 1
    return settings


def test_import_job_retries_transient_errors() -> None:
    orchestrator = MagicMock()
    orchestrator.process.side_effect = [RuntimeError("reset"), RuntimeError("reset"), "done"]

    assert run_import_job(orchestrator, IMPORT_PAYLOAD, _settings()) == "done"

    flags = [call.kwargs["final_attempt"] for call in orchestrator.process.call_args_list]
    assert flags == [False, False, True]


def test_import_job_reraises_after_last_attempt() -> None:
    orchestrator = MagicMock()
    orchestrator.process.side_effect = RuntimeError("store unavailable")

    with pytest.raises(RuntimeError, match="store unavailable"):
        run_import_job(orchestrator, IMPORT_PAYLOAD, _settings())

    assert orchestrator.process.call_count == 3


def test_permanent_errors_are_not_retried() -> None:
    orchestrator = MagicMock()
    orchestrator.process.side_effect = InvalidStatusTransitionError(
        "run-1", "COMPLETED", "PROCESSING"
    )

    with pytest.raises(InvalidStatusTransitionError):
        run_import_job(orchestrator, IMPORT_PAYLOAD.model_dump(by_alias=True), _settings())

    assert orchestrator.process.call_count == 1


def test_aggregate_job_uses_its_own_attempt_limit() -> None:
    engine = MagicMock()
    engine.compute.side_effect = RuntimeError("locked")

    with pytest.raises(RuntimeError):
        run_aggregate_job(engine, AGGREGATE_PAYLOAD, _settings())

    assert engine.compute.call_count == 2


def test_aggregate_job_succeeds_on_retry() -> None:
    engine = MagicMock()
    engine.compute.side_effect = [RuntimeError("locked"), "rolled up"]

    assert run_aggregate_job(engine, {"importRunId": "run-1"}, _settings()) == "rolled up"
    engine.compute.assert_called_with(AGGREGATE_PAYLOAD)


class JobQueueTests(unittest.TestCase):
    def setUp(self) -> None:
        self.orchestrator = MagicMock()
        self.engine = MagicMock()
        self.jobs = JobQueue(self.orchestrator, self.engine, _settings())

    def tearDown(self) -> None:
        self.jobs.stop()

    def test_workers_run_queued_jobs(self) -> None:
        with self.jobs:
            self.jobs.enqueue_import(IMPORT_PAYLOAD)
            self.jobs.enqueue_aggregate(AGGREGATE_PAYLOAD)
            self.jobs.join()

        self.orchestrator.process.assert_called_once_with(IMPORT_PAYLOAD, final_attempt=False)
        self.engine.compute.assert_called_once_with(AGGREGATE_PAYLOAD)
        self.assertFalse(self.jobs.running)

    def test_delayed_aggregate_runs_after_release(self) -> None:
        self.jobs.start()
        self.jobs.enqueue_aggregate(AGGREGATE_PAYLOAD, delay_s=0.05)
        self.engine.compute.assert_not_called()

        self.jobs.join()

        self.engine.compute.assert_called_once_with(AGGREGATE_PAYLOAD)

    def test_failed_jobs_are_recorded(self) -> None:
        self.orchestrator.process.side_effect = InvalidStatusTransitionError(
            "run-1", "FAILED", "PROCESSING"
        )
        self.jobs.start()
        self.jobs.enqueue_import(IMPORT_PAYLOAD)
        self.jobs.join()

        self.assertEqual(len(self.jobs.failed_jobs), 1)
        failed = self.jobs.failed_jobs[0]
        self.assertEqual(failed.queue_name, IMPORT_PROCESSING_QUEUE)
        self.assertEqual(failed.payload, IMPORT_PAYLOAD)
        self.assertIn("cannot transition", failed.error)

    def test_stop_cancels_pending_delayed_jobs(self) -> None:
        self.jobs.start()
        self.jobs.enqueue_aggregate(AGGREGATE_PAYLOAD, delay_s=30)

        self.jobs.stop()

        self.engine.compute.assert_not_called()
        self.assertEqual(self.jobs.failed_jobs, [])

    def test_queue_names(self) -> None:
        self.assertEqual(IMPORT_PROCESSING_QUEUE, "import-processing")
        self.assertEqual(AGGREGATE_COMPUTATION_QUEUE, "aggregate-computation")


if __name__ == "__main__":
    unittest.main()
