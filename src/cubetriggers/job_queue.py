"""In-process job runners for import and aggregate work, with retry."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from itertools import count
from queue import Queue
from threading import Lock, Thread, Timer

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cubetriggers.aggregate_engine import AggregateComputationResult, AggregateEngine
from cubetriggers.config import Settings
from cubetriggers.errors import PermanentJobError
from cubetriggers.import_orchestrator import ImportOrchestrator, ImportRunResult
from cubetriggers.job_payloads import (
    AGGREGATE_COMPUTATION_QUEUE,
    IMPORT_PROCESSING_QUEUE,
    AggregateJobPayload,
    ImportJobPayload,
    coerce_payload,
)
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)

MAX_BACKOFF_S = 60.0

JobPayload = ImportJobPayload | AggregateJobPayload


def job_retrying(max_attempts: int, backoff_s: float) -> Retrying:
    """Retry transient failures with exponential backoff; permanent ones fail at once."""
    return Retrying(
        retry=retry_if_not_exception_type(PermanentJobError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_s, max=MAX_BACKOFF_S),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def run_import_job(
    orchestrator: ImportOrchestrator,
    payload: ImportJobPayload | Mapping[str, object],
    settings: Settings,
) -> ImportRunResult:
    """
    Run one import job under the import retry policy.

    Only the last permitted attempt is allowed to move the run to FAILED.

    Parameters
    ----------
    orchestrator : ImportOrchestrator
        Orchestrator bound to the store and event channel.
    payload : ImportJobPayload or mapping
        Job payload; a mapping is validated first.
    settings : Settings
        Supplies ``jobs.import_max_attempts`` and ``jobs.retry_backoff_s``.

    Returns
    -------
    ImportRunResult
        Counts and duration of the successful attempt.
    """
    job = coerce_payload(ImportJobPayload, payload)
    max_attempts = settings.jobs.import_max_attempts
    for attempt in job_retrying(max_attempts, settings.jobs.retry_backoff_s):
        with attempt:
            final_attempt = attempt.retry_state.attempt_number >= max_attempts
            result = orchestrator.process(job, final_attempt=final_attempt)
    return result


def run_aggregate_job(
    engine: AggregateEngine,
    payload: AggregateJobPayload | Mapping[str, object],
    settings: Settings,
) -> AggregateComputationResult:
    """Run one aggregate job; recomputation is idempotent so every retry is safe."""
    job = coerce_payload(AggregateJobPayload, payload)
    retrying = job_retrying(settings.jobs.aggregate_max_attempts, settings.jobs.retry_backoff_s)
    return retrying(engine.compute, job)


@dataclass(frozen=True)
class FailedJob:
    """Bookkeeping for a job whose retries ran out."""

    queue_name: str
    payload: JobPayload
    error: str


class JobQueue:
    """
    Worker pool with one queue for import jobs and one for aggregate jobs.

    Each job runs on a single worker thread, so algorithms within an import
    are processed sequentially. Aggregate jobs may be scheduled with a delay
    so they start after the import is expected to be done.

    Examples
    --------
    >>> jobs = JobQueue(orchestrator, engine, settings)  # doctest: +SKIP
    >>> with jobs:  # doctest: +SKIP
    ...     jobs.enqueue_import(payload)
    ...     jobs.join()
    """

    def __init__(
        self,
        orchestrator: ImportOrchestrator,
        engine: AggregateEngine,
        settings: Settings,
    ) -> None:
        self._orchestrator = orchestrator
        self._engine = engine
        self._settings = settings
        self._queues: dict[str, Queue[object]] = {
            IMPORT_PROCESSING_QUEUE: Queue(),
            AGGREGATE_COMPUTATION_QUEUE: Queue(),
        }
        self._sentinel = object()
        self._threads: list[tuple[str, Thread]] = []
        self._timers: dict[int, Timer] = {}
        self._timer_ids = count()
        self._lock = Lock()
        self.failed_jobs: list[FailedJob] = []

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        if self._threads:
            return
        worker_counts = {
            IMPORT_PROCESSING_QUEUE: self._settings.jobs.import_workers,
            AGGREGATE_COMPUTATION_QUEUE: self._settings.jobs.aggregate_workers,
        }
        for queue_name, worker_count in worker_counts.items():
            for index in range(max(worker_count, 1)):
                thread = Thread(
                    target=self._work,
                    args=(queue_name,),
                    name=f"{queue_name}-{index}",
                    daemon=True,
                )
                thread.start()
                self._threads.append((queue_name, thread))
        logger.info("Started %s job workers", len(self._threads))

    def enqueue_import(self, payload: ImportJobPayload | Mapping[str, object]) -> None:
        job = coerce_payload(ImportJobPayload, payload)
        self._queues[IMPORT_PROCESSING_QUEUE].put(job)
        logger.info("Queued import job for run %s", job.import_run_id)

    def enqueue_aggregate(
        self,
        payload: AggregateJobPayload | Mapping[str, object],
        delay_s: float | None = None,
    ) -> None:
        job = coerce_payload(AggregateJobPayload, payload)
        delay = self._settings.jobs.aggregate_delay_s if delay_s is None else delay_s
        if delay <= 0:
            self._queues[AGGREGATE_COMPUTATION_QUEUE].put(job)
            logger.info("Queued aggregate job for run %s", job.import_run_id)
            return
        with self._lock:
            timer_id = next(self._timer_ids)
            timer = Timer(delay, self._release_delayed, args=(timer_id, job))
            timer.daemon = True
            self._timers[timer_id] = timer
        timer.start()
        logger.info("Scheduled aggregate job for run %s in %.1fs", job.import_run_id, delay)

    def join(self) -> None:
        """Block until delayed jobs are released and every queued job has finished."""
        while True:
            with self._lock:
                timers = list(self._timers.values())
            if not timers:
                break
            for timer in timers:
                timer.join()
        for queue in self._queues.values():
            queue.join()

    def stop(self) -> None:
        """Cancel pending delayed jobs and stop the workers after queued work."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        for queue_name, _thread in self._threads:
            self._queues[queue_name].put(self._sentinel)
        for _queue_name, thread in self._threads:
            thread.join()
        self._threads.clear()
        logger.info("Stopped job workers")

    def __enter__(self) -> JobQueue:
        self.start()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop()

    def _release_delayed(self, timer_id: int, job: AggregateJobPayload) -> None:
        self._queues[AGGREGATE_COMPUTATION_QUEUE].put(job)
        with self._lock:
            self._timers.pop(timer_id, None)
        logger.info("Released aggregate job for run %s", job.import_run_id)

    def _run(self, queue_name: str, job: JobPayload) -> None:
        if queue_name == IMPORT_PROCESSING_QUEUE:
            run_import_job(self._orchestrator, job, self._settings)
        else:
            run_aggregate_job(self._engine, job, self._settings)

    def _work(self, queue_name: str) -> None:
        queue = self._queues[queue_name]
        while True:
            job = queue.get()
            try:
                if job is self._sentinel:
                    return
                self._run(queue_name, job)
            except Exception as exc:
                logger.exception("Job on %s failed after retries", queue_name)
                with self._lock:
                    self.failed_jobs.append(
                        FailedJob(queue_name=queue_name, payload=job, error=str(exc))
                    )
            finally:
                queue.task_done()
