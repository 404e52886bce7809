"""Turn one import job into canonical algorithms, ngrams, and provenance rows."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass

from cubetriggers.algorithm_parser import ParsedAlgorithm, parse_algorithms_text
from cubetriggers.config import Settings
from cubetriggers.db.trigger_store import StoreSession, TriggerStore
from cubetriggers.domain.import_status import ImportStatus
from cubetriggers.errors import (
    ImportRunNotFoundError,
    InvalidStatusTransitionError,
    PermanentJobError,
)
from cubetriggers.event_channel import (
    ImportCompletedEvent,
    ImportEventChannel,
    ImportFailedEvent,
    ImportProgressEvent,
)
from cubetriggers.extract_ngrams import iter_ngram_windows
from cubetriggers.job_payloads import ImportJobPayload, coerce_payload
from cubetriggers.ports.repositories import TriggerRepository
from cubetriggers.utils import Now
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)

SETUP_PERCENTAGE = 5
PROCESSING_PERCENTAGE_SPAN = 90


def progress_percentage(processed: int, total: int) -> int:
    """Percentage for a progress event; the first 5% covers parsing and setup."""
    if total <= 0:
        return SETUP_PERCENTAGE
    return min(100, processed * PROCESSING_PERCENTAGE_SPAN // total + SETUP_PERCENTAGE)


@dataclass(slots=True)
class ImportProgress:
    total: int = 0
    processed: int = 0
    current_algorithm: str | None = None


@dataclass(frozen=True, slots=True)
class ImportRunResult:
    import_run_id: str
    total_algorithms: int
    processed_algorithms: int
    new_triggers_count: int
    duration_ms: int


class ImportOrchestrator:
    """
    Drive one ImportRun from PENDING through PROCESSING to COMPLETED or FAILED.

    Algorithms are handled strictly in input order. Shared canonical rows
    (algorithm, ngram, ngram occurrence) are written insert-if-absent through
    an autocommit session, so each one is visible to concurrent imports as
    soon as it exists and no batch transaction ever holds a lock on it.
    Algorithm occurrences and processed counts are committed together with
    each batch of algorithms.

    A failure is recorded as FAILED only when no retry will follow: on the
    final attempt, or when the error is permanent. Earlier attempts roll back
    and leave the run in PROCESSING for the next delivery; listeners still get
    an IMPORT_FAILED event flagged ``retrying``.
    """

    def __init__(
        self,
        store: TriggerStore,
        events: ImportEventChannel,
        settings: Settings,
    ) -> None:
        self._store = store
        self._events = events
        self._settings = settings

    def process(
        self,
        payload: ImportJobPayload | Mapping[str, object],
        *,
        final_attempt: bool = True,
    ) -> ImportRunResult:
        job = coerce_payload(ImportJobPayload, payload)
        logger.info("Processing import %s from source %s", job.import_run_id, job.source_id)
        started = time.monotonic()
        with self._store.session() as session:
            self._start_processing(session, job.import_run_id)
            progress = ImportProgress()
            try:
                new_triggers = self._run(session, job, progress)
            except Exception as exc:
                if final_attempt or isinstance(exc, PermanentJobError):
                    self._record_failure(session, job.import_run_id, exc, progress)
                else:
                    self._record_retry(session, job.import_run_id, exc, progress)
                raise
        result = ImportRunResult(
            import_run_id=job.import_run_id,
            total_algorithms=progress.total,
            processed_algorithms=progress.processed,
            new_triggers_count=new_triggers,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            "Completed import %s: processed %s algorithms, %s new triggers",
            job.import_run_id,
            result.processed_algorithms,
            result.new_triggers_count,
        )
        self._events.publish(
            ImportCompletedEvent(
                import_run_id=result.import_run_id,
                total_algorithms=result.total_algorithms,
                processed_algorithms=result.processed_algorithms,
                new_triggers_count=result.new_triggers_count,
                duration_ms=result.duration_ms,
            )
        )
        return result

    def _start_processing(self, session: StoreSession, import_run_id: str) -> None:
        repository = session.repository
        run = repository.get_import_run(import_run_id)
        if run is None:
            raise ImportRunNotFoundError(import_run_id)
        if not run.status.can_transition_to(ImportStatus.PROCESSING):
            raise InvalidStatusTransitionError(import_run_id, run.status, ImportStatus.PROCESSING)
        if run.status is ImportStatus.PROCESSING:
            removed = repository.delete_algorithm_occurrences(import_run_id)
            logger.warning(
                "Import %s redelivered mid-run; discarded %s partial occurrences",
                import_run_id,
                removed,
            )
        repository.update_import_run(
            import_run_id,
            status=ImportStatus.PROCESSING,
            processed_algorithms=0,
        )
        session.commit()
        self._publish_progress(import_run_id, ImportProgress(), "Starting import", 0)

    def _run(self, session: StoreSession, job: ImportJobPayload, progress: ImportProgress) -> int:
        with self._store.autocommit_session() as canonical:
            return self._run_batches(session, canonical, job, progress)

    def _run_batches(
        self,
        session: StoreSession,
        canonical: TriggerRepository,
        job: ImportJobPayload,
        progress: ImportProgress,
    ) -> int:
        repository = session.repository
        parsed_algorithms = parse_algorithms_text(job.algorithms_text)
        progress.total = len(parsed_algorithms)
        logger.info("Parsed %s algorithms", progress.total)
        repository.update_import_run(job.import_run_id, total_algorithms=progress.total)
        session.commit()
        self._publish_progress(
            job.import_run_id,
            progress,
            f"Parsed {progress.total} algorithms",
            SETUP_PERCENTAGE,
        )

        batch_size = self._settings.progress_batch_size
        new_triggers = 0
        for parsed in parsed_algorithms:
            new_triggers += self._process_algorithm(canonical, repository, job, parsed)
            progress.processed += 1
            progress.current_algorithm = parsed.original_moves
            if progress.processed % batch_size == 0:
                repository.update_import_run(
                    job.import_run_id, processed_algorithms=progress.processed
                )
                session.commit()
                self._publish_progress(
                    job.import_run_id,
                    progress,
                    f"Processing algorithms ({progress.processed}/{progress.total})",
                    progress_percentage(progress.processed, progress.total),
                )

        repository.update_import_run(
            job.import_run_id,
            status=ImportStatus.COMPLETED,
            processed_algorithms=progress.processed,
            ended_at=Now.as_datetime(),
        )
        session.commit()
        return new_triggers

    def _ngram_position(self, normalized_moves: str, moves: str, char_offset: int) -> int:
        if self._settings.ngram_positions == "all":
            return char_offset
        return normalized_moves.find(moves)

    def _process_algorithm(
        self,
        canonical: TriggerRepository,
        repository: TriggerRepository,
        job: ImportJobPayload,
        parsed: ParsedAlgorithm,
    ) -> int:
        algorithm = canonical.insert_algorithm_if_absent(
            parsed.normalized_moves, parsed.move_count
        )
        repository.insert_algorithm_occurrence(
            algorithm_id=algorithm.id,
            source_id=job.source_id,
            import_run_id=job.import_run_id,
            category=parsed.category,
            original_moves=parsed.original_moves,
            case_name=parsed.case_name,
        )
        new_ngrams = 0
        for window in iter_ngram_windows(
            parsed.normalized_moves,
            self._settings.ngram_min_length,
            self._settings.ngram_max_length,
        ):
            ngram = canonical.insert_ngram_if_absent(window.moves, window.length)
            if ngram.created:
                new_ngrams += 1
            canonical.insert_ngram_occurrence_if_absent(
                ngram.id,
                algorithm.id,
                self._ngram_position(parsed.normalized_moves, window.moves, window.char_offset),
            )
        return new_ngrams

    def _record_failure(
        self,
        session: StoreSession,
        import_run_id: str,
        exc: Exception,
        progress: ImportProgress,
    ) -> None:
        message = str(exc) or type(exc).__name__
        logger.error("Failed to process import %s: %s", import_run_id, message)
        try:
            session.rollback()
            session.repository.update_import_run(
                import_run_id,
                status=ImportStatus.FAILED,
                error_message=message,
                ended_at=Now.as_datetime(),
            )
            session.commit()
        except Exception:
            logger.exception("Could not record failure for import %s", import_run_id)
        self._publish_failure(import_run_id, message, progress, retrying=False)

    def _record_retry(
        self,
        session: StoreSession,
        import_run_id: str,
        exc: Exception,
        progress: ImportProgress,
    ) -> None:
        message = str(exc) or type(exc).__name__
        logger.warning("Import %s attempt failed, leaving it for retry: %s", import_run_id, message)
        try:
            session.rollback()
        except Exception:
            logger.warning("Rollback failed for import %s", import_run_id, exc_info=True)
        self._publish_failure(import_run_id, message, progress, retrying=True)

    def _publish_failure(
        self,
        import_run_id: str,
        message: str,
        progress: ImportProgress,
        *,
        retrying: bool,
    ) -> None:
        self._events.publish(
            ImportFailedEvent(
                import_run_id=import_run_id,
                message=message,
                processed_algorithms=progress.processed,
                total_algorithms=progress.total,
                retrying=retrying,
            )
        )

    def _publish_progress(
        self,
        import_run_id: str,
        progress: ImportProgress,
        status: str,
        percentage: int,
    ) -> None:
        self._events.publish(
            ImportProgressEvent(
                import_run_id=import_run_id,
                total_algorithms=progress.total,
                processed_algorithms=progress.processed,
                current_algorithm=progress.current_algorithm,
                status=status,
                percentage=percentage,
            )
        )
