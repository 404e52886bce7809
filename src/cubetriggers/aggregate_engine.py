"""Recompute ngram rollups for every ngram touched by an import."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from itertools import product

from cubetriggers.db.trigger_store import TriggerStore
from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.errors import ImportRunNotFoundError
from cubetriggers.event_channel import ImportEventChannel, TriggersUpdatedEvent
from cubetriggers.job_payloads import AggregateJobPayload, coerce_payload
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)

LOG_EVERY_NGRAMS = 100


@dataclass(frozen=True, slots=True)
class AggregateComputationResult:
    import_run_id: str
    ngram_count: int
    rows_written: int


def aggregate_dimensions(
    source_ids: Sequence[str],
) -> Iterator[tuple[AlgorithmCategory | None, str | None]]:
    """
    Yield every (category, source) key, ``None`` standing for all values.

    Examples
    --------
    >>> len(list(aggregate_dimensions(["a", "b"])))
    27
    """
    categories: list[AlgorithmCategory | None] = [None, *AlgorithmCategory]
    sources: list[str | None] = [None, *source_ids]
    return product(categories, sources)


class AggregateEngine:
    """Rebuild aggregate rows after an import; rerunning writes identical counts."""

    def __init__(
        self,
        store: TriggerStore,
        events: ImportEventChannel,
        log_every: int = LOG_EVERY_NGRAMS,
    ) -> None:
        self._store = store
        self._events = events
        self._log_every = log_every

    def compute(
        self, payload: AggregateJobPayload | Mapping[str, object]
    ) -> AggregateComputationResult:
        job = coerce_payload(AggregateJobPayload, payload)
        logger.info("Computing aggregates for import %s", job.import_run_id)
        rows_written = 0
        with self._store.session() as session:
            repository = session.repository
            if repository.get_import_run(job.import_run_id) is None:
                raise ImportRunNotFoundError(job.import_run_id)
            ngram_ids = repository.fetch_affected_ngram_ids(job.import_run_id)
            source_ids = repository.list_source_ids()
            logger.info(
                "Found %s ngrams to aggregate across %s sources",
                len(ngram_ids),
                len(source_ids),
            )
            for index, ngram_id in enumerate(ngram_ids, start=1):
                for category, source_id in aggregate_dimensions(source_ids):
                    counts = repository.compute_aggregate_counts(ngram_id, category, source_id)
                    repository.upsert_ngram_aggregate(ngram_id, category, source_id, counts)
                    rows_written += 1
                if index % self._log_every == 0:
                    session.commit()
                    logger.info("Processed %s/%s ngrams", index, len(ngram_ids))
            session.commit()

        logger.info(
            "Aggregates complete for import %s: %s ngrams, %s rows",
            job.import_run_id,
            len(ngram_ids),
            rows_written,
        )
        self._events.publish(
            TriggersUpdatedEvent(
                import_run_id=job.import_run_id,
                source_ids=source_ids,
                ngram_count=len(ngram_ids),
            )
        )
        return AggregateComputationResult(
            import_run_id=job.import_run_id,
            ngram_count=len(ngram_ids),
            rows_written=rows_written,
        )
