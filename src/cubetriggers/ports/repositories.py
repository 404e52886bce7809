"""Repository port interfaces for trigger storage."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.domain.import_status import ImportStatus
from cubetriggers.models import (
    AggregateCounts,
    ImportRunRecord,
    InsertResult,
    NgramAggregateRecord,
    NgramRecord,
    SourceRecord,
)
from cubetriggers.trigger_query_filters import TriggerQueryFilters


class SourceRepository(Protocol):
    """Repository interface for provenance sources."""

    def upsert_source(
        self,
        name: str,
        description: str | None = None,
        url: str | None = None,
    ) -> SourceRecord:
        """Insert a source by name, or overwrite its description and url."""

    def list_sources(self) -> list[SourceRecord]:
        """Return sources, newest first."""

    def list_source_ids(self) -> list[str]:
        """Return every known source id."""


class ImportRunRepository(Protocol):
    """Repository interface for import run bookkeeping."""

    def create_import_run(self, source_id: str) -> ImportRunRecord:
        """Insert a PENDING import run."""

    def get_import_run(self, import_run_id: str) -> ImportRunRecord | None:
        """Return the import run, if any."""

    def list_import_runs(self, source_id: str | None = None) -> list[ImportRunRecord]:
        """Return import runs, newest first."""

    def update_import_run(
        self,
        import_run_id: str,
        *,
        status: ImportStatus | None = None,
        total_algorithms: int | None = None,
        processed_algorithms: int | None = None,
        ended_at: datetime | None = None,
        error_message: str | None = None,
    ) -> None:
        """Update only the provided import run columns."""


class CanonicalRepository(Protocol):
    """Repository interface for canonical algorithms, ngrams, and occurrences."""

    def insert_algorithm_if_absent(self, normalized_moves: str, move_count: int) -> InsertResult:
        """Insert an algorithm keyed by its moves unless it exists."""

    def insert_algorithm_occurrence(
        self,
        *,
        algorithm_id: str,
        source_id: str,
        import_run_id: str,
        category: AlgorithmCategory,
        original_moves: str,
        case_name: str | None,
    ) -> str:
        """Insert a provenance row and return its id."""

    def delete_algorithm_occurrences(self, import_run_id: str) -> int:
        """Remove provenance rows written by an interrupted run; return how many."""

    def insert_ngram_if_absent(self, moves: str, length: int) -> InsertResult:
        """Insert an ngram keyed by its moves unless it exists."""

    def insert_ngram_occurrence_if_absent(
        self,
        ngram_id: str,
        algorithm_id: str,
        position: int,
    ) -> bool:
        """Insert an (ngram, algorithm, position) row unless it exists."""


class AggregateRepository(Protocol):
    """Repository interface for ngram aggregate maintenance."""

    def fetch_affected_ngram_ids(self, import_run_id: str) -> list[str]:
        """Return ngrams occurring in any algorithm seen by the import."""

    def compute_aggregate_counts(
        self,
        ngram_id: str,
        category: AlgorithmCategory | None,
        source_id: str | None,
    ) -> AggregateCounts:
        """Count occurrences for one dimension combination."""

    def upsert_ngram_aggregate(
        self,
        ngram_id: str,
        category: AlgorithmCategory | None,
        source_id: str | None,
        counts: AggregateCounts,
    ) -> None:
        """Write the aggregate row for one key triple."""


class TriggerQueryRepository(Protocol):
    """Repository interface for read-side trigger queries."""

    def fetch_top_triggers(
        self,
        filters: TriggerQueryFilters | None = None,
        limit: int = 50,
    ) -> list[NgramAggregateRecord]:
        """Return aggregate rows selected by the filters."""

    def fetch_ngrams_by_length(self, length: int) -> list[NgramRecord]:
        """Return ngrams with the given move count."""

    def search_ngrams(self, moves: str) -> list[NgramRecord]:
        """Return ngrams whose moves contain the text, ignoring case."""


class TriggerRepository(
    SourceRepository,
    ImportRunRepository,
    CanonicalRepository,
    AggregateRepository,
    TriggerQueryRepository,
    Protocol,
):
    """Full store interface used by the import and aggregate jobs."""
