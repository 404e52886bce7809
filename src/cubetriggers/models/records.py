from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.domain.import_status import ImportStatus


@dataclass(frozen=True, slots=True)
class SourceRecord:
    id: str
    name: str
    description: str | None
    url: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class ImportRunRecord:
    id: str
    source_id: str
    status: ImportStatus
    total_algorithms: int
    processed_algorithms: int
    started_at: datetime
    ended_at: datetime | None = None
    error_message: str | None = None


@dataclass(frozen=True, slots=True)
class NgramRecord:
    id: str
    moves: str
    length: int


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Id of a keyed row and whether this call inserted it."""

    id: str
    created: bool


@dataclass(frozen=True, slots=True)
class AggregateCounts:
    total_occurrences: int
    algorithm_coverage: int
    source_coverage: int


@dataclass(frozen=True, slots=True)
class NgramAggregateRecord:
    """Rollup for one ngram; ``None`` in a dimension means all of its values."""

    ngram_id: str
    moves: str
    length: int
    category: AlgorithmCategory | None
    source_id: str | None
    total_occurrences: int
    algorithm_coverage: int
    source_coverage: int
    updated_at: datetime
