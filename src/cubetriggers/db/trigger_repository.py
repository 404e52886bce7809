"""Shared SQL for trigger storage, independent of the database driver."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random

from cubetriggers.db.sql_clauses import append_clause, append_dimension, where_sql
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
from cubetriggers.trigger_query_filters import (
    TriggerQueryFilters,
    resolve_aggregate_key,
    resolve_min_occurrences,
)
from cubetriggers.utils import Now

WILDCARD_KEY = "*"
CONFLICT_ATTEMPTS = 5

SOURCE_COLUMNS = "id, name, description, url, created_at, updated_at"
IMPORT_RUN_COLUMNS = (
    "id, source_id, status, total_algorithms, processed_algorithms, "
    "started_at, ended_at, error_message"
)


def _new_id() -> str:
    return str(uuid4())


def aggregate_key(
    ngram_id: str,
    category: AlgorithmCategory | None,
    source_id: str | None,
) -> str:
    """Deterministic primary key for an aggregate row, wildcards included."""
    return "|".join(
        (
            ngram_id,
            str(category) if category is not None else WILDCARD_KEY,
            source_id if source_id is not None else WILDCARD_KEY,
        )
    )


def _source_from_row(row: Sequence[object]) -> SourceRecord:
    return SourceRecord(
        id=str(row[0]),
        name=str(row[1]),
        description=row[2],
        url=row[3],
        created_at=Now.to_utc(row[4]),
        updated_at=Now.to_utc(row[5]),
    )


def _import_run_from_row(row: Sequence[object]) -> ImportRunRecord:
    return ImportRunRecord(
        id=str(row[0]),
        source_id=str(row[1]),
        status=ImportStatus.from_storage(str(row[2])),
        total_algorithms=int(row[3] or 0),
        processed_algorithms=int(row[4] or 0),
        started_at=Now.to_utc(row[5]),
        ended_at=Now.to_utc(row[6]),
        error_message=row[7],
    )


def _ngram_from_row(row: Sequence[object]) -> NgramRecord:
    return NgramRecord(id=str(row[0]), moves=str(row[1]), length=int(row[2]))


class SqlTriggerRepository:
    """Trigger store operations expressed in SQL portable across DuckDB and Postgres.

    Subclasses bind ``_query`` and ``_write`` to a driver connection. Every
    write to a shared canonical row is an insert-if-absent keyed on a unique
    constraint, so concurrent jobs converge on one row without locking.
    """

    backend = "sql"
    # Driver errors raised when another session wins the race for a unique key.
    conflict_errors: tuple[type[Exception], ...] = ()

    def _query(self, sql: str, params: Sequence[object] = ()) -> list[tuple]:
        raise NotImplementedError

    def _write(self, sql: str, params: Sequence[object] = ()) -> None:
        raise NotImplementedError

    def _fetch_id(self, sql: str, params: Sequence[object]) -> str | None:
        rows = self._query(sql, params)
        if not rows:
            return None
        return str(rows[0][0])

    def _insert_keyed_if_absent(
        self,
        insert_sql: str,
        insert_params: Sequence[object],
        select_sql: str,
        select_params: Sequence[object],
    ) -> InsertResult:
        retrying = Retrying(
            retry=retry_if_exception_type(self.conflict_errors),
            stop=stop_after_attempt(CONFLICT_ATTEMPTS),
            wait=wait_random(0, 0.05),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                result = self._insert_keyed_once(insert_sql, insert_params, select_sql, select_params)
        return result

    def _insert_keyed_once(
        self,
        insert_sql: str,
        insert_params: Sequence[object],
        select_sql: str,
        select_params: Sequence[object],
    ) -> InsertResult:
        existing = self._fetch_id(select_sql, select_params)
        if existing is not None:
            return InsertResult(id=existing, created=False)
        new_id = str(insert_params[0])
        self._write(insert_sql, insert_params)
        resolved = self._fetch_id(select_sql, select_params)
        if resolved is None:
            raise RuntimeError(f"Insert-if-absent produced no row for {select_params!r}")
        return InsertResult(id=resolved, created=resolved == new_id)

    # Sources

    def upsert_source(
        self,
        name: str,
        description: str | None = None,
        url: str | None = None,
    ) -> SourceRecord:
        now = Now.as_storage()
        self._write(
            """
            INSERT INTO sources (id, name, description, url, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (name) DO UPDATE SET
                description = EXCLUDED.description,
                url = EXCLUDED.url,
                updated_at = EXCLUDED.updated_at
            """,
            (_new_id(), name, description, url, now, now),
        )
        rows = self._query(f"SELECT {SOURCE_COLUMNS} FROM sources WHERE name = ?", (name,))
        return _source_from_row(rows[0])

    def list_sources(self) -> list[SourceRecord]:
        rows = self._query(f"SELECT {SOURCE_COLUMNS} FROM sources ORDER BY created_at DESC, name")
        return [_source_from_row(row) for row in rows]

    def list_source_ids(self) -> list[str]:
        return [str(row[0]) for row in self._query("SELECT id FROM sources ORDER BY id")]

    # Import runs

    def create_import_run(self, source_id: str) -> ImportRunRecord:
        import_run_id = _new_id()
        self._write(
            """
            INSERT INTO import_runs (
                id, source_id, status, total_algorithms, processed_algorithms, started_at
            ) VALUES (?, ?, ?, 0, 0, ?)
            """,
            (import_run_id, source_id, str(ImportStatus.PENDING), Now.as_storage()),
        )
        record = self.get_import_run(import_run_id)
        if record is None:
            raise RuntimeError(f"Import run {import_run_id} was not persisted")
        return record

    def get_import_run(self, import_run_id: str) -> ImportRunRecord | None:
        rows = self._query(
            f"SELECT {IMPORT_RUN_COLUMNS} FROM import_runs WHERE id = ?",
            (import_run_id,),
        )
        if not rows:
            return None
        return _import_run_from_row(rows[0])

    def list_import_runs(self, source_id: str | None = None) -> list[ImportRunRecord]:
        conditions: list[str] = []
        params: list[object] = []
        append_clause(conditions, params, "source_id = ?", source_id)
        rows = self._query(
            f"SELECT {IMPORT_RUN_COLUMNS} FROM import_runs {where_sql(conditions)} "
            "ORDER BY started_at DESC",
            params,
        )
        return [_import_run_from_row(row) for row in rows]

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
        assignments: list[str] = []
        params: list[object] = []
        append_clause(assignments, params, "status = ?", status)
        append_clause(assignments, params, "total_algorithms = ?", total_algorithms)
        append_clause(
            assignments, params, "processed_algorithms = ?", processed_algorithms
        )
        append_clause(assignments, params, "ended_at = ?", Now.to_storage(ended_at))
        append_clause(assignments, params, "error_message = ?", error_message)
        if not assignments:
            return
        params.append(import_run_id)
        self._write(f"UPDATE import_runs SET {', '.join(assignments)} WHERE id = ?", params)

    # Canonical rows and occurrences

    def insert_algorithm_if_absent(self, normalized_moves: str, move_count: int) -> InsertResult:
        return self._insert_keyed_if_absent(
            """
            INSERT INTO algorithms (id, normalized_moves, move_count, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (normalized_moves) DO NOTHING
            """,
            (_new_id(), normalized_moves, move_count, Now.as_storage()),
            "SELECT id FROM algorithms WHERE normalized_moves = ?",
            (normalized_moves,),
        )

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
        occurrence_id = _new_id()
        self._write(
            """
            INSERT INTO algorithm_occurrences (
                id, algorithm_id, source_id, import_run_id,
                category, original_moves, case_name, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                occurrence_id,
                algorithm_id,
                source_id,
                import_run_id,
                str(category),
                original_moves,
                case_name,
                Now.as_storage(),
            ),
        )
        return occurrence_id

    def delete_algorithm_occurrences(self, import_run_id: str) -> int:
        rows = self._query(
            "SELECT COUNT(*) FROM algorithm_occurrences WHERE import_run_id = ?",
            (import_run_id,),
        )
        removed = int(rows[0][0] or 0)
        if removed:
            self._write(
                "DELETE FROM algorithm_occurrences WHERE import_run_id = ?",
                (import_run_id,),
            )
        return removed

    def insert_ngram_if_absent(self, moves: str, length: int) -> InsertResult:
        return self._insert_keyed_if_absent(
            """
            INSERT INTO ngrams (id, moves, length, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (moves) DO NOTHING
            """,
            (_new_id(), moves, length, Now.as_storage()),
            "SELECT id FROM ngrams WHERE moves = ?",
            (moves,),
        )

    def insert_ngram_occurrence_if_absent(
        self,
        ngram_id: str,
        algorithm_id: str,
        position: int,
    ) -> bool:
        result = self._insert_keyed_if_absent(
            """
            INSERT INTO ngram_occurrences (id, ngram_id, algorithm_id, start_offset, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (ngram_id, algorithm_id, start_offset) DO NOTHING
            """,
            (_new_id(), ngram_id, algorithm_id, position, Now.as_storage()),
            """
            SELECT id FROM ngram_occurrences
            WHERE ngram_id = ? AND algorithm_id = ? AND start_offset = ?
            """,
            (ngram_id, algorithm_id, position),
        )
        return result.created

    # Aggregates

    def fetch_affected_ngram_ids(self, import_run_id: str) -> list[str]:
        rows = self._query(
            """
            SELECT DISTINCT n_occ.ngram_id
            FROM ngram_occurrences AS n_occ
            JOIN algorithm_occurrences AS a_occ
                ON a_occ.algorithm_id = n_occ.algorithm_id
            WHERE a_occ.import_run_id = ?
            ORDER BY n_occ.ngram_id
            """,
            (import_run_id,),
        )
        return [str(row[0]) for row in rows]

    def compute_aggregate_counts(
        self,
        ngram_id: str,
        category: AlgorithmCategory | None,
        source_id: str | None,
    ) -> AggregateCounts:
        dimension_filters: list[str] = []
        dimension_params: list[object] = []
        append_clause(dimension_filters, dimension_params, "a_occ.category = ?", category)
        append_clause(dimension_filters, dimension_params, "a_occ.source_id = ?", source_id)
        occurrence_sql = (
            "SELECT COUNT(*), COUNT(DISTINCT n_occ.algorithm_id) "
            "FROM ngram_occurrences AS n_occ WHERE n_occ.ngram_id = ?"
        )
        if dimension_filters:
            occurrence_sql += (
                " AND EXISTS (SELECT 1 FROM algorithm_occurrences AS a_occ"
                " WHERE a_occ.algorithm_id = n_occ.algorithm_id AND "
                + " AND ".join(dimension_filters)
                + ")"
            )
        occurrence_row = self._query(occurrence_sql, [ngram_id, *dimension_params])[0]

        source_sql = (
            "SELECT COUNT(DISTINCT a_occ.source_id) "
            "FROM ngram_occurrences AS n_occ "
            "JOIN algorithm_occurrences AS a_occ ON a_occ.algorithm_id = n_occ.algorithm_id "
            "WHERE n_occ.ngram_id = ?"
        )
        if dimension_filters:
            source_sql += " AND " + " AND ".join(dimension_filters)
        source_row = self._query(source_sql, [ngram_id, *dimension_params])[0]

        return AggregateCounts(
            total_occurrences=int(occurrence_row[0] or 0),
            algorithm_coverage=int(occurrence_row[1] or 0),
            source_coverage=int(source_row[0] or 0),
        )

    def upsert_ngram_aggregate(
        self,
        ngram_id: str,
        category: AlgorithmCategory | None,
        source_id: str | None,
        counts: AggregateCounts,
    ) -> None:
        self._write(
            """
            INSERT INTO ngram_aggregates (
                aggregate_key, ngram_id, category, source_id,
                total_occurrences, algorithm_coverage, source_coverage, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (aggregate_key) DO UPDATE SET
                total_occurrences = EXCLUDED.total_occurrences,
                algorithm_coverage = EXCLUDED.algorithm_coverage,
                source_coverage = EXCLUDED.source_coverage,
                updated_at = EXCLUDED.updated_at
            """,
            (
                aggregate_key(ngram_id, category, source_id),
                ngram_id,
                str(category) if category is not None else None,
                source_id,
                counts.total_occurrences,
                counts.algorithm_coverage,
                counts.source_coverage,
                Now.as_storage(),
            ),
        )

    # Read side

    def fetch_top_triggers(
        self,
        filters: TriggerQueryFilters | None = None,
        limit: int = 50,
    ) -> list[NgramAggregateRecord]:
        category, source_id = resolve_aggregate_key(filters)
        conditions: list[str] = []
        params: list[object] = []
        append_dimension(conditions, params, "agg.category", category)
        append_dimension(conditions, params, "agg.source_id", source_id)
        conditions.append("agg.total_occurrences >= ?")
        params.append(resolve_min_occurrences(filters))
        append_clause(
            conditions, params, "ng.length = ?", filters.length if filters else None
        )
        params.append(limit)
        rows = self._query(
            f"""
            SELECT
                agg.ngram_id, ng.moves, ng.length, agg.category, agg.source_id,
                agg.total_occurrences, agg.algorithm_coverage, agg.source_coverage,
                agg.updated_at
            FROM ngram_aggregates AS agg
            JOIN ngrams AS ng ON ng.id = agg.ngram_id
            {where_sql(conditions)}
            ORDER BY agg.total_occurrences DESC, ng.moves
            LIMIT ?
            """,
            params,
        )
        return [
            NgramAggregateRecord(
                ngram_id=str(row[0]),
                moves=str(row[1]),
                length=int(row[2]),
                category=AlgorithmCategory.from_storage(row[3]),
                source_id=row[4],
                total_occurrences=int(row[5]),
                algorithm_coverage=int(row[6]),
                source_coverage=int(row[7]),
                updated_at=Now.to_utc(row[8]),
            )
            for row in rows
        ]

    def fetch_ngrams_by_length(self, length: int) -> list[NgramRecord]:
        rows = self._query(
            "SELECT id, moves, length FROM ngrams WHERE length = ? ORDER BY created_at DESC, moves",
            (length,),
        )
        return [_ngram_from_row(row) for row in rows]

    def search_ngrams(self, moves: str) -> list[NgramRecord]:
        rows = self._query(
            """
            SELECT id, moves, length FROM ngrams
            WHERE LOWER(moves) LIKE ?
            ORDER BY created_at DESC, moves
            """,
            (f"%{moves.lower()}%",),
        )
        return [_ngram_from_row(row) for row in rows]
