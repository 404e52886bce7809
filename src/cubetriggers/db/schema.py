"""Portable schema definitions and forward-only migrations."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)

QueryFn = Callable[[str, Sequence[object]], list[tuple]]
WriteFn = Callable[[str, Sequence[object]], None]

SCHEMA_VERSION_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER,
    updated_at TIMESTAMP
);
"""

SOURCES_SCHEMA = """
CREATE TABLE IF NOT EXISTS sources (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    description TEXT,
    url TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
"""

IMPORT_RUNS_SCHEMA = """
CREATE TABLE IF NOT EXISTS import_runs (
    id TEXT PRIMARY KEY,
    source_id TEXT NOT NULL,
    status TEXT NOT NULL,
    total_algorithms INTEGER NOT NULL DEFAULT 0,
    processed_algorithms INTEGER NOT NULL DEFAULT 0,
    started_at TIMESTAMP NOT NULL,
    ended_at TIMESTAMP,
    error_message TEXT
);
"""

ALGORITHMS_SCHEMA = """
CREATE TABLE IF NOT EXISTS algorithms (
    id TEXT PRIMARY KEY,
    normalized_moves TEXT NOT NULL UNIQUE,
    move_count INTEGER NOT NULL,
    created_at TIMESTAMP NOT NULL
);
"""

ALGORITHM_OCCURRENCES_SCHEMA = """
CREATE TABLE IF NOT EXISTS algorithm_occurrences (
    id TEXT PRIMARY KEY,
    algorithm_id TEXT NOT NULL,
    source_id TEXT NOT NULL,
    import_run_id TEXT NOT NULL,
    category TEXT NOT NULL,
    original_moves TEXT NOT NULL,
    case_name TEXT,
    created_at TIMESTAMP NOT NULL
);
"""

NGRAMS_SCHEMA = """
CREATE TABLE IF NOT EXISTS ngrams (
    id TEXT PRIMARY KEY,
    moves TEXT NOT NULL UNIQUE,
    length INTEGER NOT NULL,
    created_at TIMESTAMP NOT NULL
);
"""

NGRAM_OCCURRENCES_SCHEMA = """
CREATE TABLE IF NOT EXISTS ngram_occurrences (
    id TEXT PRIMARY KEY,
    ngram_id TEXT NOT NULL,
    algorithm_id TEXT NOT NULL,
    start_offset INTEGER NOT NULL,
    created_at TIMESTAMP NOT NULL,
    UNIQUE (ngram_id, algorithm_id, start_offset)
);
"""

NGRAM_AGGREGATES_SCHEMA = """
CREATE TABLE IF NOT EXISTS ngram_aggregates (
    aggregate_key TEXT PRIMARY KEY,
    ngram_id TEXT NOT NULL,
    category TEXT,
    source_id TEXT,
    total_occurrences INTEGER NOT NULL,
    algorithm_coverage INTEGER NOT NULL,
    source_coverage INTEGER NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
"""

OCCURRENCE_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_algorithm_occurrences_algorithm "
    "ON algorithm_occurrences (algorithm_id)",
    "CREATE INDEX IF NOT EXISTS idx_algorithm_occurrences_import_run "
    "ON algorithm_occurrences (import_run_id)",
    "CREATE INDEX IF NOT EXISTS idx_ngram_occurrences_algorithm "
    "ON ngram_occurrences (algorithm_id)",
)

SCHEMA_VERSION = 2

_SCHEMA_MIGRATIONS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (
        1,
        (
            SOURCES_SCHEMA,
            IMPORT_RUNS_SCHEMA,
            ALGORITHMS_SCHEMA,
            ALGORITHM_OCCURRENCES_SCHEMA,
            NGRAMS_SCHEMA,
            NGRAM_OCCURRENCES_SCHEMA,
            NGRAM_AGGREGATES_SCHEMA,
        ),
    ),
    (2, OCCURRENCE_INDEXES),
)


def get_schema_version(query: QueryFn) -> int:
    row = query("SELECT MAX(version) FROM schema_version", ())
    if not row or row[0][0] is None:
        return 0
    return int(row[0][0])


def _set_schema_version(write: WriteFn, version: int) -> None:
    write("DELETE FROM schema_version", ())
    write("INSERT INTO schema_version VALUES (?, CURRENT_TIMESTAMP)", (version,))


def migrate_schema(query: QueryFn, write: WriteFn, backend: str) -> int:
    """Apply pending migrations in order and return the resulting version."""
    write(SCHEMA_VERSION_SCHEMA, ())
    version = get_schema_version(query)
    for target_version, statements in _SCHEMA_MIGRATIONS:
        if version >= target_version:
            continue
        logger.info("Applying %s schema migration v%s", backend, target_version)
        for statement in statements:
            write(statement, ())
        _set_schema_version(write, target_version)
        version = target_version
    return version
