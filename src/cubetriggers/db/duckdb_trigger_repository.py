"""Trigger repository for DuckDB-backed storage."""

from __future__ import annotations

from collections.abc import Sequence

import duckdb

from cubetriggers.db.trigger_repository import SqlTriggerRepository


class DuckDbTriggerRepository(SqlTriggerRepository):
    """Runs the shared trigger SQL on a DuckDB connection."""

    backend = "duckdb"
    conflict_errors = (duckdb.ConstraintException, duckdb.TransactionException)

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Sequence[object] = ()) -> list[tuple]:
        return self._conn.execute(sql, list(params)).fetchall()

    def _write(self, sql: str, params: Sequence[object] = ()) -> None:
        self._conn.execute(sql, list(params))
