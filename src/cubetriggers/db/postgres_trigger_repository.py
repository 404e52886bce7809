"""Trigger repository for Postgres-backed storage."""

from __future__ import annotations

from collections.abc import Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812

from cubetriggers.db.postgres_store import to_pyformat
from cubetriggers.db.trigger_repository import SqlTriggerRepository


class PostgresTriggerRepository(SqlTriggerRepository):
    """Runs the shared trigger SQL through a psycopg2 connection."""

    backend = "postgres"
    conflict_errors = (psycopg2.IntegrityError,)

    def __init__(self, conn: PgConnection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Sequence[object] = ()) -> list[tuple]:
        with self._conn.cursor() as cur:
            cur.execute(to_pyformat(sql), tuple(params))
            return cur.fetchall()

    def _write(self, sql: str, params: Sequence[object] = ()) -> None:
        with self._conn.cursor() as cur:
            cur.execute(to_pyformat(sql), tuple(params))
