from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812

from cubetriggers.config import Settings
from cubetriggers.db.schema import migrate_schema
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)


def to_pyformat(sql: str) -> str:
    """Rewrite qmark placeholders into the pyformat style psycopg2 expects."""
    return sql.replace("?", "%s")


def _connection_kwargs(settings: Settings) -> dict[str, Any] | None:
    postgres = settings.postgres
    if postgres.dsn:
        return {"dsn": postgres.dsn}
    if not postgres.is_configured:
        return None
    return {
        "host": postgres.host,
        "port": postgres.port,
        "dbname": postgres.db,
        "user": postgres.user,
        "password": postgres.password,
        "sslmode": postgres.sslmode,
        "connect_timeout": postgres.connect_timeout_s,
    }


@contextmanager
def postgres_connection(settings: Settings) -> Iterator[PgConnection]:
    kwargs = _connection_kwargs(settings)
    if not kwargs:
        raise ValueError("Postgres is not configured; set CUBETRIGGERS_POSTGRES_DSN or host/db")
    conn = psycopg2.connect(**kwargs)
    conn.autocommit = True
    try:
        yield conn
    finally:
        conn.close()


def init_postgres_schema(conn: PgConnection) -> int:
    """Create or migrate the trigger tables and return the schema version."""

    def query(sql: str, params: Sequence[object]) -> list[tuple]:
        with conn.cursor() as cur:
            cur.execute(to_pyformat(sql), tuple(params))
            return cur.fetchall()

    def write(sql: str, params: Sequence[object]) -> None:
        with conn.cursor() as cur:
            cur.execute(to_pyformat(sql), tuple(params))

    version = migrate_schema(query, write, backend="Postgres")
    if not conn.autocommit:
        conn.commit()
    return version
