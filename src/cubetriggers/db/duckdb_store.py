from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import duckdb

from cubetriggers.db.schema import migrate_schema
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)


def _is_wal_replay_error(exc: duckdb.InternalException) -> bool:
    message = str(exc).lower()
    return "wal" in message and "replay" in message


def _discard_wal(path: Path) -> bool:
    """Delete the write-ahead log beside ``path``; False when there is none."""
    wal_path = path.with_name(f"{path.name}.wal")
    if not wal_path.exists():
        return False
    logger.warning("Discarding unreplayable trigger store WAL: %s", wal_path)
    try:
        wal_path.unlink()
    except OSError:
        logger.exception("Failed to remove WAL file: %s", wal_path)
        raise
    return True


def get_connection(db_path: Path | str) -> duckdb.DuckDBPyConnection:
    """
    Open the trigger database, creating its directory on first use.

    A WAL that DuckDB refuses to replay is deleted and the open retried once.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening DuckDB at %s", path)
    try:
        return duckdb.connect(str(path))
    except duckdb.InternalException as exc:
        if not (_is_wal_replay_error(exc) and _discard_wal(path)):
            raise
    return duckdb.connect(str(path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> int:
    """Create or migrate the trigger tables and return the schema version."""

    def query(sql: str, params: Sequence[object]) -> list[tuple]:
        return conn.execute(sql, list(params)).fetchall()

    def write(sql: str, params: Sequence[object]) -> None:
        conn.execute(sql, list(params))

    return migrate_schema(query, write, backend="DuckDB")
