"""DuckDB sessions for trigger storage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

import duckdb

from cubetriggers.db.duckdb_store import get_connection
from cubetriggers.db.transactional_unit_of_work import TransactionalUnitOfWork


@dataclass
class DuckDbUnitOfWork(TransactionalUnitOfWork[duckdb.DuckDBPyConnection]):
    """Each session holds its own connection to the trigger database file."""

    backend: ClassVar[str] = "DuckDB"

    db_path: Path | str
    connection_factory: Callable[[Path | str], duckdb.DuckDBPyConnection] = get_connection

    def _open(self) -> duckdb.DuckDBPyConnection:
        return self.connection_factory(self.db_path)

    def _start(self, conn: duckdb.DuckDBPyConnection) -> None:
        conn.execute("BEGIN TRANSACTION")

    def _finish(self, conn: duckdb.DuckDBPyConnection, *, commit: bool) -> None:
        conn.execute("COMMIT" if commit else "ROLLBACK")
