"""Postgres sessions for trigger storage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812

from cubetriggers.config import Settings
from cubetriggers.db.postgres_store import _connection_kwargs
from cubetriggers.db.transactional_unit_of_work import TransactionalUnitOfWork


@dataclass
class PostgresUnitOfWork(TransactionalUnitOfWork[PgConnection]):
    """psycopg2 opens a transaction implicitly on the first statement after each commit."""

    backend: ClassVar[str] = "Postgres"

    settings: Settings
    connection_factory: Callable[..., PgConnection] = psycopg2.connect

    def _open(self) -> PgConnection:
        kwargs = _connection_kwargs(self.settings)
        if not kwargs:
            raise ValueError("Postgres is not configured for trigger storage")
        conn = self.connection_factory(**kwargs)
        conn.autocommit = self.autocommit
        return conn

    def _finish(self, conn: PgConnection, *, commit: bool) -> None:
        if commit:
            conn.commit()
        else:
            conn.rollback()
