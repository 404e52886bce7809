"""Store wiring: pairs a unit-of-work factory with its repository factory."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any

from cubetriggers.config import Settings
from cubetriggers.db.duckdb_store import get_connection, init_schema
from cubetriggers.db.duckdb_trigger_repository import DuckDbTriggerRepository
from cubetriggers.db.duckdb_unit_of_work import DuckDbUnitOfWork
from cubetriggers.db.postgres_store import init_postgres_schema, postgres_connection
from cubetriggers.db.postgres_trigger_repository import PostgresTriggerRepository
from cubetriggers.db.postgres_unit_of_work import PostgresUnitOfWork
from cubetriggers.ports.repositories import TriggerRepository
from cubetriggers.ports.unit_of_work import UnitOfWork
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StoreSession:
    """An open unit of work plus the repository bound to its connection."""

    unit_of_work: UnitOfWork[Any]
    repository: TriggerRepository

    def commit(self) -> None:
        """Commit the current transaction and open the next one."""
        self.unit_of_work.commit()
        self.unit_of_work.begin()

    def rollback(self) -> None:
        """Discard the current transaction and open the next one."""
        self.unit_of_work.rollback()
        self.unit_of_work.begin()


@dataclass(frozen=True)
class TriggerStore:
    """Everything a job needs to open sessions against one backend."""

    backend: str
    unit_of_work_factory: Callable[..., UnitOfWork[Any]]
    repository_factory: Callable[[Any], TriggerRepository]
    schema_initializer: Callable[[], int]

    def initialize(self) -> int:
        version = self.schema_initializer()
        logger.info("%s schema ready at v%s", self.backend, version)
        return version

    @contextmanager
    def session(self) -> Iterator[StoreSession]:
        """Yield a session; uncommitted work is rolled back on exit."""
        unit_of_work = self.unit_of_work_factory()
        try:
            conn = unit_of_work.begin()
            yield StoreSession(unit_of_work, self.repository_factory(conn))
        finally:
            unit_of_work.close()

    @contextmanager
    def autocommit_session(self) -> Iterator[TriggerRepository]:
        """
        Yield a repository whose statements each commit on their own.

        Import jobs write shared rows (algorithms, n-grams, n-gram
        occurrences) here so they are visible to concurrent jobs at once
        and never held in a batch transaction.
        """
        unit_of_work = self.unit_of_work_factory(autocommit=True)
        try:
            yield self.repository_factory(unit_of_work.begin())
        finally:
            unit_of_work.close()


def _init_duckdb_schema(settings: Settings) -> int:
    conn = get_connection(settings.duckdb_path)
    try:
        return init_schema(conn)
    finally:
        conn.close()


def _init_postgres_schema(settings: Settings) -> int:
    with postgres_connection(settings) as conn:
        return init_postgres_schema(conn)


def duckdb_trigger_store(settings: Settings) -> TriggerStore:
    return TriggerStore(
        backend="DuckDB",
        unit_of_work_factory=partial(DuckDbUnitOfWork, settings.duckdb_path),
        repository_factory=DuckDbTriggerRepository,
        schema_initializer=partial(_init_duckdb_schema, settings),
    )


def postgres_trigger_store(settings: Settings) -> TriggerStore:
    return TriggerStore(
        backend="Postgres",
        unit_of_work_factory=partial(PostgresUnitOfWork, settings),
        repository_factory=PostgresTriggerRepository,
        schema_initializer=partial(_init_postgres_schema, settings),
    )


def build_trigger_store(settings: Settings) -> TriggerStore:
    """Use Postgres when it is configured, DuckDB otherwise."""
    if settings.postgres.is_configured:
        return postgres_trigger_store(settings)
    return duckdb_trigger_store(settings)
