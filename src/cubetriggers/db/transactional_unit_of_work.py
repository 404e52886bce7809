"""Connection and transaction bookkeeping shared by the DuckDB and Postgres sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, TypeVar

from cubetriggers.ports.unit_of_work import UnitOfWork
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)

ConnT = TypeVar("ConnT")


@dataclass
class TransactionalUnitOfWork(UnitOfWork[ConnT]):
    """
    Lazily open one connection and track whether a transaction is active.

    Subclasses supply ``_open`` plus the driver calls that start and end a
    transaction. ``commit`` and ``rollback`` are no-ops outside a transaction,
    so a failed ``begin`` leaves the session safe to close. A driver error
    while ending a transaction still clears it; the connection is left
    without an open transaction either way.

    With ``autocommit`` set no transaction is ever started and every
    statement commits on its own.
    """

    backend: ClassVar[str] = "sql"

    autocommit: bool = field(default=False, kw_only=True)
    _conn: ConnT | None = field(default=None, init=False, repr=False)
    _active: bool = field(default=False, init=False)

    def _open(self) -> ConnT:
        raise NotImplementedError

    def _start(self, conn: ConnT) -> None:
        """Begin a transaction on ``conn``; drivers with implicit transactions skip this."""

    def _finish(self, conn: ConnT, *, commit: bool) -> None:
        raise NotImplementedError

    def begin(self) -> ConnT:
        if self._conn is None:
            self._conn = self._open()
        if not self._active and not self.autocommit:
            self._start(self._conn)
            self._active = True
        return self._conn

    def commit(self) -> None:
        self._end(commit=True)

    def rollback(self) -> None:
        self._end(commit=False)

    def _end(self, *, commit: bool) -> None:
        if self._conn is None or not self._active:
            return
        try:
            self._finish(self._conn, commit=commit)
        finally:
            self._active = False

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            if self._active:
                logger.debug("Discarding uncommitted %s trigger writes", self.backend)
                self.rollback()
        except Exception:
            logger.warning("Rollback failed while closing %s session", self.backend, exc_info=True)
        finally:
            self._conn.close()  # type: ignore[attr-defined]
            self._conn = None
