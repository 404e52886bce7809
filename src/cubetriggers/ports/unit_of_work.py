"""Transaction boundary port for trigger storage."""

from __future__ import annotations

from typing import Protocol, TypeVar

ConnT_co = TypeVar("ConnT_co", covariant=True)


class UnitOfWork(Protocol[ConnT_co]):
    """
    One connection with at most one open transaction.

    Import jobs commit once per progress batch and once per status change,
    so a unit of work is reopened with ``begin`` after every commit or
    rollback. ``close`` discards anything left uncommitted.
    """

    backend: str

    def begin(self) -> ConnT_co:
        """Open a transaction if none is active and return the connection."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None:
        """Roll back an open transaction and release the connection."""
