from __future__ import annotations

from enum import StrEnum


class ImportStatus(StrEnum):
    """Lifecycle states of an import run."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportStatus.COMPLETED, ImportStatus.FAILED)

    def can_transition_to(self, target: ImportStatus) -> bool:
        return target in _TRANSITIONS[self]

    @classmethod
    def from_storage(cls, value: str) -> ImportStatus:
        try:
            return cls(value.upper())
        except ValueError as exc:
            raise ValueError(f"Unknown import status: {value}") from exc


# PROCESSING -> PROCESSING covers redelivery of a job whose worker died mid-run.
_TRANSITIONS: dict[ImportStatus, frozenset[ImportStatus]] = {
    ImportStatus.PENDING: frozenset({ImportStatus.PROCESSING}),
    ImportStatus.PROCESSING: frozenset(
        {ImportStatus.PROCESSING, ImportStatus.COMPLETED, ImportStatus.FAILED}
    ),
    ImportStatus.COMPLETED: frozenset(),
    ImportStatus.FAILED: frozenset(),
}
