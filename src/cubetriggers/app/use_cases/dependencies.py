"""Use-case dependency interfaces."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from cubetriggers.job_payloads import AggregateJobPayload, ImportJobPayload


class JobScheduler(Protocol):
    """Hand import and aggregate work to background workers."""

    def enqueue_import(self, payload: ImportJobPayload | Mapping[str, object]) -> None:
        """Queue an import job."""

    def enqueue_aggregate(
        self,
        payload: AggregateJobPayload | Mapping[str, object],
        delay_s: float | None = None,
    ) -> None:
        """Queue an aggregate job, optionally after a delay."""
