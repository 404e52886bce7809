"""Use case for reading trigger rollups."""

from __future__ import annotations

from dataclasses import dataclass

from cubetriggers.db.trigger_store import TriggerStore
from cubetriggers.models import NgramAggregateRecord, NgramRecord
from cubetriggers.trigger_query_filters import TriggerQueryFilters

TOP_TRIGGERS_LIMIT = 50


@dataclass
class TriggerQueryUseCase:
    store: TriggerStore

    def top_triggers(
        self,
        filters: TriggerQueryFilters | None = None,
        limit: int = TOP_TRIGGERS_LIMIT,
    ) -> list[NgramAggregateRecord]:
        with self.store.session() as session:
            return session.repository.fetch_top_triggers(filters, limit)

    def ngrams_by_length(self, length: int) -> list[NgramRecord]:
        with self.store.session() as session:
            return session.repository.fetch_ngrams_by_length(length)

    def search_triggers(self, moves: str) -> list[NgramRecord]:
        with self.store.session() as session:
            return session.repository.search_ngrams(moves)
