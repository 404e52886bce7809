"""Record types returned by the trigger store."""

from cubetriggers.models.records import (
    AggregateCounts,
    ImportRunRecord,
    InsertResult,
    NgramAggregateRecord,
    NgramRecord,
    SourceRecord,
)

__all__ = [
    "AggregateCounts",
    "ImportRunRecord",
    "InsertResult",
    "NgramAggregateRecord",
    "NgramRecord",
    "SourceRecord",
]
