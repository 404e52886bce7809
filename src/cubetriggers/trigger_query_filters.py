"""Aggregate query filters and their dimension-key resolution."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cubetriggers.domain.categories import AlgorithmCategory


class TriggerQueryFilters(BaseModel):
    """Filters accepted by the top-triggers query."""

    length: int | None = Field(default=None, ge=1)
    category: AlgorithmCategory | None = None
    source_id: str | None = None
    min_occurrences: int | None = None


def resolve_aggregate_key(
    filters: TriggerQueryFilters | None,
) -> tuple[AlgorithmCategory | None, str | None]:
    """
    Map query filters onto the (category, source) aggregate key.

    Each aggregate row already covers its dimensions, so an unfiltered
    dimension selects the wildcard row rather than summing per-value rows.

    Examples
    --------
    >>> resolve_aggregate_key(None)
    (None, None)
    >>> resolve_aggregate_key(TriggerQueryFilters(category="PLL"))
    (<AlgorithmCategory.PLL: 'PLL'>, None)
    """
    if filters is None:
        return None, None
    return filters.category, filters.source_id or None


def resolve_min_occurrences(filters: TriggerQueryFilters | None) -> int:
    """Return the effective lower bound on total occurrences; never below 1."""
    if filters is None or not filters.min_occurrences:
        return 1
    return max(filters.min_occurrences, 1)
