"""Optional WHERE / SET fragments for the trigger repository."""

from __future__ import annotations

from enum import Enum


def _bind(value: object) -> object:
    # Enums are stored as their text value.
    if isinstance(value, Enum):
        return str(value.value)
    return value


def append_clause(
    clauses: list[str],
    params: list[object],
    clause: str,
    value: object | None,
) -> None:
    """Append ``clause`` and bind ``value``; a None value leaves both lists untouched."""
    if value is None:
        return
    clauses.append(clause)
    params.append(_bind(value))


def append_dimension(
    clauses: list[str],
    params: list[object],
    column: str,
    value: object | None,
) -> None:
    """
    Select one aggregate dimension value, or the wildcard row when ``value`` is None.

    Examples
    --------
    >>> clauses, params = [], []
    >>> append_dimension(clauses, params, "agg.source_id", None)
    >>> append_dimension(clauses, params, "agg.category", "PLL")
    >>> clauses, params
    (['agg.source_id IS NULL', 'agg.category = ?'], ['PLL'])
    """
    if value is None:
        clauses.append(f"{column} IS NULL")
        return
    append_clause(clauses, params, f"{column} = ?", value)


def where_sql(conditions: list[str]) -> str:
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)
