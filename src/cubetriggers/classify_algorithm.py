"""Assign an algorithm category from a free-text case label."""

from __future__ import annotations

from cubetriggers.domain.categories import AlgorithmCategory

# Evaluated in order; COLL precedes OLL because "coll" contains "oll".
CATEGORY_KEYWORDS: tuple[tuple[AlgorithmCategory, tuple[str, ...]], ...] = (
    (AlgorithmCategory.F2L, ("f2l", "first two layers")),
    (AlgorithmCategory.COLL, ("coll",)),
    (AlgorithmCategory.OLL, ("oll", "orientation")),
    (AlgorithmCategory.PLL, ("pll", "permutation", "perm")),
    (AlgorithmCategory.CMLL, ("cmll", "corners")),
    (AlgorithmCategory.LSE, ("lse", "last six edges")),
    (AlgorithmCategory.ZBLL, ("zbll",)),
)


def classify_algorithm(case_name: str | None) -> AlgorithmCategory:
    """Return the category for a case label, or OTHER when nothing matches."""
    if not case_name:
        return AlgorithmCategory.OTHER
    name = case_name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return AlgorithmCategory.OTHER
