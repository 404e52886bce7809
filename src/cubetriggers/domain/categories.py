from __future__ import annotations

from enum import StrEnum


class AlgorithmCategory(StrEnum):
    """
    Closed set of algorithm categories assigned from a case label.

    Attributes:
        F2L: First two layers.
        OLL: Orientation of the last layer.
        PLL: Permutation of the last layer.
        CMLL: Corners of the last layer, Roux method.
        COLL: Corners of the last layer, edges oriented.
        ZBLL: Zborowski-Bruchem last layer.
        LSE: Last six edges, Roux method.
        OTHER: Anything unlabeled or unrecognized.
    """

    F2L = "F2L"
    OLL = "OLL"
    PLL = "PLL"
    CMLL = "CMLL"
    COLL = "COLL"
    ZBLL = "ZBLL"
    LSE = "LSE"
    OTHER = "OTHER"

    @classmethod
    def from_storage(cls, value: str | None) -> AlgorithmCategory | None:
        if value is None:
            return None
        try:
            return cls(value.upper())
        except ValueError as exc:
            raise ValueError(f"Unknown algorithm category: {value}") from exc
