import pytest

from cubetriggers.classify_algorithm import classify_algorithm
from cubetriggers.domain.categories import AlgorithmCategory


@pytest.mark.parametrize(
    ("case_name", "expected"),
    [
        ("F2L 1", AlgorithmCategory.F2L),
        ("First Two Layers - basic insert", AlgorithmCategory.F2L),
        ("COLL T", AlgorithmCategory.COLL),
        ("OLL 27", AlgorithmCategory.OLL),
        ("Edge orientation", AlgorithmCategory.OLL),
        ("PLL Ua", AlgorithmCategory.PLL),
        ("T-Perm", AlgorithmCategory.PLL),
        ("Corner Permutation", AlgorithmCategory.PLL),
        ("CMLL O", AlgorithmCategory.CMLL),
        ("Roux corners", AlgorithmCategory.CMLL),
        ("LSE 4c", AlgorithmCategory.LSE),
        ("Last Six Edges", AlgorithmCategory.LSE),
        ("ZBLL U 12", AlgorithmCategory.ZBLL),
        ("Sune", AlgorithmCategory.OTHER),
    ],
)
def test_keywords_map_to_categories(case_name: str, expected: AlgorithmCategory) -> None:
    assert classify_algorithm(case_name) is expected


def test_coll_wins_over_its_oll_substring() -> None:
    assert classify_algorithm("coll t") is AlgorithmCategory.COLL


def test_f2l_is_checked_before_later_groups() -> None:
    assert classify_algorithm("F2L orientation case") is AlgorithmCategory.F2L


@pytest.mark.parametrize("case_name", [None, ""])
def test_missing_label_is_other(case_name: str | None) -> None:
    assert classify_algorithm(case_name) is AlgorithmCategory.OTHER
