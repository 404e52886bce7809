import pytest

from cubetriggers.normalize_moves import (
    NormalizedMoves,
    contains_moves,
    count_moves,
    normalize_moves,
)


def test_plain_sequence_is_unchanged() -> None:
    assert normalize_moves("R U R' U'") == NormalizedMoves(moves="R U R' U'", move_count=4)


def test_rotations_are_removed_and_not_counted() -> None:
    result = normalize_moves("x R U R' x'")

    assert result == NormalizedMoves(moves="R U R'", move_count=3)


@pytest.mark.parametrize("rotation", ["x", "y2", "z'", "Y", "x2'"])
def test_rotation_only_fragment_is_rejected(rotation: str) -> None:
    assert normalize_moves(rotation) is None


def test_parentheses_and_extra_whitespace_are_stripped() -> None:
    result = normalize_moves("  (R U R')   (U R U2 R')  ")

    assert result is not None
    assert result.moves == "R U R' U R U2 R'"
    assert result.move_count == 7


def test_lowercase_faces_become_wide_moves() -> None:
    result = normalize_moves("r U r' F")

    assert result is not None
    assert result.moves == "Rw U Rw' F"


def test_existing_wide_moves_keep_canonical_form() -> None:
    result = normalize_moves("Rw U rw' Fw2")

    assert result is not None
    assert result.moves == "Rw U Rw' Fw2"


def test_slice_moves_are_uppercased_not_widened() -> None:
    result = normalize_moves("m2 U e' s")

    assert result is not None
    assert result.moves == "M2 U E' S"


def test_detached_suffixes_join_the_preceding_move() -> None:
    result = normalize_moves("R 2 U ' F")

    assert result is not None
    assert result.moves == "R2 U' F"
    assert result.move_count == 3


@pytest.mark.parametrize(
    ("text", "expected"),
    [("R2 '", "R2'"), ("R' 2 U", "R2' U"), ("U 2 '", "U2'")],
)
def test_detached_suffix_completes_an_existing_suffix(text: str, expected: str) -> None:
    result = normalize_moves(text)

    assert result is not None
    assert result.moves == expected
    assert result.move_count == len(expected.split())


def test_detached_suffix_that_cannot_combine_stays_separate() -> None:
    result = normalize_moves("R2 2 U")

    assert result is not None
    assert result.moves == "R2 2 U"
    assert result.move_count == 3


def test_prime_variants_and_reversed_double_prime() -> None:
    result = normalize_moves("R’ U'2 F′")

    assert result is not None
    assert result.moves == "R' U2' F'"


def test_unrecognized_tokens_are_kept_and_counted() -> None:
    result = normalize_moves("R [U] F")

    assert result is not None
    assert result.moves == "R [U] F"
    assert result.move_count == 3


@pytest.mark.parametrize("text", ["", "   ", "hello world", "()"])
def test_fragment_without_moves_is_rejected(text: str) -> None:
    assert normalize_moves(text) is None


@pytest.mark.parametrize(
    "text",
    [
        "x R U R' x'",
        "(r U r') M2",
        "R 2 U ' F",
        "R2 ' U",
        "Rw U rw' y Fw2",
    ],
)
def test_normalizing_canonical_text_is_idempotent(text: str) -> None:
    first = normalize_moves(text)
    assert first is not None

    assert normalize_moves(first.moves) == first


def test_move_count_matches_token_count() -> None:
    result = normalize_moves("R U R' F' R U R' U' R' F R2 U' R'")

    assert result is not None
    assert result.move_count == len(result.moves.split()) == 13


def test_count_moves_and_contains_moves_helpers() -> None:
    assert count_moves("") == 0
    assert count_moves("R U R'") == 3
    assert contains_moves("y (R U)") is True
    assert contains_moves("y2 x") is False
