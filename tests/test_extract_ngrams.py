import pytest

from cubetriggers.extract_ngrams import NgramWindow, extract_ngrams, iter_ngram_windows


def _expected_count(token_count: int, min_length: int, max_length: int) -> int:
    return sum(
        max(0, token_count - length + 1)
        for length in range(min_length, min(max_length, token_count) + 1)
    )


def test_length_two_windows_in_order() -> None:
    assert extract_ngrams("R U R' U'", 2, 2) == ["R U", "U R'", "R' U'"]


def test_default_range_is_four_to_six() -> None:
    ngrams = extract_ngrams("R U R' U' R' F")

    assert ngrams[0] == "R U R' U'"
    assert ngrams[-1] == "R U R' U' R' F"
    assert len(ngrams) == 6


@pytest.mark.parametrize(
    ("moves", "min_length", "max_length"),
    [
        ("R U R' F' R U R' U' R' F R2 U' R'", 4, 6),
        ("R U R' U'", 4, 6),
        ("R U", 4, 6),
        ("R U R' U' R U2 R'", 2, 3),
        ("F", 1, 1),
    ],
)
def test_window_count_matches_closed_form(moves: str, min_length: int, max_length: int) -> None:
    token_count = len(moves.split())

    result = extract_ngrams(moves, min_length, max_length)

    assert len(result) == _expected_count(token_count, min_length, max_length)


def test_empty_text_yields_nothing() -> None:
    assert extract_ngrams("") == []
    assert list(iter_ngram_windows("")) == []


def test_repeated_window_keeps_each_start_offset() -> None:
    windows = list(iter_ngram_windows("R U R U", 2, 2))

    assert windows == [
        NgramWindow(moves="R U", length=2, token_index=0, char_offset=0),
        NgramWindow(moves="U R", length=2, token_index=1, char_offset=2),
        NgramWindow(moves="R U", length=2, token_index=2, char_offset=4),
    ]


def test_char_offsets_point_into_the_canonical_text() -> None:
    moves = "R U2 R' Fw U'"

    for window in iter_ngram_windows(moves, 2, 3):
        assert moves[window.char_offset :].startswith(window.moves)
