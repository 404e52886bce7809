"""Contiguous move sub-sequence extraction."""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

DEFAULT_MIN_LENGTH = 4
DEFAULT_MAX_LENGTH = 6


class NgramWindow(NamedTuple):
    moves: str
    length: int
    token_index: int
    char_offset: int


def _token_offsets(tokens: list[str]) -> list[int]:
    offsets: list[int] = []
    cursor = 0
    for token in tokens:
        offsets.append(cursor)
        cursor += len(token) + 1
    return offsets


def iter_ngram_windows(
    normalized_moves: str,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> Iterator[NgramWindow]:
    """Yield every window, length-major then position-major.

    ``char_offset`` is the window's own start in the single-spaced canonical
    text, so repeated sub-sequences yield distinct offsets.
    """
    if not normalized_moves:
        return
    tokens = normalized_moves.split()
    offsets = _token_offsets(tokens)
    for length in range(max(min_length, 1), max_length + 1):
        for index in range(len(tokens) - length + 1):
            yield NgramWindow(
                moves=" ".join(tokens[index : index + length]),
                length=length,
                token_index=index,
                char_offset=offsets[index],
            )


def extract_ngrams(
    normalized_moves: str,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> list[str]:
    """
    Extract all contiguous move sub-sequences within a length range.

    Parameters
    ----------
    normalized_moves : str
        Canonical move text.
    min_length : int, optional
        Shortest window, in moves. Default is 4.
    max_length : int, optional
        Longest window, in moves. Default is 6.

    Returns
    -------
    list of str
        Windows ordered by length then start position. A sub-sequence that
        repeats inside the algorithm appears once per start position.

    Examples
    --------
    >>> extract_ngrams("R U R' U'", 2, 2)
    ['R U', "U R'", "R' U'"]
    >>> extract_ngrams("R U")
    []
    """
    return [window.moves for window in iter_ngram_windows(normalized_moves, min_length, max_length)]
