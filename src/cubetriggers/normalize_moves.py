"""Canonicalize free-text cube move notation."""

from __future__ import annotations

import re
from dataclasses import dataclass

FACE_LETTERS = frozenset("RLUDFB")
SLICE_LETTERS = frozenset("MES")
ROTATION_LETTERS = frozenset("xyz")
MOVE_SUFFIXES = ("2", "'", "2'")

_PARENTHESES_RE = re.compile(r"[()]")
_WHITESPACE_RE = re.compile(r"\s+")
_PRIME_VARIANTS = str.maketrans({"’": "'", "′": "'", "`": "'"})
_MOVE_TOKEN_RE = re.compile(r"^(?P<letter>[RLUDFBMESrludfbmes])(?P<wide>[wW])?(?P<suffix>2'|'2|2|')?$")
_ROTATION_TOKEN_RE = re.compile(r"^[xyzXYZ](?:2'|'2|2|')?$")
_SUFFIX_TOKEN_RE = re.compile(r"^(?:2'|'2|2|')$")


@dataclass(frozen=True, slots=True)
class NormalizedMoves:
    """Canonical move text and its move count."""

    moves: str
    move_count: int


@dataclass(slots=True)
class _MoveToken:
    base: str
    suffix: str = ""
    is_move: bool = True

    def render(self) -> str:
        return f"{self.base}{self.suffix}"


def _canonical_suffix(suffix: str | None) -> str:
    if not suffix:
        return ""
    if "2" in suffix and "'" in suffix:
        return "2'"
    return suffix


def _join_suffix(suffix: str, detached: str) -> str | None:
    """Return the canonical suffix for ``suffix`` followed by ``detached``, or None."""
    combined = suffix + detached
    if not _SUFFIX_TOKEN_RE.match(combined):
        return None
    return _canonical_suffix(combined)


def _canonical_base(letter: str, wide: str | None) -> str:
    upper = letter.upper()
    if upper in SLICE_LETTERS:
        return upper
    if wide or letter.islower():
        return f"{upper}w"
    return upper


def _tokenize(text: str) -> list[_MoveToken]:
    tokens: list[_MoveToken] = []
    for raw in text.split(" "):
        if not raw:
            continue
        if _ROTATION_TOKEN_RE.match(raw):
            continue
        if _SUFFIX_TOKEN_RE.match(raw) and tokens and tokens[-1].is_move:
            joined = _join_suffix(tokens[-1].suffix, raw)
            if joined is not None:
                tokens[-1].suffix = joined
                continue
        match = _MOVE_TOKEN_RE.match(raw)
        if match is None:
            tokens.append(_MoveToken(base=raw, is_move=False))
            continue
        tokens.append(
            _MoveToken(
                base=_canonical_base(match.group("letter"), match.group("wide")),
                suffix=_canonical_suffix(match.group("suffix")),
            )
        )
    return tokens


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def count_moves(normalized_moves: str) -> int:
    """Return the number of whitespace-separated tokens in canonical move text."""
    if not normalized_moves:
        return 0
    return len(normalized_moves.split())


def contains_moves(text: str) -> bool:
    """Return True when at least one token matches the move grammar."""
    cleaned = collapse_whitespace(_PARENTHESES_RE.sub(" ", text.translate(_PRIME_VARIANTS)))
    return any(token.is_move for token in _tokenize(cleaned))


def normalize_moves(text: str) -> NormalizedMoves | None:
    """
    Normalize a move fragment into canonical notation.

    Parentheses are stripped, whitespace collapsed, lowercase face letters
    widened (``r`` becomes ``Rw``), slice letters upper-cased, detached
    ``2`` and ``'`` suffixes joined onto the preceding move, and whole-cube
    rotations (``x``, ``y``, ``z``) dropped. Tokens that are not moves are
    kept verbatim and still count toward the move count.

    Parameters
    ----------
    text : str
        Move text with any ``label:`` prefix already removed.

    Returns
    -------
    NormalizedMoves or None
        ``None`` when the fragment holds no token matching the move grammar.

    Examples
    --------
    >>> normalize_moves("x R U R' x'")
    NormalizedMoves(moves="R U R'", move_count=3)
    >>> normalize_moves("(r U r') M2")
    NormalizedMoves(moves="Rw U Rw' M2", move_count=4)
    >>> normalize_moves("y2") is None
    True
    """
    cleaned = collapse_whitespace(_PARENTHESES_RE.sub(" ", text.translate(_PRIME_VARIANTS)))
    tokens = _tokenize(cleaned)
    if not any(token.is_move for token in tokens):
        return None
    moves = collapse_whitespace(" ".join(token.render() for token in tokens))
    return NormalizedMoves(moves=moves, move_count=count_moves(moves))
