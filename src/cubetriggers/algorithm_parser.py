"""Parse multi-line algorithm text into normalized, classified records."""

from __future__ import annotations

from dataclasses import dataclass

from cubetriggers.classify_algorithm import classify_algorithm
from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.normalize_moves import normalize_moves
from cubetriggers.utils import Logger, funclogger

logger = Logger(__name__)

COMMENT_PREFIXES = ("#", "//")
CASE_NAME_SEPARATOR = ":"


@dataclass(frozen=True, slots=True)
class ParsedAlgorithm:
    """One algorithm line after normalization and classification."""

    original_moves: str
    normalized_moves: str
    move_count: int
    category: AlgorithmCategory
    case_name: str | None = None


def _is_algorithm_line(line: str) -> bool:
    return bool(line) and not line.startswith(COMMENT_PREFIXES)


def _split_case_name(line: str) -> tuple[str | None, str]:
    case_name, separator, moves_text = line.partition(CASE_NAME_SEPARATOR)
    if not separator:
        return None, line.strip()
    return case_name.strip() or None, moves_text.strip()


def parse_algorithm_line(line: str) -> ParsedAlgorithm | None:
    """Parse one line such as ``T-Perm: R U R' U'``; return None if it has no moves."""
    case_name, moves_text = _split_case_name(line.strip())
    normalized = normalize_moves(moves_text)
    if normalized is None:
        return None
    return ParsedAlgorithm(
        original_moves=moves_text,
        normalized_moves=normalized.moves,
        move_count=normalized.move_count,
        category=classify_algorithm(case_name),
        case_name=case_name,
    )


@funclogger
def parse_algorithms_text(text: str) -> list[ParsedAlgorithm]:
    """Parse every non-empty, non-comment line; lines without moves are dropped."""
    lines = [line.strip() for line in text.splitlines()]
    algorithms: list[ParsedAlgorithm] = []
    skipped = 0
    for line in lines:
        if not _is_algorithm_line(line):
            continue
        parsed = parse_algorithm_line(line)
        if parsed is None:
            skipped += 1
            continue
        algorithms.append(parsed)
    if skipped:
        logger.debug("Skipped %s lines without recognizable moves", skipped)
    return algorithms
