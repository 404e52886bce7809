"""CubeTriggers package entrypoints."""

from cubetriggers.algorithm_parser import ParsedAlgorithm, parse_algorithm_line, parse_algorithms_text
from cubetriggers.classify_algorithm import classify_algorithm
from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.domain.import_status import ImportStatus
from cubetriggers.extract_ngrams import extract_ngrams
from cubetriggers.normalize_moves import NormalizedMoves, normalize_moves

__all__ = [
    "AlgorithmCategory",
    "ImportStatus",
    "NormalizedMoves",
    "ParsedAlgorithm",
    "classify_algorithm",
    "extract_ngrams",
    "normalize_moves",
    "parse_algorithm_line",
    "parse_algorithms_text",
]
