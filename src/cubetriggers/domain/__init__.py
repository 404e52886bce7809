"""Domain types shared across parsing, import, and aggregation."""

from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.domain.import_status import ImportStatus

__all__ = ["AlgorithmCategory", "ImportStatus"]
