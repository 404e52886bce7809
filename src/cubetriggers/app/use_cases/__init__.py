"""Application use-case entrypoints."""

from cubetriggers.app.use_cases.imports import ImportUseCase, StartImportRequest
from cubetriggers.app.use_cases.triggers import TriggerQueryUseCase

__all__ = [
    "ImportUseCase",
    "StartImportRequest",
    "TriggerQueryUseCase",
]
