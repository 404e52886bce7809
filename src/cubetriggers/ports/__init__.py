"""Port interfaces for the cubetriggers application."""

from cubetriggers.ports.repositories import (  # noqa: F401
    AggregateRepository,
    CanonicalRepository,
    ImportRunRepository,
    SourceRepository,
    TriggerQueryRepository,
    TriggerRepository,
)
from cubetriggers.ports.unit_of_work import UnitOfWork  # noqa: F401
