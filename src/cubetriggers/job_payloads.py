"""Payload contracts for background import and aggregate jobs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cubetriggers.errors import InvalidJobPayloadError

IMPORT_PROCESSING_QUEUE = "import-processing"
AGGREGATE_COMPUTATION_QUEUE = "aggregate-computation"


class ImportJobPayload(BaseModel):
    """Work item for one import run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    import_run_id: str = Field(min_length=1, alias="importRunId")
    source_id: str = Field(min_length=1, alias="sourceId")
    algorithms_text: str = Field(alias="algorithmsText")


class AggregateJobPayload(BaseModel):
    """Work item asking for aggregate recomputation after an import."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    import_run_id: str = Field(min_length=1, alias="importRunId")


PayloadT = TypeVar("PayloadT", ImportJobPayload, AggregateJobPayload)


def coerce_payload(
    model: type[PayloadT],
    payload: PayloadT | Mapping[str, object],
) -> PayloadT:
    """Validate a raw mapping into a payload model; malformed input is permanent."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidJobPayloadError(f"Invalid {model.__name__}: {exc}") from exc
