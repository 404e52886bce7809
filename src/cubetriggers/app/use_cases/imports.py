"""Use case for starting and inspecting imports."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from cubetriggers.app.use_cases.dependencies import JobScheduler
from cubetriggers.db.trigger_store import TriggerStore
from cubetriggers.job_payloads import AggregateJobPayload, ImportJobPayload
from cubetriggers.models import ImportRunRecord, SourceRecord
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)


class StartImportRequest(BaseModel):
    """Input for starting an import of pasted algorithm text."""

    source_name: str = Field(min_length=1)
    algorithms_text: str
    description: str | None = None
    source_url: str | None = None


@dataclass
class ImportUseCase:
    store: TriggerStore
    jobs: JobScheduler

    def start_import(self, request: StartImportRequest) -> ImportRunRecord:
        """
        Register the source, open a PENDING run, and queue its jobs.

        The source is matched by name; an existing source has its description
        and url overwritten. The aggregate job is queued with the configured
        delay so it starts after the import is expected to be done.
        """
        with self.store.session() as session:
            source = session.repository.upsert_source(
                request.source_name,
                description=request.description,
                url=request.source_url,
            )
            import_run = session.repository.create_import_run(source.id)
            session.commit()
        logger.info("Created import run %s for source %s", import_run.id, source.name)
        self.jobs.enqueue_import(
            ImportJobPayload(
                import_run_id=import_run.id,
                source_id=source.id,
                algorithms_text=request.algorithms_text,
            )
        )
        self.jobs.enqueue_aggregate(AggregateJobPayload(import_run_id=import_run.id))
        return import_run

    def get_import_run(self, import_run_id: str) -> ImportRunRecord | None:
        with self.store.session() as session:
            return session.repository.get_import_run(import_run_id)

    def list_import_runs(self, source_id: str | None = None) -> list[ImportRunRecord]:
        with self.store.session() as session:
            return session.repository.list_import_runs(source_id)

    def list_sources(self) -> list[SourceRecord]:
        with self.store.session() as session:
            return session.repository.list_sources()
