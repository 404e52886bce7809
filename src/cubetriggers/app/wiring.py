"""Default dependency wiring for use-cases."""

from __future__ import annotations

from dataclasses import dataclass

from cubetriggers.aggregate_engine import AggregateEngine
from cubetriggers.app.use_cases.imports import ImportUseCase
from cubetriggers.app.use_cases.triggers import TriggerQueryUseCase
from cubetriggers.config import Settings, get_settings
from cubetriggers.db.trigger_store import TriggerStore, build_trigger_store
from cubetriggers.event_channel import ImportEventChannel
from cubetriggers.import_orchestrator import ImportOrchestrator
from cubetriggers.job_queue import JobQueue


@dataclass(frozen=True)
class TriggerPipeline:
    """Every long-lived component of the import pipeline, built once."""

    settings: Settings
    store: TriggerStore
    events: ImportEventChannel
    orchestrator: ImportOrchestrator
    engine: AggregateEngine
    jobs: JobQueue
    imports: ImportUseCase
    triggers: TriggerQueryUseCase


def build_pipeline(
    settings: Settings | None = None,
    store: TriggerStore | None = None,
    *,
    initialize: bool = True,
) -> TriggerPipeline:
    """
    Wire the store, event channel, job runners, and use cases together.

    Workers are not started; call ``pipeline.jobs.start()`` (or use the job
    queue as a context manager) before enqueueing work.
    """
    resolved_settings = settings or get_settings()
    resolved_store = store or build_trigger_store(resolved_settings)
    if initialize:
        resolved_store.initialize()
    events = ImportEventChannel()
    orchestrator = ImportOrchestrator(resolved_store, events, resolved_settings)
    engine = AggregateEngine(resolved_store, events)
    jobs = JobQueue(orchestrator, engine, resolved_settings)
    return TriggerPipeline(
        settings=resolved_settings,
        store=resolved_store,
        events=events,
        orchestrator=orchestrator,
        engine=engine,
        jobs=jobs,
        imports=ImportUseCase(store=resolved_store, jobs=jobs),
        triggers=TriggerQueryUseCase(store=resolved_store),
    )
