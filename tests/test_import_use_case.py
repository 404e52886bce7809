from __future__ import annotations

import pytest

from cubetriggers.aggregate_engine import AggregateEngine
from cubetriggers.app.use_cases import ImportUseCase, StartImportRequest, TriggerQueryUseCase
from cubetriggers.app.wiring import build_pipeline
from cubetriggers.domain.categories import AlgorithmCategory
from cubetriggers.domain.import_status import ImportStatus
from cubetriggers.event_channel import ImportEventChannel
from cubetriggers.import_orchestrator import ImportOrchestrator
from cubetriggers.trigger_query_filters import TriggerQueryFilters
from tests.trigger_test_helpers import fetch_count, make_settings, make_store


class RecordingScheduler:
    def __init__(self) -> None:
        self.imports = []
        self.aggregates = []

    def enqueue_import(self, payload) -> None:
        self.imports.append(payload)

    def enqueue_aggregate(self, payload, delay_s=None) -> None:
        self.aggregates.append(payload)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def store(settings):
    return make_store(settings)


def test_start_import_creates_pending_run_and_queues_jobs(store) -> None:
    scheduler = RecordingScheduler()
    use_case = ImportUseCase(store=store, jobs=scheduler)

    run = use_case.start_import(
        StartImportRequest(
            source_name="J Perm",
            algorithms_text="Sune: R U R' U R U2 R'",
            description="PLL sheet",
        )
    )

    assert run.status is ImportStatus.PENDING
    [import_job] = scheduler.imports
    [aggregate_job] = scheduler.aggregates
    assert import_job.import_run_id == run.id
    assert import_job.source_id == run.source_id
    assert import_job.algorithms_text == "Sune: R U R' U R U2 R'"
    assert aggregate_job.import_run_id == run.id
    assert use_case.get_import_run(run.id) == run


def test_repeat_source_name_overwrites_metadata(store) -> None:
    use_case = ImportUseCase(store=store, jobs=RecordingScheduler())
    first = use_case.start_import(
        StartImportRequest(source_name="J Perm", algorithms_text="", source_url="https://a.example")
    )
    second = use_case.start_import(
        StartImportRequest(source_name="J Perm", algorithms_text="", description="updated")
    )

    [source] = use_case.list_sources()
    assert first.source_id == second.source_id == source.id
    assert source.description == "updated"
    assert source.url is None
    assert len(use_case.list_import_runs(source.id)) == 2
    assert use_case.list_import_runs("other") == []


def test_blank_source_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        StartImportRequest(source_name="", algorithms_text="R U")


def test_imported_triggers_are_queryable(settings, store) -> None:
    scheduler = RecordingScheduler()
    events = ImportEventChannel()
    use_case = ImportUseCase(store=store, jobs=scheduler)
    use_case.start_import(
        StartImportRequest(
            source_name="J Perm",
            algorithms_text="T-Perm: R U R' U' R' F R2 U' R' U' R U R' F'\nSexy: R U R' U'",
        )
    )
    ImportOrchestrator(store, events, settings).process(scheduler.imports[0])
    AggregateEngine(store, events).compute(scheduler.aggregates[0])
    queries = TriggerQueryUseCase(store=store)

    top = queries.top_triggers()
    pll = queries.top_triggers(TriggerQueryFilters(category=AlgorithmCategory.PLL, length=4))

    assert top[0].moves == "R U R' U'"
    assert top[0].total_occurrences == 2
    assert top[0].source_coverage == 1
    assert "R U R' U'" in {row.moves for row in pll}
    assert all(row.length == 4 for row in pll)
    assert all(ngram.length == 5 for ngram in queries.ngrams_by_length(5))
    assert "R' F R2 U'" in {ngram.moves for ngram in queries.search_triggers("f r2")}
    assert len(queries.top_triggers(limit=3)) == 3


def test_build_pipeline_wires_one_store(settings) -> None:
    pipeline = build_pipeline(settings)

    assert pipeline.store.backend == "DuckDB"
    assert pipeline.imports.store is pipeline.store
    assert pipeline.imports.jobs is pipeline.jobs
    assert pipeline.triggers.store is pipeline.store
    assert not pipeline.jobs.running
    assert fetch_count(settings, "schema_version") == 1


def test_pipeline_runs_an_import_end_to_end(settings) -> None:
    settings.jobs.import_workers = 1
    settings.jobs.aggregate_delay_s = 0.5
    pipeline = build_pipeline(settings)

    with pipeline.jobs:
        run = pipeline.imports.start_import(
            StartImportRequest(source_name="J Perm", algorithms_text="Sexy: R U R' U' R U R' U'")
        )
        pipeline.jobs.join()

    assert pipeline.jobs.failed_jobs == []
    assert pipeline.imports.get_import_run(run.id).status is ImportStatus.COMPLETED
    top = pipeline.triggers.top_triggers()
    assert top[0].moves == "R U R' U'"
    assert top[0].total_occurrences == 1
