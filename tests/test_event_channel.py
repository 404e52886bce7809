import pytest
from pydantic import ValidationError

from cubetriggers.event_channel import (
    ImportCompletedEvent,
    ImportEventChannel,
    ImportEventType,
    ImportFailedEvent,
    ImportProgressEvent,
    TriggersUpdatedEvent,
)


def _progress(percentage: int = 5) -> ImportProgressEvent:
    return ImportProgressEvent(
        import_run_id="run-1",
        total_algorithms=2,
        processed_algorithms=0,
        status="Parsed 2 algorithms",
        percentage=percentage,
    )


def test_publish_without_subscribers_is_a_no_op() -> None:
    channel = ImportEventChannel()

    channel.publish(_progress())

    assert channel.subscriber_count == 0


def test_subscription_receives_events_in_publish_order() -> None:
    channel = ImportEventChannel()
    subscription = channel.subscribe()

    channel.publish(_progress(0))
    channel.publish(_progress(5))
    channel.publish(
        ImportFailedEvent(
            import_run_id="run-1", message="boom", processed_algorithms=0, total_algorithms=2
        )
    )

    received = subscription.drain()
    assert [event_type for event_type, _ in received] == [
        ImportEventType.IMPORT_PROGRESS,
        ImportEventType.IMPORT_PROGRESS,
        ImportEventType.IMPORT_FAILED,
    ]
    assert [event.percentage for _, event in received[:2]] == [0, 5]


def test_subscription_filters_by_event_type() -> None:
    channel = ImportEventChannel()
    completed_only = channel.subscribe(ImportEventType.IMPORT_COMPLETED)
    everything = channel.subscribe()

    channel.publish(_progress())
    channel.publish(
        ImportCompletedEvent(
            import_run_id="run-1",
            total_algorithms=2,
            processed_algorithms=2,
            new_triggers_count=4,
            duration_ms=12,
        )
    )
    channel.publish(TriggersUpdatedEvent(import_run_id="run-1", source_ids=["a"], ngram_count=4))

    assert [event_type for event_type, _ in completed_only] == [ImportEventType.IMPORT_COMPLETED]
    assert len(everything.drain()) == 3


def test_closing_a_subscription_unregisters_it() -> None:
    channel = ImportEventChannel()
    with channel.subscribe() as subscription:
        assert channel.subscriber_count == 1

    channel.publish(_progress())

    assert subscription.closed is True
    assert channel.subscriber_count == 0
    assert subscription.drain() == []


def test_get_times_out_with_none() -> None:
    channel = ImportEventChannel()
    subscription = channel.subscribe()

    assert subscription.get(timeout=0.01) is None

    channel.publish(_progress())
    event_type, event = subscription.get(timeout=0.01)
    assert event_type is ImportEventType.IMPORT_PROGRESS
    assert event.import_run_id == "run-1"


def test_progress_percentage_is_bounded() -> None:
    with pytest.raises(ValidationError):
        _progress(101)


def test_events_carry_iso_timestamps() -> None:
    event = _progress()

    assert "T" in event.timestamp
    assert event.timestamp.endswith("+00:00")
