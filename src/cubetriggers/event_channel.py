"""Import progress events and the in-process channel that fans them out."""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum
from queue import Empty, Queue
from threading import Lock

from pydantic import BaseModel, Field

from cubetriggers.utils import Now
from cubetriggers.utils.logger import get_logger

logger = get_logger(__name__)


class ImportEventType(StrEnum):
    IMPORT_PROGRESS = "IMPORT_PROGRESS"
    IMPORT_COMPLETED = "IMPORT_COMPLETED"
    IMPORT_FAILED = "IMPORT_FAILED"
    TRIGGERS_UPDATED = "TRIGGERS_UPDATED"


class ImportProgressEvent(BaseModel):
    import_run_id: str
    total_algorithms: int
    processed_algorithms: int
    current_algorithm: str | None = None
    status: str
    percentage: int = Field(ge=0, le=100)
    timestamp: str = Field(default_factory=Now.as_iso)


class ImportCompletedEvent(BaseModel):
    import_run_id: str
    total_algorithms: int
    processed_algorithms: int
    new_triggers_count: int
    duration_ms: int
    timestamp: str = Field(default_factory=Now.as_iso)


class ImportFailedEvent(BaseModel):
    import_run_id: str
    message: str
    processed_algorithms: int
    total_algorithms: int
    # True when the job queue will deliver the run again.
    retrying: bool = False
    timestamp: str = Field(default_factory=Now.as_iso)


class TriggersUpdatedEvent(BaseModel):
    import_run_id: str
    source_ids: list[str] = Field(default_factory=list)
    ngram_count: int = 0
    timestamp: str = Field(default_factory=Now.as_iso)


ImportEvent = ImportProgressEvent | ImportCompletedEvent | ImportFailedEvent | TriggersUpdatedEvent

EVENT_TYPES: dict[type[BaseModel], ImportEventType] = {
    ImportProgressEvent: ImportEventType.IMPORT_PROGRESS,
    ImportCompletedEvent: ImportEventType.IMPORT_COMPLETED,
    ImportFailedEvent: ImportEventType.IMPORT_FAILED,
    TriggersUpdatedEvent: ImportEventType.TRIGGERS_UPDATED,
}


class EventSubscription:
    """A listener's private queue of events; unregisters itself on close."""

    def __init__(self, channel: ImportEventChannel, event_types: frozenset[ImportEventType]) -> None:
        self._channel = channel
        self.event_types = event_types
        self._queue: Queue[tuple[ImportEventType, ImportEvent]] = Queue()
        self.closed = False

    def accepts(self, event_type: ImportEventType) -> bool:
        return not self.event_types or event_type in self.event_types

    def deliver(self, event_type: ImportEventType, event: ImportEvent) -> None:
        if not self.closed:
            self._queue.put_nowait((event_type, event))

    def get(self, timeout: float | None = None) -> tuple[ImportEventType, ImportEvent] | None:
        """Return the next event, or None once ``timeout`` elapses."""
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self) -> list[tuple[ImportEventType, ImportEvent]]:
        """Return every event queued so far without waiting."""
        events: list[tuple[ImportEventType, ImportEvent]] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except Empty:
                return events

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._channel.unsubscribe(self)

    def __iter__(self) -> Iterator[tuple[ImportEventType, ImportEvent]]:
        return iter(self.drain())

    def __enter__(self) -> EventSubscription:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class ImportEventChannel:
    """
    Publish/subscribe channel for import lifecycle events.

    One instance is built by the application wiring and handed to the import
    orchestrator and the aggregate engine. Publishing enqueues onto each
    matching subscription's own queue and returns immediately; zero
    subscribers is fine.

    Examples
    --------
    >>> channel = ImportEventChannel()
    >>> with channel.subscribe(ImportEventType.IMPORT_COMPLETED) as subscription:
    ...     channel.publish(ImportCompletedEvent(
    ...         import_run_id="run-1", total_algorithms=1, processed_algorithms=1,
    ...         new_triggers_count=0, duration_ms=3))
    ...     [event_type for event_type, _ in subscription.drain()]
    [<ImportEventType.IMPORT_COMPLETED: 'IMPORT_COMPLETED'>]
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._subscriptions: list[EventSubscription] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, *event_types: ImportEventType) -> EventSubscription:
        """Subscribe to the given event types, or to all of them when none are named."""
        subscription = EventSubscription(self, frozenset(event_types))
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: EventSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ImportEvent) -> None:
        event_type = EVENT_TYPES[type(event)]
        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.accepts(event_type)]
        for subscription in targets:
            subscription.deliver(event_type, event)
        logger.debug("Published %s to %s subscribers", event_type, len(targets))
