"""Shared plumbing for back office services."""

from __future__ import annotations

import itertools
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Protocol

from bookstore.exceptions import LifecycleError
from bookstore.logging import get_logger
from bookstore.models.base import Event
from bookstore.sinks.serialization import to_dict
from bookstore.store.backoffice import BookstoreDataStore

IdFactory = Callable[[str], str]


class EventSink(Protocol):
    """Anything with the sinks' ``send`` signature."""

    def send(self, topic: str, record: Any, key: str | None = None) -> None: ...


def uuid_ids(prefix: str) -> str:
    """Default identifier factory: ``loan-1f2e3d4c5b6a``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def sequential_ids() -> IdFactory:
    """Deterministic factory for simulations and tests: ``loan-000001``."""
    counters: dict[str, Iterator[int]] = {}

    def next_id(prefix: str) -> str:
        counter = counters.setdefault(prefix, itertools.count(1))
        return f"{prefix}-{next(counter):06d}"

    return next_id


class BaseService:
    """Load, mutate, save, publish.

    Parameters
    ----------
    store : BookstoreDataStore
        Repository collaborator.
    sink : EventSink | None
        Optional destination for lifecycle events.
    topic_prefix : str
        Events go to ``<topic_prefix>.<entity>-events``.
    id_factory : IdFactory | None
        Generates identifiers for new entities.
    """

    SOURCE = "bookstore-backoffice"

    def __init__(
        self,
        store: BookstoreDataStore,
        sink: EventSink | None = None,
        topic_prefix: str = "dev.bookstore",
        id_factory: IdFactory | None = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.topic_prefix = topic_prefix
        self.new_id = id_factory or uuid_ids

    @contextmanager
    def _transition(self, entity: str, entity_id: str, action: str) -> Iterator[None]:
        """Log rejected transitions before letting the error propagate."""
        try:
            yield
        except LifecycleError as exc:
            log = get_logger(__name__, entity=entity, entity_id=entity_id, action=action)
            log.warning("Rejected %s: %s", exc.code, exc.message, extra={"extra": exc.to_dict()})
            raise

    def _publish(self, entity: str, entity_id: str, action: str, record: Any, now: datetime) -> Event:
        """Build the event for an accepted transition and hand it to the sink."""
        event = Event(
            event_id=str(uuid.uuid4()),
            event_type=f"{entity}.{action}",
            event_time=now,
            source=self.SOURCE,
            subject=entity_id,
            data=to_dict(record),
            metadata={"status": getattr(getattr(record, "status", None), "value", None)},
        )
        log = get_logger(__name__, entity=entity, entity_id=entity_id, event_id=event.event_id)
        log.info("%s %s -> %s", entity.capitalize(), entity_id, action)
        if self.sink is not None:
            self.sink.send(f"{self.topic_prefix}.{entity}-events", event, key=entity_id)
        return event
