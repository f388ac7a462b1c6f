"""
Bounded, subscribable log of sync attempts (the API status console feed).

One ApiEventLog per app (kept on app.state) and one per test. The log never
raises from its public methods: persistence failures and misbehaving
subscribers are logged and ignored, since diagnostics are advisory only.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable

from pydantic import ValidationError

from liftlog.schemas.events import DiagnosticEvent, EventStatus
from liftlog.services.local_store import API_EVENTS_KEY, LocalStore, read_json, write_json

logger = logging.getLogger(__name__)

MAX_EVENTS = 100

Subscriber = Callable[[list[DiagnosticEvent]], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _load_events(store: LocalStore, limit: int) -> list[DiagnosticEvent]:
    data = read_json(store, API_EVENTS_KEY, [])
    if not isinstance(data, list):
        return []
    out: list[DiagnosticEvent] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            out.append(DiagnosticEvent.model_validate(item))
        except ValidationError:
            continue
    return out[-limit:]


class ApiEventLog:
    def __init__(
        self,
        store: LocalStore,
        *,
        max_events: int = MAX_EVENTS,
        clock: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._max_events = max(1, max_events)
        self._clock = clock
        self._events: list[DiagnosticEvent] = _load_events(store, self._max_events)
        self._subscribers: dict[object, Subscriber] = {}

    def record(
        self,
        status: EventStatus | str,
        source: str,
        action: str,
        message: str,
        meta: dict[str, Any] | None = None,
    ) -> DiagnosticEvent:
        """Append an event, evicting the oldest beyond max_events, then persist and notify."""
        try:
            status = EventStatus(status)
        except ValueError:
            logger.warning("Unknown event status %r, recording as info", status)
            status = EventStatus.info
        if meta is not None and not isinstance(meta, dict):
            meta = {"value": repr(meta)}
        event = DiagnosticEvent(
            id=uuid.uuid4().hex,
            timestamp=self._clock(),
            status=status,
            source=source,
            action=action,
            message=message,
            meta=meta,
        )
        events = [*self._events, event]
        if len(events) > self._max_events:
            events = events[-self._max_events:]
        self._events = events
        self._persist()
        self._emit()
        return event

    def list(self) -> list[DiagnosticEvent]:
        """Snapshot copy, oldest first."""
        return list(self._events)

    def filter(self, status: EventStatus | str | None = None) -> list[DiagnosticEvent]:
        """Newest first, optionally only one status (what the status console shows)."""
        events = self._events
        if status is not None:
            events = [e for e in events if e.status == EventStatus(status)]
        return list(reversed(events))

    def reset(self) -> None:
        self._events = []
        self._persist()
        self._emit()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback for every future record/reset. Returns an idempotent unsubscribe."""
        token = object()
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def _persist(self) -> None:
        """
        Write the whole list (at most max_events small dicts) through the store.
        Runs inline on the caller's thread: record() is synchronous and an event
        is durable once it returns. Workout log I/O goes through asyncio.to_thread instead.
        """
        try:
            payload = [e.model_dump(mode="json", exclude_none=True) for e in self._events]
            ok = write_json(self._store, API_EVENTS_KEY, payload)
        except Exception as e:
            logger.warning("Event log: persist failed: %s", e)
            return
        if not ok:
            logger.debug("Event log: persist skipped (store write failed)")

    def _emit(self) -> None:
        # Iterate over a copy so callbacks may unsubscribe (themselves or others) safely
        for callback in list(self._subscribers.values()):
            try:
                callback(list(self._events))
            except Exception:
                logger.exception("Event log subscriber failed")
