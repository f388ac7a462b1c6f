"""Tests for the diagnostic event log: bound, snapshots, subscriptions, persistence."""

import json

from liftlog.schemas.events import EventStatus
from liftlog.services.api_events import MAX_EVENTS, ApiEventLog
from liftlog.services.local_store import API_EVENTS_KEY, JsonFileStore, MemoryStore

from conftest import FailingStore


def test_record_assigns_id_and_timestamp(event_log, clock):
    evt = event_log.record("info", "GoogleSheets", "logWorkout", "Logging Push-ups")
    assert evt.id
    assert evt.timestamp == clock.now_ms
    assert evt.status == EventStatus.info
    assert event_log.list() == [evt]


def test_ids_are_unique(event_log):
    ids = {event_log.record("info", "s", "a", str(i)).id for i in range(50)}
    assert len(ids) == 50


def test_keeps_only_most_recent_100_oldest_first(event_log):
    for i in range(150):
        event_log.record("info", "s", "a", f"event {i}")
    events = event_log.list()
    assert len(events) == MAX_EVENTS
    assert [e.message for e in events] == [f"event {i}" for i in range(50, 150)]


def test_101st_event_evicts_the_oldest(event_log):
    for i in range(100):
        event_log.record("success", "s", "a", f"event {i}")
    first_id = event_log.list()[0].id
    event_log.record("info", "s", "a", "one more")
    events = event_log.list()
    assert len(events) == 100
    assert first_id not in {e.id for e in events}
    assert events[-1].message == "one more"


def test_list_returns_a_copy(event_log):
    event_log.record("info", "s", "a", "m")
    snapshot = event_log.list()
    snapshot.clear()
    assert len(event_log.list()) == 1


def test_subscriber_snapshot_not_affected_by_later_records(event_log):
    received = []
    event_log.subscribe(received.append)
    event_log.record("info", "s", "a", "first")
    event_log.record("error", "s", "a", "second")
    assert [e.message for e in received[0]] == ["first"]
    assert [e.message for e in received[1]] == ["first", "second"]


def test_unsubscribe_stops_notifications(event_log):
    received = []
    unsubscribe = event_log.subscribe(received.append)
    event_log.record("info", "s", "a", "m1")
    unsubscribe()
    unsubscribe()
    event_log.record("info", "s", "a", "m2")
    assert len(received) == 1


def test_subscriptions_are_independent(event_log):
    a, b = [], []
    unsub_a = event_log.subscribe(a.append)
    event_log.subscribe(b.append)
    unsub_a()
    event_log.record("info", "s", "a", "m")
    assert a == []
    assert len(b) == 1


def test_unsubscribe_during_notification(event_log):
    calls = []
    handles = {}

    def first(events):
        calls.append("first")
        handles["second"]()

    def second(events):
        calls.append("second")

    handles["first"] = event_log.subscribe(first)
    handles["second"] = event_log.subscribe(second)
    event_log.record("info", "s", "a", "m1")
    event_log.record("info", "s", "a", "m2")
    assert calls.count("first") == 2
    assert calls.count("second") == 1


def test_raising_subscriber_does_not_break_record(event_log):
    received = []

    def broken(events):
        raise RuntimeError("boom")

    event_log.subscribe(broken)
    event_log.subscribe(received.append)
    evt = event_log.record("error", "s", "a", "m")
    assert received[-1][-1] == evt


def test_reset_clears_persists_and_notifies(event_log, store):
    received = []
    event_log.record("info", "s", "a", "m")
    event_log.subscribe(received.append)
    event_log.reset()
    assert event_log.list() == []
    assert received == [[]]
    assert json.loads(store.get(API_EVENTS_KEY)) == []


def test_events_persist_and_reload(store, clock):
    log = ApiEventLog(store, clock=clock)
    log.record("success", "LocalStorage", "logWorkout", "saved", {"total": 1})
    log.record("info", "GoogleSheets", "getWorkoutHistory", "reading")
    reloaded = ApiEventLog(store, clock=clock)
    assert [e.message for e in reloaded.list()] == ["saved", "reading"]
    assert reloaded.list()[0].meta == {"total": 1}
    stored = json.loads(store.get(API_EVENTS_KEY))
    assert "meta" not in stored[1]


def test_corrupt_persisted_state_starts_empty():
    store = MemoryStore({API_EVENTS_KEY: "{not json"})
    assert ApiEventLog(store).list() == []
    store = MemoryStore({API_EVENTS_KEY: json.dumps([{"id": "x"}, "junk"])})
    assert ApiEventLog(store).list() == []


def test_failing_store_never_raises():
    log = ApiEventLog(FailingStore())
    log.record("error", "s", "a", "m", {"unserializable": object()})
    log.reset()
    assert log.list() == []


def test_unknown_status_is_recorded_as_info(event_log):
    evt = event_log.record("warning", "s", "a", "m")
    assert evt.status == EventStatus.info


def test_filter_newest_first_by_status(event_log):
    event_log.record("info", "s", "a", "i1")
    event_log.record("error", "s", "a", "e1")
    event_log.record("error", "s", "a", "e2")
    assert [e.message for e in event_log.filter()] == ["e2", "e1", "i1"]
    assert [e.message for e in event_log.filter("error")] == ["e2", "e1"]
    assert event_log.filter(EventStatus.success) == []


def test_non_utf8_persisted_state_starts_empty(tmp_path, clock):
    (tmp_path / "api_events.json").write_bytes(b"\xff\xfe\x00garbage")
    log = ApiEventLog(JsonFileStore(tmp_path), clock=clock)
    assert log.list() == []
    # The next record replaces the unreadable file
    log.record("info", "LocalStorage", "logWorkout", "saving")
    assert [e["message"] for e in json.loads((tmp_path / "api_events.json").read_text())] == ["saving"]


def test_record_is_on_disk_when_it_returns(tmp_path, clock):
    log = ApiEventLog(JsonFileStore(tmp_path), clock=clock)
    evt = log.record("success", "LocalStorage", "logWorkout", "saved", {"total": 1})
    stored = json.loads((tmp_path / "api_events.json").read_text())
    assert [e["id"] for e in stored] == [evt.id]
