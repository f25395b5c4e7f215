from datetime import datetime, timedelta, timezone

import numpy as np

from faceattend.data import EventType, Registry

from conftest import unit


def test_add_assigns_unique_ids_and_enrollment_time(registry):
    before = datetime.now(timezone.utc)
    a = registry.add("Alice", "R&D", unit(0), "data:image/jpeg;base64,AAAA")
    b = registry.add("Alice", "R&D", unit(0))

    assert a.id != b.id
    assert a.registered_at >= before
    assert a.photo.startswith("data:image/jpeg")
    assert a.descriptor.dtype == np.float32
    assert len(registry) == 2
    assert a.id in registry


def test_null_descriptor_is_accepted(registry):
    manual = registry.add("Carol", "Facilities")
    assert manual.descriptor is None
    assert not manual.has_descriptor
    assert registry.get(manual.id) is manual


def test_list_is_a_snapshot(registry):
    registry.add("Alice", "R&D", unit(0))
    snapshot = registry.list()
    registry.add("Bob", "Sales", unit(1))
    assert len(snapshot) == 1
    assert len(registry.list()) == 2


def test_remove_cascades_only_that_identity(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    bob = registry.add("Bob", "Sales", unit(1))
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(3):
        registry.record_attendance(alice, 0.5, timestamp=t0 + timedelta(minutes=i))
        registry.record_attendance(bob, 0.5, timestamp=t0 + timedelta(minutes=i, seconds=30))
    bob_records = [r for r in registry.records() if r.employee_id == bob.id]

    assert registry.remove(alice.id) is True

    assert alice.id not in registry
    assert registry.records() == bob_records
    assert registry.last_record(alice.id) is None


def test_remove_unknown_returns_false(registry):
    registry.add("Alice", "R&D", unit(0))
    assert registry.remove("nope") is False
    assert len(registry) == 1


def test_observers_never_see_dangling_records(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    registry.record_attendance(alice, 0.6)
    seen = []

    def observer(event, payload):
        dangling = [r for r in registry.records() if r.employee_id not in registry]
        seen.append((event, dangling))

    registry.subscribe(observer)
    registry.remove(alice.id)

    assert seen == [("identity_removed", [])]


def test_record_for_removed_identity_is_dropped(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    events = []
    registry.subscribe(lambda event, payload: events.append(event))
    registry.remove(alice.id)

    assert registry.record_attendance(alice, 0.7) is None
    assert registry.records() == []
    assert events == ["identity_removed"]


def test_observer_events_and_unsubscribe(registry):
    events = []
    callback = lambda event, payload: events.append(event)
    registry.subscribe(callback)

    alice = registry.add("Alice", "R&D", unit(0))
    registry.record_attendance(alice, 0.6)
    registry.clear_records()
    registry.unsubscribe(callback)
    registry.add("Bob", "Sales", unit(1))

    assert events == ["identity_added", "record_added", "records_cleared"]


def test_failing_observer_does_not_break_mutation(registry):
    def broken(event, payload):
        raise RuntimeError("boom")

    registry.subscribe(broken)
    alice = registry.add("Alice", "R&D", unit(0))
    assert alice.id in registry


def test_records_are_most_recent_first(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    first = registry.record_attendance(alice, 0.5)
    second = registry.record_attendance(alice, 0.6, EventType.CHECK_OUT)

    assert registry.records() == [second, first]
    assert registry.last_record(alice.id) == second
    assert second.type is EventType.CHECK_OUT


def test_state_survives_reload(store):
    registry = Registry(store)
    alice = registry.add("Alice", "R&D", unit(4, 0.25))
    manual = registry.add("Carol", "Facilities")
    record = registry.record_attendance(alice, 0.61)

    reloaded = Registry(store)

    assert reloaded.get(alice.id) == alice
    assert reloaded.get(manual.id).descriptor is None
    assert reloaded.records() == [record]


def test_reload_orders_records_by_time(store):
    registry = Registry(store)
    alice = registry.add("Alice", "R&D", unit(0))
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    late = registry.record_attendance(alice, 0.5, timestamp=t0 + timedelta(hours=1))
    early = registry.record_attendance(alice, 0.5, timestamp=t0)

    assert Registry(store).records() == [late, early]


def test_today_records_and_stats(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    registry.add("Carol", "Facilities")
    now = datetime.now(timezone.utc)
    registry.record_attendance(alice, 0.5, timestamp=now - timedelta(days=2))
    today = registry.record_attendance(alice, 0.5, timestamp=now)

    assert registry.today_records(now) == [today]
    assert registry.stats(now) == {
        'registered': 2,
        'enrolled_biometric': 1,
        'records_total': 2,
        'records_today': 1,
    }


def test_clear_records_keeps_identities(registry):
    alice = registry.add("Alice", "R&D", unit(0))
    registry.record_attendance(alice, 0.5)
    registry.clear_records()
    assert registry.records() == []
    assert alice.id in registry
