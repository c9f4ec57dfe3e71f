from datetime import datetime, timedelta, timezone

from core.session import SessionManager

from conftest import FrozenClock


def make_manager(clock, **kwargs):
    return SessionManager(idle_timeout=timedelta(hours=24), clock=clock, **kwargs)


def test_get_or_create_returns_the_same_session():
    manager = make_manager(FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc)))
    first = manager.get_or_create("c1")
    assert manager.get_or_create("c1") is first
    assert manager.get("c2") is None


def test_idle_sessions_are_evicted():
    clock = FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc))
    manager = make_manager(clock)
    manager.get_or_create("old")
    clock.advance(hours=20)
    manager.get_or_create("recent")
    clock.advance(hours=5)

    assert manager.expire_idle() == 1
    assert manager.get("old") is None
    assert manager.get("recent") is not None


def test_activity_keeps_a_session_alive():
    clock = FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc))
    manager = make_manager(clock)
    manager.get_or_create("c1")
    clock.advance(hours=23)
    manager.get_or_create("c1")
    clock.advance(hours=23)
    assert manager.get("c1") is not None


def test_stats():
    manager = make_manager(FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc)))
    session = manager.get_or_create("c1")
    session.set_patient("p001", "John Doe")
    session.add_message("assistant", "hi")
    manager.get_or_create("c2")

    assert manager.stats() == {"active_sessions": 2, "identified_patients": 1, "total_messages": 1}


def test_history_keeps_most_recent_messages():
    manager = make_manager(FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc)))
    session = manager.get_or_create("c1")
    for i in range(5):
        session.add_message("assistant", str(i), limit=3)
    assert [m["content"] for m in session.history] == ["2", "3", "4"]


def test_clear_forgets_the_conversation():
    manager = make_manager(FrozenClock(datetime(2025, 10, 19, tzinfo=timezone.utc)))
    manager.get_or_create("c1").set_patient("p001", "John Doe")
    manager.clear("c1")

    assert manager.get("c1") is None
    assert manager.get_or_create("c1").patient_id is None
