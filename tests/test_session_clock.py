"""
Tests for the per-session timer slot.
"""
from conftest import ManualTimerFactory
from quiz_host.core.services.session_clock import SessionClock, TimerKind, thread_timer_factory


def test_schedule_replaces_live_timer():
    factory = ManualTimerFactory()
    clock = SessionClock(factory)
    fired = []

    first = clock.schedule(TimerKind.COUNTDOWN, 3, fired.append)
    second = clock.schedule(TimerKind.DURATION, 10, fired.append)

    assert factory.timers[0].cancelled
    assert not clock.is_live(first)
    assert clock.is_live(second)
    assert clock.pending_kind is TimerKind.DURATION


def test_callback_receives_its_token():
    factory = ManualTimerFactory()
    clock = SessionClock(factory)
    fired = []

    token = clock.schedule(TimerKind.COUNTDOWN, 3, fired.append)
    factory.latest.fire()

    assert fired == [token]


def test_cancel_returns_kind_and_empties_slot():
    clock = SessionClock(ManualTimerFactory())
    clock.schedule(TimerKind.COUNTDOWN, 3, lambda token: None)

    assert clock.cancel() is TimerKind.COUNTDOWN
    assert clock.cancel() is None
    assert clock.pending_kind is None


def test_release_ignores_superseded_token():
    clock = SessionClock(ManualTimerFactory())
    old = clock.schedule(TimerKind.COUNTDOWN, 3, lambda token: None)
    new = clock.schedule(TimerKind.DURATION, 5, lambda token: None)

    clock.release(old)
    assert clock.is_live(new)

    clock.release(new)
    assert clock.pending_kind is None


def test_thread_timer_factory_builds_daemon_timer():
    timer = thread_timer_factory(60, lambda token: None, (1,))
    try:
        assert timer.daemon
        assert timer.interval == 60
    finally:
        timer.cancel()
