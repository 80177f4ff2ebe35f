"""Deterministic timers: ordering, cancellation and round-scoped groups."""

from __future__ import annotations

import pytest

from framework.scheduler import ManualScheduler, MonotonicScheduler, TimerGroup


def test_callbacks_fire_in_due_order_with_ties_in_scheduling_order() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    scheduler.call_later(200, lambda: fired.append("late"))
    scheduler.call_later(100, lambda: fired.append("first"))
    scheduler.call_later(100, lambda: fired.append("second"))

    assert scheduler.advance(99) == 0
    assert scheduler.advance(1) == 2
    assert fired == ["first", "second"]
    assert scheduler.now_ms() == 100

    scheduler.advance(500)
    assert fired == ["first", "second", "late"]


def test_cancelled_handles_never_fire() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    handle = scheduler.call_later(10, lambda: fired.append("x"))
    handle.cancel()

    scheduler.advance(50)
    assert fired == []
    assert scheduler.pending() == []


def test_raising_callback_still_moves_the_clock_to_the_target() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    scheduler.call_later(10, boom)
    scheduler.call_later(20, lambda: fired.append("late"))

    with pytest.raises(RuntimeError):
        scheduler.advance(100)
    assert scheduler.now_ms() == 100
    assert fired == []

    assert scheduler.pump() == 1
    assert fired == ["late"]


def test_negative_delays_are_rejected() -> None:
    scheduler = ManualScheduler()
    with pytest.raises(ValueError):
        scheduler.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        scheduler.advance(-5)


def test_callbacks_scheduled_while_firing_use_the_firing_time() -> None:
    scheduler = ManualScheduler()
    seen: list[float] = []

    def chain() -> None:
        seen.append(scheduler.now_ms())
        if len(seen) < 3:
            scheduler.call_later(100, chain)

    scheduler.call_later(100, chain)
    scheduler.advance(1000)
    assert seen == [100, 200, 300]


def test_closing_a_group_cancels_its_timers_only() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    stale = TimerGroup(scheduler, owner="round-1")
    live = TimerGroup(scheduler, owner="round-2")
    stale.call_later(100, lambda: fired.append("stale"), label="settle")
    live.call_later(100, lambda: fired.append("live"), label="settle")

    assert stale.pending_labels() == ["settle"]
    stale.close()
    assert stale.pending_labels() == []
    with pytest.raises(RuntimeError):
        stale.call_later(10, lambda: None)

    scheduler.advance(100)
    assert fired == ["live"]


def test_repeating_timer_runs_until_cancelled() -> None:
    scheduler = ManualScheduler()
    group = TimerGroup(scheduler, owner="round-1")
    ticks: list[float] = []
    repeating = group.call_every(50, lambda: ticks.append(scheduler.now_ms()), initial_delay_ms=100)

    scheduler.advance(200)
    assert ticks == [100, 150, 200]

    repeating.cancel()
    scheduler.advance(200)
    assert ticks == [100, 150, 200]


def test_monotonic_scheduler_fires_on_pump() -> None:
    now = [10.0]
    scheduler = MonotonicScheduler(clock=lambda: now[0])
    fired: list[str] = []
    scheduler.call_later(500, lambda: fired.append("go"))

    assert scheduler.pump() == 0
    now[0] += 0.6
    assert scheduler.pump() == 1
    assert fired == ["go"]
