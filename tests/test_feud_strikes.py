from __future__ import annotations

import pytest

from feud.feud_strikes import MAX_STRIKES, StrikeTracker, main_round_tracker, steal_tracker


def test_main_round_tracker_reaches_limit_after_three_strikes() -> None:
    tracker = main_round_tracker()
    assert tracker.limit == MAX_STRIKES == 3

    for expected in (1, 2, 3):
        assert not tracker.reached
        tracker = tracker.record()
        assert tracker.count == expected

    assert tracker.reached
    assert tracker.remaining == 0
    with pytest.raises(ValueError):
        tracker.record()


def test_steal_tracker_is_single_shot() -> None:
    tracker = steal_tracker()
    assert not tracker.reached
    assert tracker.record().reached


def test_reset_keeps_limit() -> None:
    tracker = StrikeTracker(limit=5, count=4).reset()
    assert tracker == StrikeTracker(limit=5, count=0)


def test_invalid_tracker_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        StrikeTracker(limit=0)
    with pytest.raises(ValueError):
        StrikeTracker(limit=3, count=4)
