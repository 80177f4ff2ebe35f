"""Bounded strike counter for the guessing phases."""

from __future__ import annotations

from dataclasses import dataclass

from framework.state import Record

MAX_STRIKES = 3
STEAL_STRIKES = 1


@dataclass(frozen=True)
class StrikeTracker(Record):
    """Counts wrong guesses within one phase.

    A tracker belongs to exactly one MainRound or StealAttempt phase value;
    leaving the phase discards it, which is what resets the count.
    """

    limit: int = MAX_STRIKES
    count: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("StrikeTracker.limit must be >= 1.")
        if self.count < 0 or self.count > self.limit:
            raise ValueError(f"StrikeTracker.count must be within 0..{self.limit}.")

    @property
    def reached(self) -> bool:
        """Whether the threshold has been hit."""
        return self.count >= self.limit

    @property
    def remaining(self) -> int:
        return self.limit - self.count

    def record(self) -> "StrikeTracker":
        """Return a tracker with one more strike."""
        if self.reached:
            raise ValueError(f"Strike limit of {self.limit} already reached.")
        return StrikeTracker(limit=self.limit, count=self.count + 1)

    def reset(self) -> "StrikeTracker":
        return StrikeTracker(limit=self.limit, count=0)


def main_round_tracker(limit: int = MAX_STRIKES) -> StrikeTracker:
    return StrikeTracker(limit=limit)


def steal_tracker() -> StrikeTracker:
    """Steals are single-shot: the first miss reaches the limit."""
    return StrikeTracker(limit=STEAL_STRIKES)
