"""Match-level score ledger."""

from __future__ import annotations

from dataclasses import dataclass

from framework.state import Record

from .feud_round import RoundOutcome
from .feud_state import Team


@dataclass(frozen=True)
class Scoreboard(Record):
    """Running totals across rounds."""

    total_rounds: int
    team_one: int = 0
    team_two: int = 0
    rounds_played: int = 0

    def __post_init__(self) -> None:
        if self.total_rounds < 1:
            raise ValueError("total_rounds must be >= 1.")

    def score_for(self, team: Team) -> int:
        return self.team_one if team is Team.ONE else self.team_two

    def record_round(self, outcome: RoundOutcome) -> "Scoreboard":
        """Credit the round's points to its winner."""
        if self.is_final:
            raise ValueError("All configured rounds have already been scored.")
        if outcome.points < 0:
            raise ValueError("Round points cannot be negative.")
        if outcome.winner is Team.ONE:
            return self.evolve(team_one=self.team_one + outcome.points, rounds_played=self.rounds_played + 1)
        return self.evolve(team_two=self.team_two + outcome.points, rounds_played=self.rounds_played + 1)

    @property
    def is_final(self) -> bool:
        return self.rounds_played >= self.total_rounds

    @property
    def current_round(self) -> int:
        """1-based number of the round being played (capped at the last round)."""
        return min(self.rounds_played + 1, self.total_rounds)

    def leader(self) -> Team | None:
        """Team ahead on points, or None when level."""
        if self.team_one > self.team_two:
            return Team.ONE
        if self.team_two > self.team_one:
            return Team.TWO
        return None

    def match_winner(self) -> Team | None:
        """Winner once every round is scored; None means a tie."""
        if not self.is_final:
            raise ValueError(f"Match is not over: {self.rounds_played}/{self.total_rounds} rounds scored.")
        return self.leader()

    def as_scores(self) -> dict[str, float]:
        return {Team.ONE.value: float(self.team_one), Team.TWO.value: float(self.team_two)}
