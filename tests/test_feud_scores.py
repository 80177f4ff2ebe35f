from __future__ import annotations

import pytest

from feud.feud_round import RoundOutcome
from feud.feud_scores import Scoreboard
from feud.feud_state import Team


def _outcome(winner: Team, points: int, index: int = 1) -> RoundOutcome:
    return RoundOutcome(round_id=f"r{index}", category=f"Category {index}", winner=winner, points=points)


def test_points_go_to_the_round_winner() -> None:
    board = Scoreboard(total_rounds=3)
    board = board.record_round(_outcome(Team.ONE, 18, 1))
    board = board.record_round(_outcome(Team.TWO, 12, 2))

    assert board.score_for(Team.ONE) == 18
    assert board.score_for(Team.TWO) == 12
    assert board.rounds_played == 2
    assert board.current_round == 3
    assert not board.is_final
    with pytest.raises(ValueError):
        board.match_winner()


def test_higher_total_wins_after_the_final_round() -> None:
    board = Scoreboard(total_rounds=1).record_round(_outcome(Team.TWO, 5))

    assert board.is_final
    assert board.match_winner() is Team.TWO
    assert board.as_scores() == {"TEAM_ONE": 0.0, "TEAM_TWO": 5.0}
    with pytest.raises(ValueError):
        board.record_round(_outcome(Team.ONE, 1, 2))


def test_level_scores_are_a_tie() -> None:
    board = Scoreboard(total_rounds=2)
    board = board.record_round(_outcome(Team.ONE, 10, 1))
    board = board.record_round(_outcome(Team.TWO, 10, 2))

    assert board.match_winner() is None
    assert board.leader() is None


def test_zero_point_rounds_still_count() -> None:
    board = Scoreboard(total_rounds=1).record_round(_outcome(Team.ONE, 0))
    assert board.is_final
    assert board.match_winner() is None
