"""Match-level rules: seats, host controls, scoring, observations and termination."""

from __future__ import annotations

import json

import pytest

from feud.feud_game import FeudGame
from feud.feud_moves import (
    AdvanceReveal,
    BeginFaceOff,
    Buzz,
    ChoosePlayOrPass,
    ContinueToScores,
    DeclareWrong,
    Settle,
    SkipCategory,
    SubmitGuess,
)
from feud.feud_state import HOST_PLAYER_ID, GamePhase
from framework.errors import IllegalMoveError, MatchConfigurationError
from framework.result import TerminationReason

TEAM_ONE = "TEAM_ONE"
TEAM_TWO = "TEAM_TWO"


def _category(label: str, difficulty: str = "Easy") -> dict:
    return {
        "category": label,
        "difficulty": difficulty,
        "answers": [
            {"text": "Pizza", "points": 10, "accepted": ["pizzas"]},
            {"text": "Tacos", "points": 8},
            {"text": "Burgers", "points": 6},
        ],
    }


def _config(**overrides) -> dict:
    config = {
        "categories": [_category("Delivery food"), _category("Late night food")],
        "total_rounds": 1,
        "strikeout_settle_ms": 0,
        "steal_settle_ms": 0,
    }
    config.update(overrides)
    return config


def _play_face_off(game: FeudGame, state, dinger: str = TEAM_ONE):
    other = TEAM_TWO if dinger == TEAM_ONE else TEAM_ONE
    state = game.apply_move(state, HOST_PLAYER_ID, Buzz(team=dinger))
    state = game.apply_move(state, dinger, SubmitGuess(text="Pizza"))
    state = game.apply_move(state, other, SubmitGuess(text="Noodles"))
    return game.apply_move(state, dinger, ChoosePlayOrPass(decision="play"))


def test_single_round_match_is_scored_and_won() -> None:
    game = FeudGame()
    state = game.new_game(seed=4, config=_config())
    assert state.phase is GamePhase.FACE_OFF
    assert game.current_player(state) == HOST_PLAYER_ID

    state = _play_face_off(game, state)
    assert game.current_player(state) == TEAM_ONE

    state = game.apply_move(state, TEAM_ONE, SubmitGuess(text="tacos"))
    state = game.apply_move(state, TEAM_ONE, SubmitGuess(text="Burgers"))
    assert state.phase is GamePhase.ROUND_REVEAL
    assert game.current_player(state) == HOST_PLAYER_ID

    state = game.apply_move(state, HOST_PLAYER_ID, AdvanceReveal())
    assert state.phase is GamePhase.ROUND_OVER
    state = game.apply_move(state, HOST_PLAYER_ID, ContinueToScores())

    assert game.is_terminal(state)
    result = game.outcome(state)
    assert result.winner == TEAM_ONE
    assert result.termination_reason is TerminationReason.NORMAL_WIN
    assert result.scores == {TEAM_ONE: 24.0, TEAM_TWO: 0.0}
    assert result.rounds_played == 1
    assert state.round_history[0]["points"] == 24


def test_steal_round_credits_the_stealing_team() -> None:
    game = FeudGame()
    state = _play_face_off(game, game.new_game(seed=4, config=_config()))
    state = game.apply_move(state, TEAM_ONE, SubmitGuess(text="Curry"))
    state = game.apply_move(state, TEAM_ONE, DeclareWrong())
    state = game.apply_move(state, HOST_PLAYER_ID, DeclareWrong())
    assert state.phase is GamePhase.STEAL_ATTEMPT
    assert game.current_player(state) == TEAM_TWO

    state = game.apply_move(state, TEAM_TWO, SubmitGuess(text="Tacos"))
    while state.phase is GamePhase.ROUND_REVEAL:
        state = game.apply_move(state, HOST_PLAYER_ID, AdvanceReveal())
    state = game.apply_move(state, HOST_PLAYER_ID, ContinueToScores())

    assert state.winner == TEAM_TWO
    assert state.scoreboard.team_two == 18


def test_pending_strike_out_is_settled_by_the_host() -> None:
    game = FeudGame()
    state = _play_face_off(game, game.new_game(seed=4, config=_config(strikeout_settle_ms=500)))
    for guess in ("Curry", "Salad", "Soup"):
        state = game.apply_move(state, TEAM_ONE, SubmitGuess(text=guess))

    assert state.round.pending_transition == "strikeout"
    assert game.current_player(state) == HOST_PLAYER_ID
    assert game.legal_moves(state, HOST_PLAYER_ID) == [Settle()]

    state = game.apply_move(state, HOST_PLAYER_ID, Settle())
    assert state.phase is GamePhase.STEAL_ATTEMPT


def test_buzz_relays_are_validated() -> None:
    game = FeudGame()
    state = game.new_game(seed=4, config=_config())

    with pytest.raises(IllegalMoveError):
        game.apply_move(state, HOST_PLAYER_ID, Buzz())
    with pytest.raises(IllegalMoveError):
        game.apply_move(state, TEAM_TWO, Buzz(team=TEAM_ONE))
    with pytest.raises(IllegalMoveError):
        game.apply_move(state, HOST_PLAYER_ID, Buzz(team="TEAM_THREE"))

    buzzed = game.apply_move(state, TEAM_TWO, Buzz())
    assert buzzed.round.dinger.value == TEAM_TWO
    assert game.apply_move(buzzed, TEAM_ONE, Buzz()) is buzzed


def test_skip_category_draws_an_unplayed_one_before_the_buzz() -> None:
    game = FeudGame()
    state = game.new_game(seed=9, config=_config())
    first = state.round.category
    assert state.can_skip
    assert SkipCategory() in game.legal_moves(state, HOST_PLAYER_ID)

    with pytest.raises(IllegalMoveError):
        game.apply_move(state, TEAM_ONE, SkipCategory())

    skipped = game.apply_move(state, HOST_PLAYER_ID, SkipCategory())
    assert skipped.round.category != first
    assert skipped.round.round_id != state.round.round_id
    assert set(skipped.used_categories) == {"Delivery food", "Late night food"}
    assert not skipped.can_skip
    with pytest.raises(IllegalMoveError):
        game.apply_move(skipped, HOST_PLAYER_ID, SkipCategory())


def test_skip_is_refused_after_the_buzz() -> None:
    game = FeudGame()
    state = game.new_game(seed=9, config=_config())
    state = game.apply_move(state, HOST_PLAYER_ID, Buzz(team=TEAM_ONE))

    assert not state.can_skip
    with pytest.raises(IllegalMoveError):
        game.apply_move(state, HOST_PLAYER_ID, SkipCategory())


def test_category_reveal_waits_for_the_host() -> None:
    game = FeudGame()
    state = game.new_game(seed=2, config=_config(category_reveal=True))
    assert state.phase is GamePhase.CATEGORY_REVEAL

    with pytest.raises(IllegalMoveError):
        game.apply_move(state, TEAM_ONE, BeginFaceOff())
    state = game.apply_move(state, HOST_PLAYER_ID, BeginFaceOff())
    assert state.phase is GamePhase.FACE_OFF


def test_running_out_of_categories_ends_the_match_with_the_leader() -> None:
    game = FeudGame()
    state = game.new_game(seed=1, config=_config(categories=[_category("Only one")], total_rounds=3))
    state = _play_face_off(game, state, dinger=TEAM_TWO)
    for guess in ("Tacos", "Burgers"):
        state = game.apply_move(state, TEAM_TWO, SubmitGuess(text=guess))
    state = game.apply_move(state, HOST_PLAYER_ID, AdvanceReveal())
    state = game.apply_move(state, HOST_PLAYER_ID, ContinueToScores())

    assert game.is_terminal(state)
    assert state.termination_reason is TerminationReason.CATEGORIES_EXHAUSTED
    assert state.winner == TEAM_TWO
    assert game.outcome(state).rounds_played == 1


def test_auto_reveal_without_pacing_finishes_the_round() -> None:
    game = FeudGame()
    state = _play_face_off(game, game.new_game(seed=4, config=_config(auto_reveal=True, reveal_step_ms=0)))
    for guess in ("Curry", "Salad", "Soup"):
        state = game.apply_move(state, TEAM_ONE, SubmitGuess(text=guess))
    state = game.apply_move(state, TEAM_TWO, SubmitGuess(text="Ramen"))

    assert state.phase is GamePhase.ROUND_OVER
    assert state.round.is_board_cleared
    assert state.round.round_points == 10


def test_teams_only_see_revealed_answers() -> None:
    game = FeudGame()
    state = game.apply_move(game.new_game(seed=4, config=_config()), HOST_PLAYER_ID, Buzz(team=TEAM_ONE))
    state = game.apply_move(state, TEAM_ONE, SubmitGuess(text="Tacos"))

    team_view = game.observation(state, TEAM_TWO)
    host_view = game.observation(state, HOST_PLAYER_ID)

    assert [slot["text"] for slot in team_view.board] == [None, "Tacos", None]
    assert [slot["text"] for slot in host_view.board] == ["Pizza", "Tacos", "Burgers"]
    assert team_view.face_off["turn"] == TEAM_TWO
    assert team_view.round_points == 8


def test_render_hides_unrevealed_answers_from_teams() -> None:
    game = FeudGame()
    state = game.apply_move(game.new_game(seed=4, config=_config()), HOST_PLAYER_ID, Buzz(team=TEAM_ONE))
    state = game.apply_move(state, TEAM_ONE, SubmitGuess(text="Tacos"))

    assert "Pizza" in game.render(state)
    team_text = game.render(state, TEAM_ONE)
    assert "Tacos" in team_text
    assert "Pizza" not in team_text


def test_team_legal_moves_offer_samples_and_decoys() -> None:
    game = FeudGame()
    state = _play_face_off(game, game.new_game(seed=4, config=_config()))

    spec = game.legal_moves(state, TEAM_ONE)
    assert isinstance(spec, dict)
    assert {move.text for move in spec["sample_moves"]} == {"Tacos", "Burgers"}
    assert DeclareWrong() in spec["decoy_moves"]
    assert game.legal_moves(state, TEAM_TWO) == []


def test_duplicate_guess_is_reported_through_is_legal() -> None:
    game = FeudGame()
    state = _play_face_off(game, game.new_game(seed=4, config=_config()))

    legal, reason = game.is_legal(state, TEAM_ONE, SubmitGuess(text="PIZZAS"))
    assert legal is False
    assert "already on the board" in reason


def test_abandoning_team_forfeits_to_the_other() -> None:
    game = FeudGame()
    state = game.abandon(game.new_game(seed=4, config=_config()), TEAM_ONE, "walked away")

    assert game.is_terminal(state)
    assert state.winner == TEAM_TWO
    assert game.outcome(state).termination_reason is TerminationReason.ABANDONED
    with pytest.raises(IllegalMoveError):
        game.apply_move(state, HOST_PLAYER_ID, Buzz(team=TEAM_ONE))


def test_parse_move_accepts_client_aliases() -> None:
    game = FeudGame()
    assert game.parse_move({"type": "SubmitGuess", "guess": "Pizza"}) == SubmitGuess(text="Pizza")
    assert game.parse_move({"type": "ChoosePlayOrPass", "choice": "PASS"}) == ChoosePlayOrPass(decision="pass")
    with pytest.raises(ValueError):
        game.parse_move({"type": "Teleport"})
    with pytest.raises(ValueError, match="Malformed SubmitGuess"):
        game.parse_move({"type": "SubmitGuess"})
    with pytest.raises(ValueError, match="Malformed Settle"):
        game.parse_move({"type": "Settle", "delay": 5})


@pytest.mark.parametrize(
    "overrides",
    [
        {"total_rounds": 0},
        {"difficulty": "Hard"},
        {"difficulty": "Impossible"},
        {"minigame": "tug_of_war"},
        {"max_strikes": -1},
    ],
)
def test_invalid_match_config_is_rejected(overrides: dict) -> None:
    with pytest.raises(MatchConfigurationError):
        FeudGame().new_game(seed=1, config=_config(**overrides))


def test_categories_path_config_loads_a_file(tmp_path) -> None:
    path = tmp_path / "bank.json"
    path.write_text(json.dumps([_category("From disk")]), encoding="utf-8")

    state = FeudGame().new_game(seed=1, config={"categories_path": str(path)})
    assert state.round.category == "From disk"
