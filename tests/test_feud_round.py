"""Round state machine: face-off, play/pass, strikes, steals and the reveal."""

from __future__ import annotations

import pytest

from feud.feud_round import Decision, RoundRules, RoundStateMachine
from feud.feud_state import (
    PENDING_STEAL_VERDICT,
    PENDING_STRIKEOUT,
    Answer,
    GamePhase,
    RoundState,
    Team,
)
from framework.errors import (
    CategoryDataError,
    DuplicateGuessError,
    IllegalMoveError,
    MatchConfigurationError,
    NoActiveTeamError,
)

INSTANT = RoundRules(strikeout_settle_ms=0, steal_settle_ms=0)


def _answers() -> list[Answer]:
    return [
        Answer(text="Pizza", points=10, accepted=("pizzas",)),
        Answer(text="Tacos", points=8, accepted=("taco",)),
        Answer(text="Burgers", points=6),
        Answer(text="Sushi", points=4),
    ]


def _start(machine: RoundStateMachine, answers: list[Answer] | None = None) -> RoundState:
    return machine.start(round_id="r1", category="Name a food people order for delivery", answers=answers or _answers())


def _main_round(machine: RoundStateMachine, *, controller: Team = Team.ONE) -> RoundState:
    """Face-off where the dinger hits Pizza and the other team misses; the dinger plays."""
    state = _start(machine)
    state = machine.buzz(state, controller)
    state = machine.submit_guess(state, controller, "Pizza")
    state = machine.submit_guess(state, controller.other, "Lasagna")
    return machine.choose(state, controller, Decision.PLAY)


def test_pizza_and_tacos_end_to_end() -> None:
    machine = RoundStateMachine(INSTANT)
    state = machine.start(
        round_id="r1",
        category="Food",
        answers=[Answer(text="Pizza", points=10), Answer(text="Tacos", points=8)],
    )
    assert state.phase is GamePhase.FACE_OFF

    state = machine.buzz(state, Team.ONE)
    assert state.dinger is Team.ONE

    state = machine.submit_guess(state, Team.ONE, "Pizza")
    assert state.round_points == 10
    assert [slot.text for slot in state.revealed()] == ["Pizza"]

    state = machine.submit_guess(state, Team.TWO, "Burgers")
    assert state.phase is GamePhase.PLAY_OR_PASS
    assert state.choosing_team is Team.ONE

    state = machine.choose(state, Team.ONE, Decision.PLAY)
    assert state.phase is GamePhase.MAIN_ROUND
    assert state.active_team is Team.ONE

    state = machine.submit_guess(state, Team.ONE, "Tacos")
    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.ONE
    assert state.round_points == 18

    state = machine.advance_reveal(state)
    assert state.phase is GamePhase.ROUND_OVER
    outcome = machine.outcome(state)
    assert outcome.winner is Team.ONE
    assert outcome.points == 18


def test_three_misses_hand_the_steal_to_the_other_team() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)

    state = machine.submit_guess(state, Team.ONE, "Curry")
    state = machine.submit_guess(state, Team.ONE, "Salad")
    assert state.strikes == 2
    state = machine.declare_wrong(state, Team.ONE)

    assert state.phase is GamePhase.STEAL_ATTEMPT
    assert state.active_team is Team.TWO
    assert state.strikes == 0


def test_successful_steal_wins_the_round_with_the_stolen_points() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)
    for guess in ("Curry", "Salad", "Soup"):
        state = machine.submit_guess(state, Team.ONE, guess)

    state = machine.submit_guess(state, Team.TWO, "burgers")

    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.TWO
    assert state.round_points == 10 + 6


def test_failed_steal_leaves_the_round_to_the_original_team() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)
    for guess in ("Curry", "Salad", "Soup"):
        state = machine.submit_guess(state, Team.ONE, guess)
    hidden_before = [slot.text for slot in state.unrevealed()]

    state = machine.submit_guess(state, Team.TWO, "Noodles")

    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.ONE
    assert state.round_points == 10
    assert [slot.text for slot in state.unrevealed()] == hidden_before


def test_failed_steal_waits_to_settle_when_paced() -> None:
    machine = RoundStateMachine(RoundRules(strikeout_settle_ms=0, steal_settle_ms=800))
    state = _main_round(machine)
    for guess in ("Curry", "Salad", "Soup"):
        state = machine.submit_guess(state, Team.ONE, guess)

    state = machine.submit_guess(state, Team.TWO, "Noodles")
    assert state.phase is GamePhase.STEAL_ATTEMPT
    assert state.pending_transition == PENDING_STEAL_VERDICT
    assert state.strikes == 1
    with pytest.raises(IllegalMoveError):
        machine.submit_guess(state, Team.TWO, "Sushi")

    state = machine.settle(state)
    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.ONE
    assert state.strikes == 0


def test_strike_out_is_pending_until_settled() -> None:
    machine = RoundStateMachine(RoundRules(strikeout_settle_ms=500, steal_settle_ms=0))
    state = _main_round(machine)
    for guess in ("Curry", "Salad", "Soup"):
        state = machine.submit_guess(state, Team.ONE, guess)

    assert state.phase is GamePhase.MAIN_ROUND
    assert state.pending_transition == PENDING_STRIKEOUT
    assert state.strikes == 3
    with pytest.raises(IllegalMoveError):
        machine.submit_guess(state, Team.ONE, "Sushi")

    state = machine.settle(state)
    assert state.phase is GamePhase.STEAL_ATTEMPT
    assert state.active_team is Team.TWO
    assert state.pending_transition is None

    with pytest.raises(IllegalMoveError):
        machine.settle(state)


def test_clearing_the_board_skips_pending_strikes() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)
    state = machine.submit_guess(state, Team.ONE, "Curry")
    state = machine.submit_guess(state, Team.ONE, "Salad")
    for guess in ("Tacos", "Burgers", "Sushi"):
        state = machine.submit_guess(state, Team.ONE, guess)

    assert state.is_board_cleared
    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.ONE
    assert state.round_points == 10 + 8 + 6 + 4


def test_pass_gives_control_to_the_other_team() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _start(machine)
    state = machine.buzz(state, Team.TWO)
    state = machine.submit_guess(state, Team.TWO, "Sushi")
    state = machine.submit_guess(state, Team.ONE, "Tacos")
    assert state.choosing_team is Team.ONE

    state = machine.choose(state, Team.ONE, Decision.PASS)
    assert state.active_team is Team.TWO


def test_face_off_tie_goes_to_the_dinger() -> None:
    machine = RoundStateMachine(INSTANT)
    answers = [Answer(text="Pizza", points=7), Answer(text="Tacos", points=7), Answer(text="Sushi", points=3)]
    state = _start(machine, answers)
    state = machine.buzz(state, Team.TWO)
    state = machine.submit_guess(state, Team.TWO, "Tacos")
    state = machine.submit_guess(state, Team.ONE, "Pizza")

    assert state.choosing_team is Team.TWO
    assert state.last_action["face_off"]["reason"] == "tie_to_dinger"


def test_face_off_that_clears_the_board_goes_straight_to_the_reveal() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _start(machine, [Answer(text="Pizza", points=10), Answer(text="Tacos", points=8)])
    state = machine.buzz(state, Team.TWO)
    state = machine.submit_guess(state, Team.TWO, "Tacos")
    state = machine.submit_guess(state, Team.ONE, "Pizza")

    assert state.phase is GamePhase.ROUND_REVEAL
    assert state.round_winner is Team.ONE
    assert state.last_action["face_off"]["choosing_team"] == "TEAM_ONE"

    state = machine.advance_reveal(state)
    assert machine.outcome(state).points == 18


def test_only_the_first_buzz_counts() -> None:
    machine = RoundStateMachine(INSTANT)
    state = machine.buzz(_start(machine), Team.ONE)

    assert machine.buzz(state, Team.TWO) is state
    assert machine.buzz(state, Team.ONE) is state


def test_face_off_timeout_leaves_the_slot_empty() -> None:
    machine = RoundStateMachine(INSTANT)
    state = machine.buzz(_start(machine), Team.ONE)

    state = machine.face_off_timeout(state)
    assert state.phase_state.team_one_guess.text is None
    assert state.phase_state.turn is Team.TWO

    state = machine.face_off_timeout(state)
    assert state.phase is GamePhase.PLAY_OR_PASS
    assert state.choosing_team is Team.ONE
    assert state.round_points == 0


def test_rejected_actions_do_not_change_the_round() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)
    snapshot = state.to_dict()

    with pytest.raises(DuplicateGuessError):
        machine.submit_guess(state, Team.ONE, "pizzas")
    with pytest.raises(IllegalMoveError):
        machine.submit_guess(state, Team.TWO, "Tacos")
    with pytest.raises(IllegalMoveError):
        machine.submit_guess(state, Team.ONE, "   ")
    with pytest.raises(NoActiveTeamError):
        machine.choose(state, Team.ONE, Decision.PLAY)

    assert state.to_dict() == snapshot
    assert state.strikes == 0


def test_guesses_outside_guessing_phases_have_no_active_team() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _start(machine)
    with pytest.raises(NoActiveTeamError):
        machine.submit_guess(state, Team.ONE, "Pizza")

    state = machine.buzz(state, Team.ONE)
    state = machine.submit_guess(state, Team.ONE, "Pizza")
    state = machine.submit_guess(state, Team.TWO, "Tacos")
    assert state.phase is GamePhase.PLAY_OR_PASS
    with pytest.raises(NoActiveTeamError):
        machine.submit_guess(state, Team.ONE, "Burgers")
    with pytest.raises(NoActiveTeamError):
        machine.declare_wrong(state, Team.ONE)


def test_round_points_only_count_guessed_answers() -> None:
    machine = RoundStateMachine(INSTANT)
    state = _main_round(machine)
    state = machine.submit_guess(state, Team.ONE, "Tacos")
    for guess in ("Curry", "Salad", "Soup"):
        state = machine.submit_guess(state, Team.ONE, guess)
    state = machine.submit_guess(state, Team.TWO, "Noodles")

    while state.phase is GamePhase.ROUND_REVEAL:
        state = machine.advance_reveal(state)

    assert state.phase is GamePhase.ROUND_OVER
    assert state.is_board_cleared
    assert state.round_points == state.awarded_points() == 10 + 8
    assert {slot.text for slot in state.board if not slot.awarded} == {"Burgers", "Sushi"}


def test_category_reveal_gates_the_buzzers() -> None:
    machine = RoundStateMachine(RoundRules(category_reveal=True))
    state = _start(machine)
    assert state.phase is GamePhase.CATEGORY_REVEAL
    with pytest.raises(IllegalMoveError):
        machine.buzz(state, Team.ONE)

    state = machine.begin_face_off(state)
    assert state.phase is GamePhase.FACE_OFF
    with pytest.raises(IllegalMoveError):
        machine.begin_face_off(state)


def test_board_is_truncated_and_must_not_be_empty() -> None:
    machine = RoundStateMachine(RoundRules(board_size=2))
    assert len(_start(machine).board) == 2

    with pytest.raises(CategoryDataError):
        machine.start(round_id="r1", category="Empty", answers=[])


def test_outcome_requires_a_finished_round() -> None:
    machine = RoundStateMachine(INSTANT)
    with pytest.raises(IllegalMoveError):
        machine.outcome(_start(machine))


def test_rules_from_config_validate_values() -> None:
    rules = RoundRules.from_config({"max_strikes": "4", "face_off_answer_seconds": 10, "face_off_grace_seconds": 2})
    assert rules.max_strikes == 4
    assert rules.face_off_clock_ms == 12_000
    assert RoundRules.from_config({"face_off_answer_seconds": 0}).face_off_clock_ms == 0

    with pytest.raises(MatchConfigurationError):
        RoundRules.from_config({"max_strikes": 0})
    with pytest.raises(MatchConfigurationError):
        RoundRules.from_config({"steal_settle_ms": -1})
    with pytest.raises(MatchConfigurationError):
        RoundRules.from_config({"board_size": "ten"})
