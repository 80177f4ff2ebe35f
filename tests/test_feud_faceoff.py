"""Face-off decision table."""

from __future__ import annotations

import pytest

from feud.feud_faceoff import FaceOffReason, resolve_face_off, resolve_phase
from feud.feud_state import FaceOffGuess, FaceOffPhase, Team


def _hit(text: str, points: int) -> FaceOffGuess:
    return FaceOffGuess(text=text, matched=text, points=points)


MISS = FaceOffGuess(text="Burgers")
TIMED_OUT = FaceOffGuess(text=None)


@pytest.mark.parametrize(
    ("dinger_guess", "other_guess", "winner_is_dinger", "reason"),
    [
        (_hit("Pizza", 10), MISS, True, FaceOffReason.ONLY_DINGER_MATCHED),
        (MISS, _hit("Tacos", 8), False, FaceOffReason.ONLY_OTHER_MATCHED),
        (MISS, MISS, True, FaceOffReason.NEITHER_MATCHED),
        (TIMED_OUT, TIMED_OUT, True, FaceOffReason.NEITHER_MATCHED),
        (_hit("Tacos", 8), _hit("Pizza", 10), False, FaceOffReason.OTHER_HIGHER),
        (_hit("Pizza", 10), _hit("Tacos", 8), True, FaceOffReason.DINGER_HIGHER),
        (_hit("Pizza", 7), _hit("Pie", 7), True, FaceOffReason.TIE_TO_DINGER),
    ],
)
@pytest.mark.parametrize("dinger", [Team.ONE, Team.TWO])
def test_face_off_table(dinger: Team, dinger_guess, other_guess, winner_is_dinger: bool, reason: FaceOffReason) -> None:
    verdict = resolve_face_off(dinger, dinger_guess, other_guess)

    assert verdict.choosing_team is (dinger if winner_is_dinger else dinger.other)
    assert verdict.reason is reason


def test_missing_guess_counts_as_no_match() -> None:
    verdict = resolve_face_off(Team.TWO, None, _hit("Sushi", 6))
    assert verdict.choosing_team is Team.ONE


def test_resolve_phase_requires_both_slots() -> None:
    with pytest.raises(ValueError):
        resolve_phase(FaceOffPhase())
    with pytest.raises(ValueError):
        resolve_phase(FaceOffPhase(dinger=Team.ONE, team_one_guess=MISS))

    phase = FaceOffPhase(dinger=Team.TWO, team_one_guess=_hit("Pizza", 10), team_two_guess=_hit("Pizza", 10))
    assert resolve_phase(phase).choosing_team is Team.TWO
