"""Face-off resolution: which team gets to choose play or pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from framework.state import Record

from .feud_state import FaceOffGuess, FaceOffPhase, Team


class FaceOffReason(str, Enum):
    """Which row of the decision table produced the verdict."""

    ONLY_DINGER_MATCHED = "only_dinger_matched"
    ONLY_OTHER_MATCHED = "only_other_matched"
    NEITHER_MATCHED = "neither_matched"
    DINGER_HIGHER = "dinger_higher"
    OTHER_HIGHER = "other_higher"
    TIE_TO_DINGER = "tie_to_dinger"


@dataclass(frozen=True)
class FaceOffVerdict(Record):
    choosing_team: Team
    reason: FaceOffReason


def _points(guess: FaceOffGuess | None) -> int | None:
    if guess is None or not guess.is_match:
        return None
    return guess.points


def resolve_face_off(
    dinger: Team,
    dinger_guess: FaceOffGuess | None,
    other_guess: FaceOffGuess | None,
) -> FaceOffVerdict:
    """Apply the face-off table from the dinger's point of view.

    A missing guess (timed out) counts as no match. Equal points go to the
    dinger.
    """
    dinger_points = _points(dinger_guess)
    other_points = _points(other_guess)

    if dinger_points is not None and other_points is None:
        return FaceOffVerdict(dinger, FaceOffReason.ONLY_DINGER_MATCHED)
    if dinger_points is None and other_points is not None:
        return FaceOffVerdict(dinger.other, FaceOffReason.ONLY_OTHER_MATCHED)
    if dinger_points is None or other_points is None:
        return FaceOffVerdict(dinger, FaceOffReason.NEITHER_MATCHED)
    if dinger_points > other_points:
        return FaceOffVerdict(dinger, FaceOffReason.DINGER_HIGHER)
    if other_points > dinger_points:
        return FaceOffVerdict(dinger.other, FaceOffReason.OTHER_HIGHER)
    return FaceOffVerdict(dinger, FaceOffReason.TIE_TO_DINGER)


def resolve_phase(phase: FaceOffPhase) -> FaceOffVerdict:
    """Resolve a face-off whose dinger and both guess slots are settled."""
    if phase.dinger is None:
        raise ValueError("Face-off has no dinger yet.")
    if phase.turn is not None:
        raise ValueError(f"Face-off is still waiting on {phase.turn.value}.")
    return resolve_face_off(
        phase.dinger,
        phase.guess_for(phase.dinger),
        phase.guess_for(phase.dinger.other),
    )
