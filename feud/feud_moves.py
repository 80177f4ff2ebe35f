"""Move definitions for the feud round and the host controls around it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from framework.move import Move


class MoveType(str, Enum):
    """Supported feud move discriminators."""

    BEGIN_FACE_OFF = "BeginFaceOff"
    BUZZ = "Buzz"
    SUBMIT_GUESS = "SubmitGuess"
    DECLARE_WRONG = "DeclareWrong"
    CHOOSE_PLAY_OR_PASS = "ChoosePlayOrPass"
    FACE_OFF_TIMEOUT = "FaceOffTimeout"
    SETTLE = "Settle"
    ADVANCE_REVEAL = "AdvanceReveal"
    SKIP_CATEGORY = "SkipCategory"
    CONTINUE_TO_SCORES = "ContinueToScores"


@dataclass(frozen=True)
class BeginFaceOff(Move):
    """Host leaves the category reveal and opens the buzzers."""

    move_type = MoveType.BEGIN_FACE_OFF.value


@dataclass(frozen=True)
class Buzz(Move):
    """A team buzzes in. The host relays minigame results by naming the team."""

    team: str | None = None
    move_type = MoveType.BUZZ.value


@dataclass(frozen=True)
class SubmitGuess(Move):
    text: str
    move_type = MoveType.SUBMIT_GUESS.value

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise ValueError("SubmitGuess.text must be a string.")


@dataclass(frozen=True)
class DeclareWrong(Move):
    """The team in control passes, or the host rules its answer wrong."""

    move_type = MoveType.DECLARE_WRONG.value


@dataclass(frozen=True)
class ChoosePlayOrPass(Move):
    decision: str
    move_type = MoveType.CHOOSE_PLAY_OR_PASS.value

    def __post_init__(self) -> None:
        normalized = str(self.decision).strip().lower()
        if normalized not in {"play", "pass"}:
            raise ValueError("ChoosePlayOrPass.decision must be 'play' or 'pass'.")
        object.__setattr__(self, "decision", normalized)


@dataclass(frozen=True)
class FaceOffTimeout(Move):
    """The face-off answer clock ran out for the team on turn."""

    move_type = MoveType.FACE_OFF_TIMEOUT.value


@dataclass(frozen=True)
class Settle(Move):
    """Apply the strike-out hand-over or steal verdict after its pause."""

    move_type = MoveType.SETTLE.value


@dataclass(frozen=True)
class AdvanceReveal(Move):
    move_type = MoveType.ADVANCE_REVEAL.value


@dataclass(frozen=True)
class SkipCategory(Move):
    """Swap the category before anyone buzzes in."""

    move_type = MoveType.SKIP_CATEGORY.value


@dataclass(frozen=True)
class ContinueToScores(Move):
    """Bank the finished round and move on to the next one (or end the match)."""

    move_type = MoveType.CONTINUE_TO_SCORES.value


_MOVES_BY_TYPE: dict[str, type[Move]] = {
    MoveType.BEGIN_FACE_OFF.value: BeginFaceOff,
    MoveType.BUZZ.value: Buzz,
    MoveType.SUBMIT_GUESS.value: SubmitGuess,
    MoveType.DECLARE_WRONG.value: DeclareWrong,
    MoveType.CHOOSE_PLAY_OR_PASS.value: ChoosePlayOrPass,
    MoveType.FACE_OFF_TIMEOUT.value: FaceOffTimeout,
    MoveType.SETTLE.value: Settle,
    MoveType.ADVANCE_REVEAL.value: AdvanceReveal,
    MoveType.SKIP_CATEGORY.value: SkipCategory,
    MoveType.CONTINUE_TO_SCORES.value: ContinueToScores,
}


def move_from_dict(data: Mapping[str, Any]) -> Move:
    """Parse a feud move from JSON payload."""
    move_type = data.get("type") or data.get("move_type")
    if move_type == MoveType.SUBMIT_GUESS.value:
        if "text" not in data and "guess" in data:
            translated = dict(data)
            translated["text"] = translated.pop("guess")
            return SubmitGuess.from_dict(translated)
        return SubmitGuess.from_dict(data)
    if move_type == MoveType.CHOOSE_PLAY_OR_PASS.value:
        if "decision" not in data and "choice" in data:
            translated = dict(data)
            translated["decision"] = translated.pop("choice")
            return ChoosePlayOrPass.from_dict(translated)
        return ChoosePlayOrPass.from_dict(data)
    move_cls = _MOVES_BY_TYPE.get(str(move_type))
    if move_cls is None:
        raise ValueError(f"Unknown feud move type: {move_type!r}")
    return move_cls.from_dict(data)
