"""State, phases and enums for a feud round."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from framework.state import Record, State

from .feud_strikes import StrikeTracker

HOST_PLAYER_ID = "HOST"


class Team(str, Enum):
    """The two competing teams. Values double as seat IDs."""

    ONE = "TEAM_ONE"
    TWO = "TEAM_TWO"

    @property
    def other(self) -> "Team":
        return Team.TWO if self is Team.ONE else Team.ONE

    @classmethod
    def parse(cls, value: Any) -> "Team":
        """Accept `Team`, seat IDs, or the 1/2 numbering used on screen."""
        if isinstance(value, Team):
            return value
        text = str(value).strip().upper()
        if text in {"1", "TEAM_ONE", "TEAM1", "TEAM 1"}:
            return Team.ONE
        if text in {"2", "TEAM_TWO", "TEAM2", "TEAM 2"}:
            return Team.TWO
        raise ValueError(f"Unknown team: {value!r}")


TEAM_PLAYER_IDS: tuple[str, str] = (Team.ONE.value, Team.TWO.value)


class Role(str, Enum):
    """Seat roles."""

    TEAM = "TEAM"
    HOST = "HOST"


class GamePhase(str, Enum):
    """Mutually exclusive round phases."""

    CATEGORY_REVEAL = "CATEGORY_REVEAL"
    FACE_OFF = "FACE_OFF"
    PLAY_OR_PASS = "PLAY_OR_PASS"
    MAIN_ROUND = "MAIN_ROUND"
    STEAL_ATTEMPT = "STEAL_ATTEMPT"
    ROUND_REVEAL = "ROUND_REVEAL"
    ROUND_OVER = "ROUND_OVER"


class Difficulty(str, Enum):
    """Category difficulty tiers."""

    EASY = "Easy"
    NOT_SO_EASY = "Not-so-easy"
    HARD = "Hard"
    DEATH_MODE = "DEATH MODE"

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in {member.value.lower(), member.name.lower()}:
                return member
        raise ValueError(f"Unknown difficulty: {value!r}")


def role_for_player(player_id: str) -> Role:
    """Return canonical role for a seat ID."""
    if player_id == HOST_PLAYER_ID:
        return Role.HOST
    if player_id in TEAM_PLAYER_IDS:
        return Role.TEAM
    raise ValueError(f"Unknown feud player_id: {player_id!r}")


@dataclass(frozen=True)
class Answer(Record):
    """One survey answer as supplied by the category provider."""

    text: str
    points: int
    accepted: tuple[str, ...] = ()
    emoji: str | None = None

    def __post_init__(self) -> None:
        text = self.text.strip()
        if not text:
            raise ValueError("Answer.text must be non-empty.")
        if self.points <= 0:
            raise ValueError("Answer.points must be positive.")
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "accepted", tuple(self.accepted))


@dataclass(frozen=True)
class RevealedAnswer(Record):
    """An answer on the board and whether it has been flipped."""

    answer: Answer
    revealed: bool = False
    awarded: bool = False

    @property
    def text(self) -> str:
        return self.answer.text

    @property
    def points(self) -> int:
        return self.answer.points

    def reveal(self, *, award: bool) -> "RevealedAnswer":
        if self.revealed:
            raise ValueError(f"{self.text!r} is already revealed.")
        return RevealedAnswer(answer=self.answer, revealed=True, awarded=award)


@dataclass(frozen=True)
class FaceOffGuess(Record):
    """Outcome of one team's single face-off attempt."""

    text: str | None
    matched: str | None = None
    points: int | None = None

    @property
    def is_match(self) -> bool:
        return self.matched is not None


@dataclass(frozen=True)
class PhaseState(Record):
    """Base for phase values; each subclass carries only its own payload."""

    name: ClassVar[GamePhase]

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["phase"] = self.name.value
        return payload


@dataclass(frozen=True)
class CategoryRevealPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.CATEGORY_REVEAL


@dataclass(frozen=True)
class FaceOffPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.FACE_OFF

    dinger: Team | None = None
    team_one_guess: FaceOffGuess | None = None
    team_two_guess: FaceOffGuess | None = None

    def guess_for(self, team: Team) -> FaceOffGuess | None:
        return self.team_one_guess if team is Team.ONE else self.team_two_guess

    def with_guess(self, team: Team, guess: FaceOffGuess) -> "FaceOffPhase":
        if self.guess_for(team) is not None:
            raise ValueError(f"{team.value} already used its face-off guess.")
        if team is Team.ONE:
            return self.evolve(team_one_guess=guess)
        return self.evolve(team_two_guess=guess)

    @property
    def turn(self) -> Team | None:
        """Team expected to guess next: the dinger first, then the other team."""
        if self.dinger is None:
            return None
        if self.guess_for(self.dinger) is None:
            return self.dinger
        if self.guess_for(self.dinger.other) is None:
            return self.dinger.other
        return None


@dataclass(frozen=True)
class PlayOrPassPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.PLAY_OR_PASS

    choosing_team: Team


@dataclass(frozen=True)
class MainRoundPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.MAIN_ROUND

    active_team: Team
    strikes: StrikeTracker


@dataclass(frozen=True)
class StealAttemptPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.STEAL_ATTEMPT

    active_team: Team
    original_team: Team
    strikes: StrikeTracker


@dataclass(frozen=True)
class RoundRevealPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.ROUND_REVEAL

    winner: Team
    active_team: Team


@dataclass(frozen=True)
class RoundOverPhase(PhaseState):
    name: ClassVar[GamePhase] = GamePhase.ROUND_OVER

    winner: Team
    active_team: Team


RoundPhase = Union[
    CategoryRevealPhase,
    FaceOffPhase,
    PlayOrPassPhase,
    MainRoundPhase,
    StealAttemptPhase,
    RoundRevealPhase,
    RoundOverPhase,
]

PENDING_STRIKEOUT = "strikeout"
PENDING_STEAL_VERDICT = "steal_verdict"


@dataclass(frozen=True)
class RoundState(State):
    """Immutable state of one round: board, points and exactly one phase."""

    round_id: str
    category: str
    board: tuple[RevealedAnswer, ...]
    phase_state: RoundPhase
    round_points: int = 0
    turn_index: int = 0
    last_action: dict[str, Any] | None = None

    @property
    def phase(self) -> GamePhase:
        return self.phase_state.name

    @property
    def active_team(self) -> Team | None:
        return getattr(self.phase_state, "active_team", None)

    @property
    def choosing_team(self) -> Team | None:
        if isinstance(self.phase_state, PlayOrPassPhase):
            return self.phase_state.choosing_team
        return None

    @property
    def dinger(self) -> Team | None:
        if isinstance(self.phase_state, FaceOffPhase):
            return self.phase_state.dinger
        return None

    @property
    def strikes(self) -> int:
        tracker = getattr(self.phase_state, "strikes", None)
        return tracker.count if tracker is not None else 0

    @property
    def round_winner(self) -> Team | None:
        return getattr(self.phase_state, "winner", None)

    @property
    def pending_transition(self) -> str | None:
        """Timer-driven transition waiting to be settled, if any."""
        if isinstance(self.phase_state, MainRoundPhase) and self.phase_state.strikes.reached:
            return PENDING_STRIKEOUT
        if isinstance(self.phase_state, StealAttemptPhase) and self.phase_state.strikes.reached:
            return PENDING_STEAL_VERDICT
        return None

    def unrevealed(self) -> list[RevealedAnswer]:
        """Hidden answers in rank order."""
        return [slot for slot in self.board if not slot.revealed]

    def revealed(self) -> list[RevealedAnswer]:
        return [slot for slot in self.board if slot.revealed]

    def awarded_points(self) -> int:
        return sum(slot.points for slot in self.board if slot.awarded)

    @property
    def is_board_cleared(self) -> bool:
        return all(slot.revealed for slot in self.board)
