"""Round state machine: face-off, control, strikes, steals and the final reveal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from framework.errors import (
    CategoryDataError,
    DuplicateGuessError,
    IllegalMoveError,
    MatchConfigurationError,
    NoActiveTeamError,
)
from framework.state import Record

from .feud_faceoff import resolve_phase
from .feud_matcher import AnswerMatcher, ExactAnswerMatcher, find_revealed_duplicate
from .feud_state import (
    Answer,
    CategoryRevealPhase,
    FaceOffGuess,
    FaceOffPhase,
    MainRoundPhase,
    PENDING_STEAL_VERDICT,
    PENDING_STRIKEOUT,
    PlayOrPassPhase,
    RevealedAnswer,
    RoundOverPhase,
    RoundRevealPhase,
    RoundState,
    StealAttemptPhase,
    Team,
)
from .feud_strikes import MAX_STRIKES, main_round_tracker, steal_tracker


class Decision(str, Enum):
    """Choice made by the face-off winner."""

    PLAY = "play"
    PASS = "pass"


@dataclass(frozen=True)
class RoundRules(Record):
    """Tunable round constants."""

    max_strikes: int = MAX_STRIKES
    board_size: int = 10
    category_reveal: bool = False
    strikeout_settle_ms: int = 500
    steal_settle_ms: int = 800
    reveal_step_ms: int = 800
    auto_reveal: bool = False
    face_off_answer_seconds: int = 30
    face_off_grace_seconds: int = 5

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RoundRules":
        """Build rules from a match config dict, rejecting bad values."""
        defaults = cls()
        try:
            rules = cls(
                max_strikes=int(config.get("max_strikes", defaults.max_strikes)),
                board_size=int(config.get("board_size", defaults.board_size)),
                category_reveal=bool(config.get("category_reveal", defaults.category_reveal)),
                strikeout_settle_ms=int(config.get("strikeout_settle_ms", defaults.strikeout_settle_ms)),
                steal_settle_ms=int(config.get("steal_settle_ms", defaults.steal_settle_ms)),
                reveal_step_ms=int(config.get("reveal_step_ms", defaults.reveal_step_ms)),
                auto_reveal=bool(config.get("auto_reveal", defaults.auto_reveal)),
                face_off_answer_seconds=int(config.get("face_off_answer_seconds", defaults.face_off_answer_seconds)),
                face_off_grace_seconds=int(config.get("face_off_grace_seconds", defaults.face_off_grace_seconds)),
            )
        except (TypeError, ValueError) as exc:
            raise MatchConfigurationError(f"Invalid round rules: {exc}") from exc

        if rules.max_strikes < 1:
            raise MatchConfigurationError("max_strikes must be >= 1.")
        if rules.board_size < 1:
            raise MatchConfigurationError("board_size must be >= 1.")
        for name in ("strikeout_settle_ms", "steal_settle_ms", "reveal_step_ms", "face_off_grace_seconds"):
            if getattr(rules, name) < 0:
                raise MatchConfigurationError(f"{name} must be >= 0.")
        if rules.face_off_answer_seconds < 0:
            raise MatchConfigurationError("face_off_answer_seconds must be >= 0 (0 disables the clock).")
        return rules

    @property
    def face_off_clock_ms(self) -> int:
        """Total face-off answer window, grace included; 0 when disabled."""
        if self.face_off_answer_seconds == 0:
            return 0
        return (self.face_off_answer_seconds + self.face_off_grace_seconds) * 1000


@dataclass(frozen=True)
class RoundOutcome(Record):
    """What a finished round hands to the scoreboard."""

    round_id: str
    category: str
    winner: Team
    points: int


class RoundStateMachine:
    """Pure transitions over `RoundState`.

    Every public method returns a new state or raises `IllegalMoveError`
    without touching the input, so a rejected action is always recoverable.
    Transitions that the presentation paces with a delay (strike-out hand-over
    and the steal verdict) leave a `pending_transition` on the state; `settle`
    applies it. With a zero delay configured they settle inline.
    """

    def __init__(self, rules: RoundRules | None = None, matcher: AnswerMatcher | None = None):
        self.rules = rules or RoundRules()
        self.matcher = matcher or ExactAnswerMatcher()

    def start(self, *, round_id: str, category: str, answers: Sequence[Answer]) -> RoundState:
        """Lay out a fresh board for `category`."""
        if not answers:
            raise CategoryDataError(f"Category {category!r} has no answers.")
        board = tuple(RevealedAnswer(answer=answer) for answer in answers[: self.rules.board_size])
        phase_state = CategoryRevealPhase() if self.rules.category_reveal else FaceOffPhase()
        return RoundState(
            round_id=round_id,
            category=category,
            board=board,
            phase_state=phase_state,
        )

    def begin_face_off(self, state: RoundState) -> RoundState:
        if not isinstance(state.phase_state, CategoryRevealPhase):
            raise IllegalMoveError(None, {"type": "BeginFaceOff"}, f"Cannot begin a face-off during {state.phase.value}.")
        return self._advance(state, FaceOffPhase(), action={"type": "BeginFaceOff"})

    def buzz(self, state: RoundState, team: Team) -> RoundState:
        """Record the dinger. Only the first buzz of a face-off counts."""
        action = {"type": "Buzz", "team": team.value}
        phase = state.phase_state
        if not isinstance(phase, FaceOffPhase):
            raise IllegalMoveError(team.value, action, "Buzzers are only live during the face-off.")
        if phase.dinger is not None:
            return state
        return self._advance(state, phase.evolve(dinger=team), action=action)

    def submit_guess(self, state: RoundState, team: Team, text: str) -> RoundState:
        """Resolve one guess from `team` according to the current phase."""
        action: dict[str, Any] = {"type": "SubmitGuess", "team": team.value, "text": text}
        if not text.strip():
            raise IllegalMoveError(team.value, action, "Guess must be non-empty.")

        phase = state.phase_state
        if isinstance(phase, FaceOffPhase):
            return self._face_off_guess(state, phase, team, text, action)
        if isinstance(phase, MainRoundPhase):
            return self._main_round_guess(state, phase, team, text, action)
        if isinstance(phase, StealAttemptPhase):
            return self._steal_guess(state, phase, team, text, action)
        raise NoActiveTeamError(team.value, action, f"No team is guessing during {state.phase.value}.")

    def face_off_timeout(self, state: RoundState) -> RoundState:
        """The current face-off guesser ran out of time; their slot stays empty."""
        action: dict[str, Any] = {"type": "FaceOffTimeout"}
        phase = state.phase_state
        if not isinstance(phase, FaceOffPhase) or phase.turn is None:
            raise NoActiveTeamError(None, action, "No face-off guess is being awaited.")
        action["team"] = phase.turn.value
        return self._record_face_off(state, phase, phase.turn, FaceOffGuess(text=None), action)

    def declare_wrong(self, state: RoundState, team: Team) -> RoundState:
        """Explicit wrong/pass from the team in control: one strike."""
        action = {"type": "DeclareWrong", "team": team.value}
        phase = state.phase_state
        if not isinstance(phase, MainRoundPhase):
            raise NoActiveTeamError(team.value, action, f"Cannot take a strike during {state.phase.value}.")
        self._require_control(state, phase, team, action)
        return self._strike(state, phase, action)

    def choose(self, state: RoundState, team: Team, decision: Decision) -> RoundState:
        """Face-off winner plays the board or passes it to the other team."""
        action = {"type": "ChoosePlayOrPass", "team": team.value, "decision": decision.value}
        phase = state.phase_state
        if not isinstance(phase, PlayOrPassPhase):
            raise NoActiveTeamError(team.value, action, f"No play/pass choice during {state.phase.value}.")
        if team is not phase.choosing_team:
            raise IllegalMoveError(team.value, action, f"Only {phase.choosing_team.value} may choose play or pass.")
        active = team if decision is Decision.PLAY else team.other
        next_phase = MainRoundPhase(active_team=active, strikes=main_round_tracker(self.rules.max_strikes))
        return self._advance(state, next_phase, action=action)

    def settle(self, state: RoundState) -> RoundState:
        """Apply the pending strike-out hand-over or steal verdict."""
        action = {"type": "Settle"}
        phase = state.phase_state
        pending = state.pending_transition
        if pending == PENDING_STRIKEOUT and isinstance(phase, MainRoundPhase):
            next_phase = StealAttemptPhase(
                active_team=phase.active_team.other,
                original_team=phase.active_team,
                strikes=steal_tracker(),
            )
            return self._advance(state, next_phase, action={**action, "pending": pending})
        if pending == PENDING_STEAL_VERDICT and isinstance(phase, StealAttemptPhase):
            next_phase = RoundRevealPhase(winner=phase.original_team, active_team=phase.active_team)
            return self._advance(state, next_phase, action={**action, "pending": pending})
        raise IllegalMoveError(None, action, "Nothing is waiting to settle.")

    def advance_reveal(self, state: RoundState) -> RoundState:
        """Flip the highest remaining answer (no points); finish when the board runs out."""
        action: dict[str, Any] = {"type": "AdvanceReveal"}
        phase = state.phase_state
        if not isinstance(phase, RoundRevealPhase):
            raise IllegalMoveError(None, action, f"Nothing to reveal during {state.phase.value}.")

        hidden = sorted(state.unrevealed(), key=lambda slot: slot.points, reverse=True)
        next_state = state
        if hidden:
            action["text"] = hidden[0].text
            next_state = self._reveal(state, hidden[0].text, award=False)
        if len(hidden) <= 1:
            over = RoundOverPhase(winner=phase.winner, active_team=phase.active_team)
            return self._advance(next_state, over, action=action)
        return self._advance(next_state, phase, action=action)

    def outcome(self, state: RoundState) -> RoundOutcome:
        if not isinstance(state.phase_state, RoundOverPhase):
            raise IllegalMoveError(None, {"type": "Outcome"}, "Round is not over yet.")
        return RoundOutcome(
            round_id=state.round_id,
            category=state.category,
            winner=state.phase_state.winner,
            points=state.round_points,
        )

    def _face_off_guess(
        self,
        state: RoundState,
        phase: FaceOffPhase,
        team: Team,
        text: str,
        action: dict[str, Any],
    ) -> RoundState:
        if phase.dinger is None:
            raise NoActiveTeamError(team.value, action, "Nobody has buzzed in yet.")
        if phase.turn is not team:
            raise IllegalMoveError(team.value, action, f"It is {phase.turn.value if phase.turn else 'nobody'}'s face-off guess.")
        self._reject_duplicate(state, team, text, action)

        matched = self._match(state, text)
        guess = FaceOffGuess(text=text.strip(), matched=None, points=None)
        next_state = state
        if matched is not None:
            next_state = self._reveal(state, matched, award=True)
            guess = FaceOffGuess(text=text.strip(), matched=matched, points=self._points_for(state, matched))
        action["matched"] = matched
        return self._record_face_off(next_state, phase, team, guess, action)

    def _record_face_off(
        self,
        state: RoundState,
        phase: FaceOffPhase,
        team: Team,
        guess: FaceOffGuess,
        action: dict[str, Any],
    ) -> RoundState:
        updated = phase.with_guess(team, guess)
        if updated.turn is not None:
            return self._advance(state, updated, action=action)
        verdict = resolve_phase(updated)
        action["face_off"] = verdict.to_dict()
        if state.is_board_cleared:
            # Nothing left to play for; the face-off winner takes the round.
            winner = verdict.choosing_team
            return self._advance(state, RoundRevealPhase(winner=winner, active_team=winner), action=action)
        return self._advance(state, PlayOrPassPhase(choosing_team=verdict.choosing_team), action=action)

    def _main_round_guess(
        self,
        state: RoundState,
        phase: MainRoundPhase,
        team: Team,
        text: str,
        action: dict[str, Any],
    ) -> RoundState:
        self._require_control(state, phase, team, action)
        self._reject_duplicate(state, team, text, action)

        matched = self._match(state, text)
        action["matched"] = matched
        if matched is None:
            return self._strike(state, phase, action)

        next_state = self._reveal(state, matched, award=True)
        if next_state.is_board_cleared:
            return self._advance(next_state, RoundRevealPhase(winner=team, active_team=team), action=action)
        return self._advance(next_state, phase, action=action)

    def _steal_guess(
        self,
        state: RoundState,
        phase: StealAttemptPhase,
        team: Team,
        text: str,
        action: dict[str, Any],
    ) -> RoundState:
        if team is not phase.active_team:
            raise IllegalMoveError(team.value, action, f"Only {phase.active_team.value} may attempt the steal.")
        if phase.strikes.reached:
            raise IllegalMoveError(team.value, action, "The steal has already been attempted.")
        self._reject_duplicate(state, team, text, action)

        matched = self._match(state, text)
        action["matched"] = matched
        if matched is not None:
            next_state = self._reveal(state, matched, award=True)
            return self._advance(next_state, RoundRevealPhase(winner=team, active_team=team), action=action)

        missed = phase.evolve(strikes=phase.strikes.record())
        next_state = self._advance(state, missed, action=action)
        if self.rules.steal_settle_ms == 0:
            return self.settle(next_state)
        return next_state

    def _strike(self, state: RoundState, phase: MainRoundPhase, action: dict[str, Any]) -> RoundState:
        struck = phase.evolve(strikes=phase.strikes.record())
        action["strikes"] = struck.strikes.count
        next_state = self._advance(state, struck, action=action)
        if struck.strikes.reached and self.rules.strikeout_settle_ms == 0:
            return self.settle(next_state)
        return next_state

    def _require_control(self, state: RoundState, phase: MainRoundPhase, team: Team, action: dict[str, Any]) -> None:
        if team is not phase.active_team:
            raise IllegalMoveError(team.value, action, f"It is {phase.active_team.value}'s turn.")
        if phase.strikes.reached:
            raise IllegalMoveError(team.value, action, f"Control is passing to {phase.active_team.other.value}.")

    def _reject_duplicate(self, state: RoundState, team: Team, text: str, action: dict[str, Any]) -> None:
        duplicate = find_revealed_duplicate(text, state.board)
        if duplicate is not None:
            raise DuplicateGuessError(team.value, action, duplicate)

    def _match(self, state: RoundState, text: str) -> str | None:
        hidden = state.unrevealed()
        matched = self.matcher.match(text, hidden)
        if matched is None or all(slot.text != matched for slot in hidden):
            return None
        return matched

    def _points_for(self, state: RoundState, text: str) -> int:
        for slot in state.board:
            if slot.text == text:
                return slot.points
        raise KeyError(text)

    def _reveal(self, state: RoundState, text: str, *, award: bool) -> RoundState:
        board = list(state.board)
        for index, slot in enumerate(board):
            if slot.text == text and not slot.revealed:
                board[index] = slot.reveal(award=award)
                points = state.round_points + (slot.points if award else 0)
                return state.evolve(board=tuple(board), round_points=points)
        raise KeyError(text)

    def _advance(self, state: RoundState, phase_state: Any, *, action: dict[str, Any]) -> RoundState:
        return state.evolve(
            phase_state=phase_state,
            turn_index=state.turn_index + 1,
            last_action=dict(action),
        )

