"""Feud match implementation: category draws, rounds, host controls and scoring."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from framework.env_utils import getenv_any
from framework.errors import IllegalMoveError, MatchConfigurationError, NoActiveTeamError, NoEligibleCategoryError
from framework.game import Game, LegalMovesSpec
from framework.move import Move
from framework.result import MatchResult, TerminationReason
from framework.state import State

from .feud_categories import Category, CategoryDeck, categories_from_data
from .feud_matcher import AnswerMatcher, ExactAnswerMatcher
from .feud_minigame import MinigameKind, MinigameSettings
from .feud_moves import (
    AdvanceReveal,
    BeginFaceOff,
    Buzz,
    ChoosePlayOrPass,
    ContinueToScores,
    DeclareWrong,
    FaceOffTimeout,
    MoveType,
    Settle,
    SkipCategory,
    SubmitGuess,
    move_from_dict,
)
from .feud_observation import FeudObservation
from .feud_round import Decision, RoundRules, RoundStateMachine
from .feud_scores import Scoreboard
from .feud_state import (
    HOST_PLAYER_ID,
    TEAM_PLAYER_IDS,
    CategoryRevealPhase,
    Difficulty,
    FaceOffPhase,
    GamePhase,
    MainRoundPhase,
    PlayOrPassPhase,
    RevealedAnswer,
    Role,
    RoundState,
    StealAttemptPhase,
    Team,
    role_for_player,
)
from .feud_strikes import STEAL_STRIKES

logger = logging.getLogger(__name__)

DECOY_GUESSES: tuple[str, ...] = ("No idea", "Something else")


@dataclass(frozen=True)
class FeudState(State):
    """Immutable match state: settings, category pool, scores and the live round."""

    seed: int
    difficulty: Difficulty
    minigame: MinigameKind
    rules: RoundRules
    minigame_settings: MinigameSettings
    pool: tuple[Category, ...]
    scoreboard: Scoreboard
    round: RoundState | None = None
    used_categories: tuple[str, ...] = ()
    draws: int = 0
    round_history: tuple[dict[str, Any], ...] = ()
    winner: str | None = None
    termination_reason: TerminationReason | None = None
    details: str | None = None
    turn_index: int = 0
    last_move: dict[str, Any] | None = None

    @property
    def phase(self) -> GamePhase | None:
        return self.round.phase if self.round is not None else None

    def deck(self) -> CategoryDeck:
        return CategoryDeck(self.pool)

    def has_unplayed_categories(self) -> bool:
        return self.deck().has_remaining(self.difficulty, self.used_categories)

    @property
    def can_skip(self) -> bool:
        """Skipping is offered before anyone buzzes in, while unplayed categories remain."""
        if self.termination_reason is not None or self.round is None:
            return False
        phase = self.round.phase_state
        before_buzz = isinstance(phase, CategoryRevealPhase) or (isinstance(phase, FaceOffPhase) and phase.dinger is None)
        return before_buzz and self.has_unplayed_categories()


class FeudGame(Game[FeudState, Move, FeudObservation]):
    """Two teams and a host: face-off, play or pass, strikes and steals over several rounds."""

    game_name = "feud"

    def __init__(
        self,
        default_config: dict[str, Any] | None = None,
        *,
        deck: CategoryDeck | None = None,
        matcher: AnswerMatcher | None = None,
    ):
        self.default_config = default_config or {}
        self.deck = deck
        self.matcher = matcher or ExactAnswerMatcher()

    def new_game(self, seed: int, config: dict[str, Any] | None = None) -> FeudState:
        """Create a seeded match and draw the first category."""
        cfg = dict(self.default_config)
        cfg.update(config or {})
        try:
            difficulty = Difficulty.parse(cfg.get("difficulty", Difficulty.EASY))
            total_rounds = int(cfg.get("total_rounds", 3))
        except (TypeError, ValueError) as exc:
            raise MatchConfigurationError(str(exc)) from exc
        if total_rounds < 1:
            raise MatchConfigurationError("total_rounds must be >= 1.")

        minigame = MinigameKind.parse(cfg.get("minigame", MinigameKind.CLASSIC))
        rules = RoundRules.from_config(cfg)
        settings = MinigameSettings.from_config(cfg)

        pool = tuple(self._resolve_deck(cfg).for_difficulty(difficulty))
        if not pool:
            raise MatchConfigurationError(f"No categories available for difficulty {difficulty.value!r}.")
        if len(pool) < total_rounds:
            logger.warning(
                "Only %d %s categories for %d rounds; the match will end early when they run out",
                len(pool),
                difficulty.value,
                total_rounds,
            )

        state = FeudState(
            seed=seed,
            difficulty=difficulty,
            minigame=minigame,
            rules=rules,
            minigame_settings=settings,
            pool=pool,
            scoreboard=Scoreboard(total_rounds=total_rounds),
        )
        return self._start_round(state)

    def player_ids(self, state: FeudState) -> Sequence[str]:
        return (*TEAM_PLAYER_IDS, HOST_PLAYER_ID)

    def role_for_player(self, state: FeudState, player_id: str) -> str | None:
        return role_for_player(player_id).value

    def current_player(self, state: FeudState) -> str:
        """Seat expected to act next; the host drives everything between team turns."""
        if self.is_terminal(state) or state.round is None:
            return HOST_PLAYER_ID
        round_state = state.round
        phase = round_state.phase_state
        if isinstance(phase, FaceOffPhase):
            return phase.turn.value if phase.turn is not None else HOST_PLAYER_ID
        if round_state.pending_transition is not None:
            return HOST_PLAYER_ID
        if isinstance(phase, PlayOrPassPhase):
            return phase.choosing_team.value
        if isinstance(phase, (MainRoundPhase, StealAttemptPhase)):
            return phase.active_team.value
        return HOST_PLAYER_ID

    def legal_moves(self, state: FeudState, player_id: str) -> LegalMovesSpec:
        """Return legal moves (host) or a guess specification with samples (teams)."""
        if self.is_terminal(state) or state.round is None:
            return []
        if player_id != self.current_player(state):
            return []

        round_state = state.round
        phase = round_state.phase
        if player_id == HOST_PLAYER_ID:
            moves: list[Move] = []
            if phase is GamePhase.CATEGORY_REVEAL:
                moves.append(BeginFaceOff())
            elif phase is GamePhase.FACE_OFF:
                moves.extend([Buzz(team=Team.ONE.value), Buzz(team=Team.TWO.value)])
            elif round_state.pending_transition is not None:
                moves.append(Settle())
            elif phase is GamePhase.ROUND_REVEAL:
                moves.append(AdvanceReveal())
            elif phase is GamePhase.ROUND_OVER:
                moves.append(ContinueToScores())
            if state.can_skip:
                moves.append(SkipCategory())
            return moves

        if phase is GamePhase.PLAY_OR_PASS:
            return [ChoosePlayOrPass(decision="play"), ChoosePlayOrPass(decision="pass")]

        # Samples name hidden answers so baseline agents can play; decoys are misses.
        samples: list[Move] = [SubmitGuess(text=slot.text) for slot in round_state.unrevealed()]
        decoys: list[Move] = [SubmitGuess(text=text) for text in DECOY_GUESSES]
        allowed: dict[str, Any] = {MoveType.SUBMIT_GUESS.value: True}
        if phase is GamePhase.MAIN_ROUND:
            decoys.append(DeclareWrong())
            allowed[MoveType.DECLARE_WRONG.value] = True
        return {
            "enumerable": False,
            "phase": phase.value,
            "template": {"type": MoveType.SUBMIT_GUESS.value, "text": "non-empty string"},
            "allowed": allowed,
            "sample_moves": samples,
            "decoy_moves": decoys,
        }

    def apply_move(self, state: FeudState, player_id: str, move: Move) -> FeudState:
        """Apply a move and return the next immutable state."""
        if self.is_terminal(state):
            raise IllegalMoveError(player_id, move, "Game is already terminal.")
        try:
            role = role_for_player(player_id)
        except ValueError as exc:
            raise IllegalMoveError(player_id, move, str(exc)) from exc
        assert state.round is not None

        if isinstance(move, SkipCategory):
            self._require_host(role, player_id, move)
            return self._skip_category(state, player_id, move)
        if isinstance(move, ContinueToScores):
            self._require_host(role, player_id, move)
            return self._continue_to_scores(state, player_id, move)

        machine = self._machine(state)
        next_round = self._apply_round_move(machine, state.round, role, player_id, move)
        if next_round is state.round:
            return state
        next_round = self._auto_reveal(machine, state.rules, next_round)
        return self._record(state.evolve(round=next_round), player_id, move)

    def is_terminal(self, state: FeudState) -> bool:
        return state.termination_reason is not None

    def outcome(self, state: FeudState) -> MatchResult:
        """Build the structured result for a finished (or abandoned) match."""
        reason = state.termination_reason
        if reason is None:
            reason = TerminationReason.NORMAL_WIN if state.winner is not None else TerminationReason.DRAW
        return MatchResult(
            game_id="",
            game_name=self.game_name,
            seed=state.seed,
            winner=state.winner,
            termination_reason=reason,
            scores=state.scoreboard.as_scores(),
            turns=state.turn_index,
            rounds_played=state.scoreboard.rounds_played,
            stats={
                "difficulty": state.difficulty.value,
                "minigame": state.minigame.value,
                "total_rounds": state.scoreboard.total_rounds,
                "categories": list(state.used_categories),
                "round_history": list(state.round_history),
            },
            details=state.details,
            final_state_digest=state.state_digest(),
        )

    def observation(self, state: FeudState, player_id: str) -> FeudObservation:
        """Return the seat's view; hidden answers are only visible to the host."""
        role = role_for_player(player_id)
        round_state = state.round
        board: tuple[dict[str, Any], ...] = ()
        face_off: dict[str, Any] | None = None
        max_strikes = state.rules.max_strikes
        if round_state is not None:
            board = tuple(
                self._slot_view(slot, rank, show=role is Role.HOST or slot.revealed)
                for rank, slot in enumerate(round_state.board, start=1)
            )
            phase = round_state.phase_state
            if isinstance(phase, FaceOffPhase):
                face_off = {
                    "turn": phase.turn.value if phase.turn else None,
                    Team.ONE.value: phase.team_one_guess.to_dict() if phase.team_one_guess else None,
                    Team.TWO.value: phase.team_two_guess.to_dict() if phase.team_two_guess else None,
                }
            if isinstance(phase, StealAttemptPhase):
                max_strikes = STEAL_STRIKES

        return FeudObservation(
            player_id=player_id,
            role=role,
            current_player=self.current_player(state),
            phase=state.phase,
            round_number=state.scoreboard.current_round,
            total_rounds=state.scoreboard.total_rounds,
            difficulty=state.difficulty.value,
            minigame=state.minigame.value,
            category=round_state.category if round_state else None,
            board=board,
            round_points=round_state.round_points if round_state else 0,
            strikes=round_state.strikes if round_state else 0,
            max_strikes=max_strikes,
            active_team=self._team_value(round_state.active_team if round_state else None),
            choosing_team=self._team_value(round_state.choosing_team if round_state else None),
            dinger=self._team_value(round_state.dinger if round_state else None),
            face_off=face_off,
            pending_transition=round_state.pending_transition if round_state else None,
            round_winner=self._team_value(round_state.round_winner if round_state else None),
            can_skip=state.can_skip,
            scores={Team.ONE.value: state.scoreboard.team_one, Team.TWO.value: state.scoreboard.team_two},
            round_history=state.round_history,
            winner=state.winner,
            termination_reason=state.termination_reason.value if state.termination_reason else None,
            turn_index=state.turn_index,
            last_move=state.last_move,
            last_action=round_state.last_action if round_state else None,
        )

    def render(self, state: FeudState, player_id: str | None = None) -> str:
        """Render state for debugging."""
        show_all = player_id in (None, HOST_PLAYER_ID)
        board = state.scoreboard
        header = (
            f"round={board.current_round}/{board.total_rounds} phase={state.phase.value if state.phase else None} "
            f"score={board.team_one}-{board.team_two} winner={state.winner} reason="
            f"{state.termination_reason.value if state.termination_reason else None}"
        )
        if state.round is None:
            return header
        round_state = state.round
        lines = [
            header,
            f"category={round_state.category!r} points={round_state.round_points} strikes={round_state.strikes} "
            f"active={self._team_value(round_state.active_team)} pending={round_state.pending_transition}",
        ]
        for rank, slot in enumerate(round_state.board, start=1):
            if slot.revealed or show_all:
                marker = "*" if slot.revealed else " "
                lines.append(f"{rank:>2}.{marker} {slot.text} ({slot.points})")
            else:
                lines.append(f"{rank:>2}.  ????")
        return "\n".join(lines)

    def parse_move(self, data: Mapping[str, Any]) -> Move:
        return move_from_dict(data)

    def abandon(self, state: FeudState, player_id: str, reason: str) -> FeudState:
        """End the match early; a team that walks away hands the win to its opponent."""
        winner = Team(player_id).other.value if player_id in TEAM_PLAYER_IDS else None
        return state.evolve(
            winner=winner,
            termination_reason=TerminationReason.ABANDONED,
            details=f"{player_id} abandoned: {reason}",
        )

    def _resolve_deck(self, cfg: Mapping[str, Any]) -> CategoryDeck:
        if cfg.get("categories") is not None:
            return CategoryDeck(categories_from_data(cfg["categories"]))
        path = cfg.get("categories_path") or getenv_any("FEUD_CATEGORIES_PATH")
        if path:
            return CategoryDeck.from_path(path)
        return self.deck or CategoryDeck.builtin()

    def _machine(self, state: FeudState) -> RoundStateMachine:
        return RoundStateMachine(state.rules, self.matcher)

    def _start_round(self, state: FeudState) -> FeudState:
        rng = random.Random(f"{state.seed}:{state.draws}")
        try:
            category = state.deck().draw(state.difficulty, state.used_categories, rng)
        except NoEligibleCategoryError as exc:
            logger.info("Ending match early: %s", exc)
            return self._finish(state, TerminationReason.CATEGORIES_EXHAUSTED, details=str(exc))

        round_id = f"{state.seed}-r{state.scoreboard.current_round}-d{state.draws + 1}"
        round_state = self._machine(state).start(
            round_id=round_id,
            category=category.label,
            answers=category.answers(state.rules.board_size),
        )
        return state.evolve(
            round=round_state,
            used_categories=state.used_categories + (category.label,),
            draws=state.draws + 1,
        )

    def _finish(self, state: FeudState, reason: TerminationReason | None, *, details: str | None) -> FeudState:
        leader = state.scoreboard.leader()
        if reason is None:
            reason = TerminationReason.NORMAL_WIN if leader is not None else TerminationReason.DRAW
        return state.evolve(
            winner=leader.value if leader is not None else None,
            termination_reason=reason,
            details=details,
        )

    def _skip_category(self, state: FeudState, player_id: str, move: Move) -> FeudState:
        assert state.round is not None
        phase = state.round.phase_state
        if not (isinstance(phase, CategoryRevealPhase) or (isinstance(phase, FaceOffPhase) and phase.dinger is None)):
            raise IllegalMoveError(player_id, move, "Categories can only be skipped before anyone buzzes in.")
        if not state.has_unplayed_categories():
            raise IllegalMoveError(player_id, move, "No unplayed categories left to skip to.")
        logger.debug("Skipping category %r", state.round.category)
        return self._record(self._start_round(state), player_id, move)

    def _continue_to_scores(self, state: FeudState, player_id: str, move: Move) -> FeudState:
        assert state.round is not None
        outcome = self._machine(state).outcome(state.round)
        scoreboard = state.scoreboard.record_round(outcome)
        entry = {**outcome.to_dict(), "round_number": scoreboard.rounds_played}
        next_state = state.evolve(scoreboard=scoreboard, round_history=state.round_history + (entry,))
        if scoreboard.is_final:
            next_state = self._finish(next_state, None, details=f"All {scoreboard.total_rounds} rounds played.")
        else:
            next_state = self._start_round(next_state)
        return self._record(next_state, player_id, move)

    def _apply_round_move(
        self,
        machine: RoundStateMachine,
        round_state: RoundState,
        role: Role,
        player_id: str,
        move: Move,
    ) -> RoundState:
        if isinstance(move, BeginFaceOff):
            self._require_host(role, player_id, move)
            return machine.begin_face_off(round_state)
        if isinstance(move, Buzz):
            return machine.buzz(round_state, self._buzzing_team(role, player_id, move))
        if isinstance(move, SubmitGuess):
            return machine.submit_guess(round_state, self._seat_team(role, player_id, move), move.text)
        if isinstance(move, DeclareWrong):
            team = Team(player_id) if role is Role.TEAM else round_state.active_team
            if team is None:
                raise NoActiveTeamError(player_id, move, f"No team is in control during {round_state.phase.value}.")
            return machine.declare_wrong(round_state, team)
        if isinstance(move, ChoosePlayOrPass):
            return machine.choose(round_state, self._seat_team(role, player_id, move), Decision(move.decision))
        if isinstance(move, FaceOffTimeout):
            self._require_host(role, player_id, move)
            return machine.face_off_timeout(round_state)
        if isinstance(move, Settle):
            self._require_host(role, player_id, move)
            return machine.settle(round_state)
        if isinstance(move, AdvanceReveal):
            self._require_host(role, player_id, move)
            return machine.advance_reveal(round_state)
        raise IllegalMoveError(player_id, move, f"Unsupported move type: {type(move).__name__}")

    def _auto_reveal(self, machine: RoundStateMachine, rules: RoundRules, round_state: RoundState) -> RoundState:
        # Unpaced auto-reveal flips the rest of the board in one step.
        if not rules.auto_reveal or rules.reveal_step_ms > 0:
            return round_state
        while round_state.phase is GamePhase.ROUND_REVEAL:
            round_state = machine.advance_reveal(round_state)
        return round_state

    def _record(self, state: FeudState, player_id: str, move: Move) -> FeudState:
        return state.evolve(
            turn_index=state.turn_index + 1,
            last_move={**move.to_dict(), "player_id": player_id},
        )

    def _require_host(self, role: Role, player_id: str, move: Move) -> None:
        if role is not Role.HOST:
            raise IllegalMoveError(player_id, move, f"Only {HOST_PLAYER_ID} can {move.move_type}.")

    def _seat_team(self, role: Role, player_id: str, move: Move) -> Team:
        if role is not Role.TEAM:
            raise IllegalMoveError(player_id, move, f"{move.move_type} must come from a team seat.")
        return Team(player_id)

    def _buzzing_team(self, role: Role, player_id: str, move: Buzz) -> Team:
        named: Team | None = None
        if move.team is not None:
            try:
                named = Team.parse(move.team)
            except ValueError as exc:
                raise IllegalMoveError(player_id, move, str(exc)) from exc
        if role is Role.TEAM:
            if named is not None and named is not Team(player_id):
                raise IllegalMoveError(player_id, move, "A team can only buzz for itself.")
            return Team(player_id)
        if named is None:
            raise IllegalMoveError(player_id, move, "Host buzz relays must name the team.")
        return named

    def _slot_view(self, slot: RevealedAnswer, rank: int, *, show: bool) -> dict[str, Any]:
        return {
            "rank": rank,
            "revealed": slot.revealed,
            "awarded": slot.awarded,
            "text": slot.text if show else None,
            "points": slot.points if show else None,
            "emoji": slot.answer.emoji if show else None,
        }

    @staticmethod
    def _team_value(team: Team | None) -> str | None:
        return team.value if team is not None else None

