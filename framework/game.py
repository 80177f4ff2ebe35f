"""Core game interface for deterministic, event-driven state games."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Sequence, TypeVar

from .errors import IllegalMoveError
from .move import Move
from .observation import Observation
from .result import MatchResult

PlayerId = str
StateT = TypeVar("StateT")
MoveT = TypeVar("MoveT", bound=Move)
ObservationT = TypeVar("ObservationT", bound=Observation)
LegalMovesSpec = Sequence[MoveT] | Mapping[str, Any]


class Game(ABC, Generic[StateT, MoveT, ObservationT]):
    """Interface every game implementation satisfies.

    `apply_move` raises `IllegalMoveError` for actions the state does not
    accept and never mutates its input; `is_legal` is derived from it.
    """

    game_name: str = "game"

    @abstractmethod
    def new_game(self, seed: int, config: dict[str, Any] | None = None) -> StateT:
        """Create a fresh state for a seeded match."""

    @abstractmethod
    def player_ids(self, state: StateT) -> Sequence[PlayerId]:
        """Return all seat IDs expected for the state."""

    @abstractmethod
    def role_for_player(self, state: StateT, player_id: PlayerId) -> str | None:
        """Return a role label for a seat."""

    @abstractmethod
    def current_player(self, state: StateT) -> PlayerId:
        """Return the seat expected to act next."""

    @abstractmethod
    def legal_moves(self, state: StateT, player_id: PlayerId) -> LegalMovesSpec:
        """Return legal moves or a legal-move specification for a seat."""

    @abstractmethod
    def apply_move(self, state: StateT, player_id: PlayerId, move: MoveT) -> StateT:
        """Apply a move and return the next state."""

    @abstractmethod
    def is_terminal(self, state: StateT) -> bool:
        """Return whether the state is terminal."""

    @abstractmethod
    def outcome(self, state: StateT) -> MatchResult:
        """Return a structured match result for a terminal state."""

    @abstractmethod
    def observation(self, state: StateT, player_id: PlayerId) -> ObservationT:
        """Return a seat-specific observation."""

    @abstractmethod
    def render(self, state: StateT, player_id: PlayerId | None = None) -> str:
        """Render the state for debugging and replay tooling."""

    def is_legal(self, state: StateT, player_id: PlayerId, move: MoveT) -> tuple[bool, str | None]:
        """Return whether a move is accepted and the rejection reason otherwise."""
        try:
            self.apply_move(state, player_id, move)
        except IllegalMoveError as exc:
            return False, exc.reason or str(exc)
        return True, None

    def parse_move(self, data: Mapping[str, Any]) -> MoveT:
        """Parse a move payload produced by a client."""
        raise NotImplementedError(f"{self.__class__.__name__} does not implement parse_move().")

    def abandon(self, state: StateT, player_id: PlayerId, reason: str) -> StateT:
        """Return a terminal state for a seat that stopped producing legal moves."""
        raise NotImplementedError(f"{self.__class__.__name__} does not implement abandon().")
