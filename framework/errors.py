"""Structured exceptions shared by the match framework and the feud rules."""

from __future__ import annotations

from typing import Any


class ArenaError(Exception):
    """Base class for framework-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class MatchConfigurationError(ArenaError):
    """Raised when a match is configured incorrectly."""


class CategoryDataError(MatchConfigurationError):
    """Raised when category data is malformed (missing text, empty board, ...)."""


class NoEligibleCategoryError(ArenaError):
    """Raised when the deck has no unplayed category left for the difficulty."""

    def __init__(self, difficulty: str):
        self.difficulty = difficulty
        super().__init__(f"No unplayed categories left for difficulty {difficulty!r}.")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["difficulty"] = self.difficulty
        return payload


class IllegalMoveError(ArenaError, ValueError):
    """Raised when a seat submits an action the current phase does not accept.

    Illegal actions never mutate the round, so callers can always resubmit.
    """

    def __init__(self, player_id: str | None, move: Any, reason: str | None = None):
        self.player_id = player_id
        self.move = move
        self.reason = reason
        message = f"Illegal move by {player_id}" if player_id else "Illegal move"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"player_id": self.player_id, "move": getattr(self.move, "to_dict", lambda: self.move)()})
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


class DuplicateGuessError(IllegalMoveError):
    """Raised when a guess names an answer that is already on the board."""

    def __init__(self, player_id: str | None, move: Any, answer_text: str):
        self.answer_text = answer_text
        super().__init__(player_id, move, f"{answer_text!r} is already on the board!")


class NoActiveTeamError(IllegalMoveError):
    """Raised when no team is currently authorized to perform the action."""


class AgentExecutionError(ArenaError):
    """Raised when an agent fails to produce a move."""

    def __init__(self, player_id: str, message: str):
        self.player_id = player_id
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["player_id"] = self.player_id
        return payload
