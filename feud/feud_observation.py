"""Observation model for feud seats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from framework.observation import Observation

from .feud_state import GamePhase, Role


@dataclass(frozen=True)
class FeudObservation(Observation):
    """Seat-specific view of the match.

    Team seats only see revealed answers; the host sees the whole board.
    """

    player_id: str
    role: Role
    current_player: str
    phase: GamePhase | None
    round_number: int
    total_rounds: int
    difficulty: str
    minigame: str
    category: str | None
    board: tuple[dict[str, Any], ...]
    round_points: int
    strikes: int
    max_strikes: int
    active_team: str | None
    choosing_team: str | None
    dinger: str | None
    face_off: dict[str, Any] | None
    pending_transition: str | None
    round_winner: str | None
    can_skip: bool
    scores: dict[str, int]
    round_history: tuple[dict[str, Any], ...]
    winner: str | None
    termination_reason: str | None
    turn_index: int
    last_move: dict[str, Any] | None
    last_action: dict[str, Any] | None
