"""Pydantic request/response schemas for the match API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateMatchRequest(BaseModel):
    """Request body for creating a new match session.

    `players` maps seat IDs to "human" or "random" (or `{"type": ...}`);
    unknown seats and types are rejected by the session with a 400.
    """

    seed: int | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    players: dict[str, str | dict[str, Any]] = Field(default_factory=dict)
    viewer_player_id: str | None = None


class SubmitMoveRequest(BaseModel):
    """Request body for submitting a move."""

    player_id: str
    move: dict[str, Any]


class PressRequest(BaseModel):
    """A buzzer press during the classic or quick-draw minigame."""

    player_id: str


class StrikeRequest(BaseModel):
    """A strike on one teleporting bell."""

    player_id: str
    target_id: int
