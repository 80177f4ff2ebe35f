"""Random baseline agent."""

from __future__ import annotations

import hashlib
import random
from collections.abc import Sequence
from typing import Any, Mapping

from ..errors import AgentExecutionError
from ..move import Move
from ..player import Agent


def _moves(value: Any) -> list[Move]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [move for move in value if isinstance(move, Move)]
    return []


class RandomAgent(Agent):
    """Chooses uniformly from legal moves.

    For non-enumerable specs it picks from `sample_moves`, except that with
    probability `miss_rate` it picks from `decoy_moves` instead when the spec
    offers them. Move types listed in `avoid` are only picked when nothing
    else is legal. Seeded per match and seat, so runs are reproducible.
    """

    def __init__(self, agent_id: str, *, miss_rate: float = 0.0, avoid: Sequence[str] = ()):
        super().__init__(agent_id=agent_id)
        if not 0.0 <= miss_rate <= 1.0:
            raise ValueError("miss_rate must be within [0, 1].")
        self.miss_rate = miss_rate
        self.avoid = frozenset(avoid)
        self._rng = random.Random()

    def reset(
        self,
        game_id: str,
        player_id: str,
        role: str | None,
        seed: int,
        config: dict[str, Any] | None,
    ) -> None:
        """Reseed deterministically from match seed, agent and seat."""
        material = f"{seed}:{self.agent_id}:{player_id}".encode("utf-8")
        derived_seed = int.from_bytes(hashlib.sha256(material).digest()[:8], byteorder="big", signed=False)
        self._rng.seed(derived_seed)

    def act(self, observation: Any, legal_moves_spec: Any) -> Move:
        """Pick a random legal move."""
        if isinstance(legal_moves_spec, Mapping):
            samples = _moves(legal_moves_spec.get("sample_moves"))
            decoys = _moves(legal_moves_spec.get("decoy_moves"))
            if decoys and (not samples or self._rng.random() < self.miss_rate):
                return self._rng.choice(decoys)
            if samples:
                return self._rng.choice(samples)
            raise AgentExecutionError(self.agent_id, "Non-enumerable legal move spec lacks Move samples.")

        options = _moves(legal_moves_spec)
        if not options:
            raise AgentExecutionError(self.agent_id, "No legal moves available.")
        preferred = [move for move in options if move.move_type not in self.avoid]
        return self._rng.choice(preferred or options)
