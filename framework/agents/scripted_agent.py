"""Scripted agent: replays a fixed move list, then defers to a policy."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterable

from ..errors import AgentExecutionError
from ..move import Move
from ..player import Agent

Policy = Callable[[Any, Any], Move]


class ScriptedAgent(Agent):
    """Plays queued moves in order; once the queue is empty, calls `policy`."""

    def __init__(self, agent_id: str, policy: Policy | None = None, moves: Iterable[Move] = ()):
        super().__init__(agent_id=agent_id)
        self.policy = policy
        self._script = list(moves)
        self._queue: deque[Move] = deque(self._script)
        self.rejected: list[tuple[Move | None, str]] = []

    def reset(
        self,
        game_id: str,
        player_id: str,
        role: str | None,
        seed: int,
        config: dict[str, Any] | None,
    ) -> None:
        self._queue = deque(self._script)
        self.rejected = []

    def act(self, observation: Any, legal_moves_spec: Any) -> Move:
        if self._queue:
            return self._queue.popleft()
        if self.policy is None:
            raise AgentExecutionError(self.agent_id, "Script exhausted and no fallback policy configured.")
        return self.policy(observation, legal_moves_spec)

    def on_illegal_move(self, error: Exception, observation: Any) -> None:
        self.rejected.append((getattr(error, "move", None), str(error)))
