"""Headless match runner for state-based games."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Any, Mapping, Sequence
from uuid import uuid4

from .errors import AgentExecutionError, IllegalMoveError, MatchConfigurationError
from .events import EventType, MatchEvent, write_jsonl
from .game import Game, PlayerId
from .player import Agent
from .result import MatchResult, TerminationReason
from .serialize import digest, to_serializable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunnerConfig:
    """Runtime configuration for match execution."""

    max_turns: int = 1000
    max_illegal_retries: int = 3
    event_log_dir: str | Path | None = None


@dataclass(frozen=True)
class MatchRun:
    """Complete execution artifact for one match."""

    result: MatchResult
    events: list[MatchEvent]


class MatchRunner:
    """Runs matches to completion with retry on rejected moves and event logging.

    A rejected move leaves the state untouched, so the seat is asked again.
    A seat that keeps submitting rejected moves past `max_illegal_retries`
    abandons the match.
    """

    def __init__(self, config: RunnerConfig | None = None):
        self.config = config or RunnerConfig()

    def run_match(
        self,
        game: Game[Any, Any, Any],
        agents: Mapping[PlayerId, Agent] | Sequence[Agent],
        seed: int,
        game_config: dict[str, Any] | None = None,
        *,
        game_id: str | None = None,
        log_path: str | Path | None = None,
    ) -> MatchRun:
        """Run a full match and return result + event history."""
        config = game_config or {}
        resolved_game_id = game_id or f"{game.game_name}-{seed}-{uuid4().hex[:8]}"
        state = game.new_game(seed=seed, config=config)

        player_ids = list(game.player_ids(state))
        seats = self._normalize_agents(player_ids=player_ids, agents=agents)

        history: list[MatchEvent] = [
            MatchEvent.create(
                event_type=EventType.MATCH_START,
                game_id=resolved_game_id,
                turn=0,
                payload={
                    "seed": seed,
                    "config": to_serializable(config),
                    "players": player_ids,
                    "initial_state_digest": self._state_digest(state),
                },
            )
        ]
        for player_id in player_ids:
            seats[player_id].reset(resolved_game_id, player_id, game.role_for_player(state, player_id), seed, config)

        illegal_move_counts: dict[str, int] = defaultdict(int)
        move_durations_ms: dict[str, list[float]] = defaultdict(list)
        turn = 0
        forced: tuple[TerminationReason, str] | None = None

        while not game.is_terminal(state):
            if turn >= self.config.max_turns:
                forced = (TerminationReason.MAX_TURNS, f"Reached max_turns={self.config.max_turns}.")
                break

            player_id = game.current_player(state)
            agent = seats[player_id]
            observation = game.observation(state, player_id)
            legal_moves_spec = game.legal_moves(state, player_id)

            attempt = 0
            while True:
                start = perf_counter()
                try:
                    move = agent.act(observation, legal_moves_spec)
                except Exception as exc:
                    error = AgentExecutionError(player_id, f"Agent act() failed: {exc}")
                    logger.warning("%s: %s", resolved_game_id, error)
                    history.append(
                        MatchEvent.create(
                            event_type=EventType.AGENT_ERROR,
                            game_id=resolved_game_id,
                            turn=turn,
                            payload={"player_id": player_id, "error": error.to_dict()},
                        )
                    )
                    state = game.abandon(state, player_id, "agent_exception")
                    forced = (TerminationReason.AGENT_EXCEPTION, str(error))
                    break
                duration_ms = (perf_counter() - start) * 1000.0
                move_durations_ms[player_id].append(duration_ms)

                try:
                    next_state = game.apply_move(state, player_id, move)
                except IllegalMoveError as exc:
                    illegal_move_counts[player_id] += 1
                    attempt += 1
                    history.append(
                        MatchEvent.create(
                            event_type=EventType.ILLEGAL_MOVE,
                            game_id=resolved_game_id,
                            turn=turn,
                            payload={
                                "player_id": player_id,
                                "move": to_serializable(move),
                                "reason": exc.reason or str(exc),
                                "attempt": attempt,
                            },
                        )
                    )
                    agent.on_illegal_move(exc, observation)
                    if attempt > self.config.max_illegal_retries:
                        state = game.abandon(state, player_id, "illegal_move")
                        forced = (TerminationReason.ABANDONED, str(exc))
                        break
                    continue

                state = next_state
                turn += 1
                history.append(
                    MatchEvent.create(
                        event_type=EventType.TURN,
                        game_id=resolved_game_id,
                        turn=turn,
                        payload={
                            "player_id": player_id,
                            "observation_digest": self._observation_digest(observation),
                            "move": to_serializable(move),
                            "state_digest": self._state_digest(state),
                            "duration_ms": duration_ms,
                        },
                    )
                )
                break

            if forced is not None:
                break

        result = game.outcome(state)
        if forced is not None:
            reason, details = forced
            winner = result.winner if reason is not TerminationReason.MAX_TURNS else None
            result = MatchResult(
                game_id=resolved_game_id,
                game_name=game.game_name,
                seed=seed,
                winner=winner,
                termination_reason=reason,
                scores=dict(result.scores),
                rounds_played=result.rounds_played,
                stats=dict(result.stats),
                details=details,
                final_state_digest=self._state_digest(state),
            )
        result = MatchResult.from_dict(
            {
                **result.to_dict(),
                "stats": self._merge_stats(result.stats, illegal_move_counts, move_durations_ms),
                "final_state_digest": self._state_digest(state),
            }
        )
        history.append(
            MatchEvent.create(
                event_type=EventType.TERMINAL,
                game_id=resolved_game_id,
                turn=turn,
                payload={"result": result.to_dict()},
            )
        )
        return self._finish(agents=seats, result=result, history=history, log_path=log_path, game_id=resolved_game_id, turns=turn)

    def _finish(
        self,
        *,
        agents: Mapping[PlayerId, Agent],
        result: MatchResult,
        history: list[MatchEvent],
        log_path: str | Path | None,
        game_id: str,
        turns: int,
    ) -> MatchRun:
        resolved_log_path = self._resolve_log_path(log_path=log_path, game_id=game_id)
        final_result = result.with_run_metadata(
            game_id=game_id,
            turns=turns,
            event_count=len(history),
            log_path=str(resolved_log_path) if resolved_log_path is not None else None,
        )
        if resolved_log_path is not None:
            write_jsonl(resolved_log_path, history)
            logger.info("Wrote %d events to %s", len(history), resolved_log_path)

        for agent in agents.values():
            agent.on_game_end(final_result, history)
        return MatchRun(result=final_result, events=history)

    def _resolve_log_path(self, *, log_path: str | Path | None, game_id: str) -> Path | None:
        if log_path is not None:
            return Path(log_path)
        if self.config.event_log_dir is None:
            return None
        return Path(self.config.event_log_dir) / f"{game_id}.jsonl"

    def _merge_stats(
        self,
        base_stats: Mapping[str, Any] | None,
        illegal_move_counts: Mapping[str, int],
        move_durations_ms: Mapping[str, Sequence[float]],
    ) -> dict[str, Any]:
        merged = dict(base_stats or {})
        merged["illegal_moves"] = {player_id: int(count) for player_id, count in illegal_move_counts.items()}
        merged["move_durations_ms"] = {
            player_id: [float(duration) for duration in durations]
            for player_id, durations in move_durations_ms.items()
        }
        return merged

    def _normalize_agents(
        self,
        *,
        player_ids: Sequence[PlayerId],
        agents: Mapping[PlayerId, Agent] | Sequence[Agent],
    ) -> dict[PlayerId, Agent]:
        if isinstance(agents, Mapping):
            seats = dict(agents)
        else:
            agent_list = list(agents)
            if len(agent_list) != len(player_ids):
                raise MatchConfigurationError(
                    f"Expected {len(player_ids)} agents for sequence input, received {len(agent_list)}."
                )
            seats = dict(zip(player_ids, agent_list, strict=True))
        missing = [player_id for player_id in player_ids if player_id not in seats]
        if missing:
            raise MatchConfigurationError(f"Missing agents for player IDs: {missing}")
        return seats

    def _state_digest(self, state: Any) -> str:
        if hasattr(state, "state_digest") and callable(state.state_digest):
            return str(state.state_digest())
        return digest(to_serializable(state))

    def _observation_digest(self, observation: Any) -> str:
        if hasattr(observation, "observation_digest") and callable(observation.observation_digest):
            return str(observation.observation_digest())
        return digest(to_serializable(observation))
