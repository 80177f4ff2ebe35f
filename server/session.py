"""In-memory feud match sessions: human seats, auto-played seats, minigames and timers."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from time import perf_counter
from typing import Any
from uuid import uuid4

from feud.feud_game import FeudGame, FeudState
from feud.feud_minigame import MinigameArbiter
from feud.feud_moves import AdvanceReveal, Buzz, FaceOffTimeout, MoveType, Settle
from feud.feud_semantic import matcher_from_env
from feud.feud_state import HOST_PLAYER_ID, PENDING_STEAL_VERDICT, PENDING_STRIKEOUT, TEAM_PLAYER_IDS, FaceOffPhase, GamePhase, Team
from framework.agents import RandomAgent
from framework.errors import IllegalMoveError
from framework.events import EventType, MatchEvent
from framework.move import Move
from framework.player import Agent
from framework.result import MatchResult
from framework.scheduler import ManualScheduler, MonotonicScheduler, TimerGroup, TimerHandle
from framework.serialize import to_serializable

logger = logging.getLogger(__name__)

PLAYER_TYPES = {"human", "random"}
DEFAULT_PLAYER_TYPES: dict[str, str] = {
    Team.ONE.value: "human",
    Team.TWO.value: "human",
    HOST_PLAYER_ID: "random",
}

MAX_AUTO_RETRIES = 3
SchedulerFactory = Callable[[], ManualScheduler]


def _serialize_legal_spec(raw: Any) -> dict[str, Any]:
    if isinstance(raw, list):
        return {"type": "enumerated", "enumerated": [to_serializable(move) for move in raw], "allowed": {}}
    if isinstance(raw, dict):
        serializable = {key: to_serializable(value) for key, value in raw.items()}
        serializable.setdefault("type", "mask")
        serializable.setdefault("allowed", {})
        return serializable
    return {"type": "enumerated", "enumerated": [], "allowed": {}}


def _normalize_player_types(players: dict[str, Any] | None) -> dict[str, str]:
    player_types = dict(DEFAULT_PLAYER_TYPES)
    for player_id, raw in (players or {}).items():
        if player_id not in player_types:
            raise ValueError(f"Unknown player_id in players: {player_id!r}")
        kind = raw.get("type") if isinstance(raw, dict) else raw
        kind = str(kind or "").strip().lower()
        if kind not in PLAYER_TYPES:
            raise ValueError(f"Unsupported player type for {player_id}: {raw!r}")
        player_types[player_id] = kind
    return player_types


@dataclass(eq=False)
class MatchSession:
    """Single in-memory match.

    Timer-driven steps (minigame, face-off clock, settle pauses, paced reveal)
    are scheduled in a `TimerGroup` owned by the live round. Replacing the
    round closes the group, so nothing scheduled for an old round can touch a
    newer one. Due timers fire whenever the session is pumped.
    """

    match_id: str
    seed: int
    config: dict[str, Any]
    game: FeudGame
    state: FeudState
    scheduler: ManualScheduler
    player_types: dict[str, str]
    agents: dict[str, Agent]
    state_history: list[FeudState] = field(default_factory=list)
    events: list[MatchEvent] = field(default_factory=list)
    result: MatchResult | None = None
    timers: TimerGroup | None = None
    arbiter: MinigameArbiter | None = None
    _round_id: str | None = None
    _armed: dict[str, TimerHandle] = field(default_factory=dict)
    _advancing: bool = False

    @classmethod
    def create(
        cls,
        *,
        seed: int,
        config: dict[str, Any] | None,
        players: dict[str, Any] | None,
        scheduler: ManualScheduler,
        game: FeudGame | None = None,
    ) -> "MatchSession":
        game_impl = game or FeudGame(matcher=matcher_from_env())
        config_payload = dict(config or {})
        state = game_impl.new_game(seed=seed, config=config_payload)
        match_id = f"match-{uuid4().hex[:10]}"
        player_types = _normalize_player_types(players)

        agents: dict[str, Agent] = {}
        for player_id in game_impl.player_ids(state):
            if player_types[player_id] == "random":
                if player_id in TEAM_PLAYER_IDS:
                    agent = RandomAgent(f"random-{player_id.lower()}", miss_rate=0.35)
                else:
                    agent = RandomAgent(f"random-{player_id.lower()}", avoid=(MoveType.SKIP_CATEGORY.value,))
                agent.reset(match_id, player_id, game_impl.role_for_player(state, player_id), seed, config_payload)
                agents[player_id] = agent

        session = cls(
            match_id=match_id,
            seed=seed,
            config=config_payload,
            game=game_impl,
            state=state,
            scheduler=scheduler,
            player_types=player_types,
            agents=agents,
            state_history=[state],
        )
        session._log(
            EventType.MATCH_START,
            {
                "seed": seed,
                "config": to_serializable(config_payload),
                "players": dict(player_types),
                "category": state.round.category if state.round else None,
                "current_player": game_impl.current_player(state),
            },
        )
        session._after_change()
        return session

    @property
    def human_players(self) -> set[str]:
        return {player_id for player_id, kind in self.player_types.items() if kind == "human"}

    def current_player(self) -> str:
        return self.game.current_player(self.state)

    def is_terminal(self) -> bool:
        return self.game.is_terminal(self.state)

    def pump(self) -> int:
        """Fire every timer that has come due."""
        return self.scheduler.pump()

    def view(self, player_id: str, *, turn: int | None = None) -> dict[str, Any]:
        """Observation, legal moves and session metadata for one seat."""
        if player_id not in self.player_types:
            raise ValueError(f"Unknown player_id: {player_id}")

        max_turn = len(self.state_history) - 1
        replay_turn = max_turn if turn is None else max(0, min(int(turn), max_turn))
        state_for_view = self.state_history[replay_turn]
        is_live = replay_turn == max_turn
        terminal = self.game.is_terminal(state_for_view)
        current_player = None if terminal else self.game.current_player(state_for_view)

        response: dict[str, Any] = {
            "match_id": self.match_id,
            "player_id": player_id,
            "observation": self.game.observation(state_for_view, player_id).to_dict(),
            "legal_moves_spec": _serialize_legal_spec(self.game.legal_moves(state_for_view, player_id)),
            "minigame": self.arbiter.snapshot() if (is_live and self.arbiter is not None) else None,
            "meta": {
                "match_id": self.match_id,
                "seed": self.seed,
                "current_player": current_player,
                "is_human_turn": is_live and not terminal and current_player == player_id and player_id in self.human_players,
                "terminal": terminal,
                "human_players": sorted(self.human_players),
                "replay_turn": replay_turn,
                "max_turn": max_turn,
                "is_live": is_live,
                "now_ms": self.scheduler.now_ms(),
                "pending_timers": self.timers.pending_labels() if (is_live and self.timers is not None) else [],
            },
            "last_event": self.events[-1].to_dict() if self.events else None,
        }
        if self.result is not None and is_live:
            response["result"] = self.result.to_dict()
        return response

    def submit_move(self, *, player_id: str, move_payload: dict[str, Any]) -> dict[str, Any]:
        """Apply a move from a human seat, then let auto-played seats and timers catch up."""
        if player_id not in self.player_types:
            raise ValueError(f"Unknown player_id: {player_id}")
        if player_id not in self.human_players:
            raise PermissionError(f"Player {player_id} is not configured as human.")
        if self.is_terminal():
            return self.view(player_id)

        move = self.game.parse_move(move_payload)
        self._apply(player_id, move)
        return self.view(player_id)

    def press(self, player_id: str) -> dict[str, Any]:
        """Buzzer press from a team seat during the minigame."""
        if player_id not in TEAM_PLAYER_IDS:
            raise ValueError("Only team seats have buzzers.")
        self._require_human(player_id)
        arbiter = self._live_arbiter({"type": "Press", "team": player_id})
        arbiter.press(Team(player_id))
        return self.view(player_id)

    def strike(self, player_id: str, target_id: int) -> dict[str, Any]:
        """Strike a teleporting bell; the bell's half decides the team."""
        self._require_human(player_id)
        arbiter = self._live_arbiter({"type": "Strike", "target_id": target_id})
        arbiter.strike(target_id)
        return self.view(player_id)

    def close(self) -> None:
        """Cancel everything this session has scheduled."""
        if self.arbiter is not None:
            self.arbiter.cancel()
        if self.timers is not None:
            self.timers.close()

    def advance_until_human_turn(self) -> None:
        """Auto-play non-human seats until a human or a timer has to act."""
        if self._advancing:
            return
        self._advancing = True
        try:
            while not self.is_terminal():
                if self._waiting_on_timer():
                    return
                player_id = self.current_player()
                agent = self.agents.get(player_id)
                if agent is None:
                    return
                self._auto_play(player_id, agent)
        finally:
            self._advancing = False

    def _auto_play(self, player_id: str, agent: Agent) -> None:
        for _ in range(MAX_AUTO_RETRIES):
            observation = self.game.observation(self.state, player_id)
            move = agent.act(observation, self.game.legal_moves(self.state, player_id))
            try:
                self._apply(player_id, move)
                return
            except IllegalMoveError as exc:
                agent.on_illegal_move(exc, observation)
        logger.warning("%s kept producing illegal moves; abandoning %s", player_id, self.match_id)
        self.state = self.game.abandon(self.state, player_id, "Exceeded illegal move retries.")
        self.state_history.append(self.state)
        self._after_change()

    def _require_human(self, player_id: str) -> None:
        if player_id not in self.human_players:
            raise PermissionError(f"Player {player_id} is not configured as human.")

    def _live_arbiter(self, action: dict[str, Any]) -> MinigameArbiter:
        if self.arbiter is None or self.arbiter.decided or self.arbiter.cancelled:
            raise IllegalMoveError(None, action, "No buzz-in minigame is running.")
        return self.arbiter

    def _uses_minigame(self) -> bool:
        return any(player_id in self.human_players for player_id in TEAM_PLAYER_IDS)

    def _waiting_on_timer(self) -> bool:
        round_state = self.state.round
        if round_state is None:
            return False
        phase = round_state.phase_state
        if isinstance(phase, FaceOffPhase) and phase.dinger is None:
            return self._uses_minigame()
        if round_state.pending_transition is not None:
            return True
        return round_state.phase is GamePhase.ROUND_REVEAL and self.state.rules.auto_reveal

    def _apply(self, player_id: str, move: Move, *, timer_label: str | None = None) -> None:
        """Apply one move, logging it; rejected moves are logged and re-raised."""
        started = perf_counter()
        try:
            next_state = self.game.apply_move(self.state, player_id, move)
        except IllegalMoveError as exc:
            self._log(
                EventType.ILLEGAL_MOVE,
                {"player_id": player_id, "move": to_serializable(move), "reason": exc.reason or str(exc)},
            )
            raise
        if next_state is self.state:
            return

        previous_phase = self.state.phase
        self.state = next_state
        self.state_history.append(next_state)
        payload: dict[str, Any] = {
            "player_id": player_id,
            "move": to_serializable(move),
            "duration_ms": (perf_counter() - started) * 1000.0,
            "result": to_serializable(next_state.round.last_action if next_state.round else None),
        }
        if timer_label is not None:
            payload["timer"] = timer_label
        self._log(EventType.TURN, payload)

        if next_state.phase is GamePhase.ROUND_OVER and previous_phase is not GamePhase.ROUND_OVER and next_state.round:
            self._log(
                EventType.ROUND_OVER,
                {
                    "round_id": next_state.round.round_id,
                    "category": next_state.round.category,
                    "winner": to_serializable(next_state.round.round_winner),
                    "points": next_state.round.round_points,
                },
            )
        self._after_change()

    def _after_change(self) -> None:
        self._sync_round()
        if self.is_terminal():
            self._finalize()
            return
        self._arm_timers()
        self.advance_until_human_turn()

    def _sync_round(self) -> None:
        round_state = self.state.round
        round_id = round_state.round_id if round_state is not None and not self.is_terminal() else None
        if round_id == self._round_id:
            return
        self.close()
        self.arbiter = None
        self.timers = TimerGroup(self.scheduler, owner=round_id) if round_id is not None else None
        self._armed = {}
        self._round_id = round_id

    def _arm_timers(self) -> None:
        round_state = self.state.round
        if round_state is None or self.timers is None:
            return
        rules = self.state.rules
        phase = round_state.phase_state
        wanted: dict[str, tuple[int, Move]] = {}

        if isinstance(phase, FaceOffPhase):
            if phase.dinger is None and self.arbiter is None and self._uses_minigame():
                self.arbiter = MinigameArbiter(
                    kind=self.state.minigame,
                    timers=self.timers,
                    on_buzzed=self._on_buzzed,
                    settings=self.state.minigame_settings,
                    rng=random.Random(f"{self.seed}:{round_state.round_id}"),
                )
                self.arbiter.start()
            turn = phase.turn
            if turn is not None and turn.value in self.human_players and rules.face_off_clock_ms > 0:
                wanted[f"face_off_clock:{turn.value}"] = (rules.face_off_clock_ms, FaceOffTimeout())
        elif round_state.pending_transition == PENDING_STRIKEOUT:
            wanted["settle:strikeout"] = (rules.strikeout_settle_ms, Settle())
        elif round_state.pending_transition == PENDING_STEAL_VERDICT:
            wanted["settle:steal"] = (rules.steal_settle_ms, Settle())
        elif round_state.phase is GamePhase.ROUND_REVEAL and rules.auto_reveal:
            wanted[f"reveal:{len(round_state.unrevealed())}"] = (rules.reveal_step_ms, AdvanceReveal())

        for label in list(self._armed):
            if label not in wanted:
                self._armed.pop(label).cancel()
        for label, (delay_ms, move) in wanted.items():
            if label not in self._armed:
                self._armed[label] = self.timers.call_later(delay_ms, partial(self._fire, label, move), label=label)

    def _fire(self, label: str, move: Move) -> None:
        self._log(EventType.TIMER_FIRED, {"timer": label, "round_id": self._round_id})
        try:
            self._apply(HOST_PLAYER_ID, move, timer_label=label)
        except IllegalMoveError as exc:
            # The state moved on before the timer came due.
            logger.debug("Dropped stale timer %s: %s", label, exc)

    def _on_buzzed(self, team: Team) -> None:
        self._apply(HOST_PLAYER_ID, Buzz(team=team.value), timer_label="minigame")

    def _finalize(self) -> None:
        self.close()
        if self.result is not None:
            return
        raw = self.game.outcome(self.state)
        self.result = raw.with_run_metadata(
            game_id=self.match_id,
            turns=self.state.turn_index,
            event_count=len(self.events) + 1,
            log_path=None,
        )
        self._log(EventType.TERMINAL, {"result": self.result.to_dict()})

    def _log(self, event_type: EventType, payload: dict[str, Any]) -> None:
        self.events.append(
            MatchEvent.create(event_type=event_type, game_id=self.match_id, turn=self.state.turn_index, payload=payload)
        )


class SessionStore:
    """In-memory session dictionary keyed by match ID."""

    def __init__(self, scheduler_factory: SchedulerFactory = MonotonicScheduler, game_factory: Callable[[], FeudGame] | None = None) -> None:
        self._sessions: dict[str, MatchSession] = {}
        self.scheduler_factory = scheduler_factory
        self.game_factory = game_factory

    def create_match(self, *, seed: int, config: dict[str, Any] | None, players: dict[str, Any] | None) -> MatchSession:
        session = MatchSession.create(
            seed=seed,
            config=config,
            players=players,
            scheduler=self.scheduler_factory(),
            game=self.game_factory() if self.game_factory is not None else None,
        )
        self._sessions[session.match_id] = session
        logger.info("Created %s (seed=%d)", session.match_id, seed)
        return session

    def get(self, match_id: str) -> MatchSession:
        if match_id not in self._sessions:
            raise KeyError(match_id)
        session = self._sessions[match_id]
        session.pump()
        return session

    def discard(self, match_id: str) -> None:
        session = self._sessions.pop(match_id)
        session.close()
        logger.info("Discarded %s", match_id)

    def all_events(self, match_id: str) -> list[dict[str, Any]]:
        return [event.to_dict() for event in self.get(match_id).events]
