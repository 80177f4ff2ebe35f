"""Buzz-in minigames that decide which team gets to answer first.

Three interchangeable models sit behind `MinigameArbiter`:

- `classic`: both teams press; the first press wins.
- `teleporting_bell`: bells appear after a ready delay and jump around a board
  split down the middle. Striking a bell awards the buzz to the team whose half
  the bell was on at that instant.
- `quick_draw`: a "go" signal fires after a random delay. Pressing after it
  wins; pressing before it hands the buzz to the other team.

Every timer lives in the round's `TimerGroup`, so discarding the round cancels
the game in progress. The arbiter reports exactly one team, once.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Mapping, Protocol

from framework.errors import IllegalMoveError, MatchConfigurationError
from framework.scheduler import RepeatingTimer, TimerGroup, TimerHandle
from framework.state import Record

from .feud_state import Team

logger = logging.getLogger(__name__)

BuzzCallback = Callable[[Team], None]
DecideCallback = Callable[[Team, str], None]

BOARD_MIDLINE = 50.0
X_RANGE = (10.0, 90.0)
Y_RANGE = (20.0, 80.0)


class MinigameKind(str, Enum):
    CLASSIC = "classic"
    TELEPORTING_BELL = "teleporting_bell"
    QUICK_DRAW = "quick_draw"

    @classmethod
    def parse(cls, value: Any) -> "MinigameKind":
        if isinstance(value, MinigameKind):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {"teleportingbell": "teleporting_bell", "quickdraw": "quick_draw", "bell": "teleporting_bell"}
        try:
            return cls(aliases.get(text, text))
        except ValueError as exc:
            raise MatchConfigurationError(f"Unknown minigame: {value!r}") from exc


@dataclass(frozen=True)
class MinigameSettings(Record):
    """Timing and spawn tuning for the minigames (milliseconds)."""

    ready_delay_ms: int = 2000
    static_ms: int = 1000
    relocate_interval_ms: int = 850
    spawn_base_interval_ms: int = 3000
    spawn_min_interval_ms: int = 1000
    spawn_step_ms: int = 500
    max_targets: int = 4
    reaction_min_delay_ms: int = 1500
    reaction_max_delay_ms: int = 5000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "MinigameSettings":
        defaults = cls().to_dict()
        try:
            settings = cls(**{name: int(config.get(name, default)) for name, default in defaults.items()})
        except (TypeError, ValueError) as exc:
            raise MatchConfigurationError(f"Invalid minigame settings: {exc}") from exc

        for name, value in settings.to_dict().items():
            if value < 0:
                raise MatchConfigurationError(f"{name} must be >= 0.")
        if settings.relocate_interval_ms == 0:
            raise MatchConfigurationError("relocate_interval_ms must be > 0.")
        if settings.max_targets < 1:
            raise MatchConfigurationError("max_targets must be >= 1.")
        if settings.spawn_min_interval_ms == 0 or settings.spawn_min_interval_ms > settings.spawn_base_interval_ms:
            raise MatchConfigurationError("spawn_min_interval_ms must be in (0, spawn_base_interval_ms].")
        if settings.reaction_min_delay_ms > settings.reaction_max_delay_ms:
            raise MatchConfigurationError("reaction_min_delay_ms must be <= reaction_max_delay_ms.")
        return settings

    def spawn_interval_ms(self, target_count: int) -> int:
        """Wait before the next bell appears; shrinks as bells pile up."""
        shrink = self.spawn_step_ms * max(0, target_count - 1)
        return max(self.spawn_min_interval_ms, self.spawn_base_interval_ms - shrink)


def side_of(x: float) -> Team:
    """Left half belongs to Team 1, right half to Team 2."""
    return Team.ONE if x < BOARD_MIDLINE else Team.TWO


@dataclass
class BellTarget:
    target_id: int
    x: float
    y: float

    @property
    def side(self) -> Team:
        return side_of(self.x)

    def to_dict(self) -> dict[str, Any]:
        return {"target_id": self.target_id, "x": round(self.x, 2), "y": round(self.y, 2), "side": self.side.value}


class Minigame(Protocol):
    kind: ClassVar[MinigameKind]

    def start(self) -> None: ...

    def press(self, team: Team) -> None: ...

    def strike(self, target_id: int) -> None: ...

    def stop(self) -> None: ...

    def snapshot(self) -> dict[str, Any]: ...


class SimultaneousChoice:
    """Both buzzers are live immediately; first press wins."""

    kind: ClassVar[MinigameKind] = MinigameKind.CLASSIC

    def __init__(self, settings: MinigameSettings, timers: TimerGroup, rng: random.Random, decide: DecideCallback):
        self._decide = decide

    def start(self) -> None:
        pass

    def press(self, team: Team) -> None:
        self._decide(team, "first_press")

    def strike(self, target_id: int) -> None:
        raise IllegalMoveError(None, {"type": "Strike", "target_id": target_id}, "This minigame has no bells to strike.")

    def stop(self) -> None:
        pass

    def snapshot(self) -> dict[str, Any]:
        return {"live": True}


class SpatialRace:
    """Teleporting bells on a board split at x = 50."""

    kind: ClassVar[MinigameKind] = MinigameKind.TELEPORTING_BELL

    def __init__(self, settings: MinigameSettings, timers: TimerGroup, rng: random.Random, decide: DecideCallback):
        self.settings = settings
        self._timers = timers
        self._rng = rng
        self._decide = decide
        self.visible = False
        self.targets: dict[int, BellTarget] = {}
        self._next_id = 1
        self._handles: list[TimerHandle] = []
        self._relocator: RepeatingTimer | None = None

    def start(self) -> None:
        self._handles.append(self._timers.call_later(self.settings.ready_delay_ms, self._show, label="bell.ready"))

    def _show(self) -> None:
        self.visible = True
        self._spawn()
        self._relocator = self._timers.call_every(
            self.settings.relocate_interval_ms,
            self._relocate_all,
            label="bell.relocate",
            initial_delay_ms=self.settings.static_ms,
        )
        self._schedule_spawn()

    def _random_position(self) -> tuple[float, float]:
        return self._rng.uniform(*X_RANGE), self._rng.uniform(*Y_RANGE)

    def _spawn(self) -> None:
        x, y = self._random_position()
        target = BellTarget(target_id=self._next_id, x=x, y=y)
        self.targets[target.target_id] = target
        self._next_id += 1

    def _schedule_spawn(self) -> None:
        if len(self.targets) >= self.settings.max_targets:
            return
        delay = self.settings.spawn_interval_ms(len(self.targets))
        self._handles.append(self._timers.call_later(delay, self._spawn_and_reschedule, label="bell.spawn"))

    def _spawn_and_reschedule(self) -> None:
        self._spawn()
        self._schedule_spawn()

    def _relocate_all(self) -> None:
        for target in self.targets.values():
            target.x, target.y = self._random_position()

    def press(self, team: Team) -> None:
        raise IllegalMoveError(team.value, {"type": "Press", "team": team.value}, "Strike a bell to buzz in.")

    def strike(self, target_id: int) -> None:
        action = {"type": "Strike", "target_id": target_id}
        if not self.visible:
            raise IllegalMoveError(None, action, "The bell has not appeared yet.")
        target = self.targets.get(target_id)
        if target is None:
            raise IllegalMoveError(None, action, f"No bell with id {target_id}.")
        self._decide(target.side, f"bell_{target_id}")

    def stop(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        if self._relocator is not None:
            self._relocator.cancel()

    def snapshot(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "targets": [target.to_dict() for target in self.targets.values()] if self.visible else [],
        }


class ReactionRace:
    """Wait for the go signal; jumping the gun gives the buzz away."""

    kind: ClassVar[MinigameKind] = MinigameKind.QUICK_DRAW

    def __init__(self, settings: MinigameSettings, timers: TimerGroup, rng: random.Random, decide: DecideCallback):
        self.settings = settings
        self._timers = timers
        self._rng = rng
        self._decide = decide
        self.live = False
        self.go_delay_ms: int | None = None
        self._handle: TimerHandle | None = None

    def start(self) -> None:
        self.go_delay_ms = self._rng.randint(self.settings.reaction_min_delay_ms, self.settings.reaction_max_delay_ms)
        self._handle = self._timers.call_later(self.go_delay_ms, self._go, label="quick_draw.go")

    def _go(self) -> None:
        self.live = True

    def press(self, team: Team) -> None:
        if self.live:
            self._decide(team, "fastest_draw")
        else:
            self._decide(team.other, f"early_press_by_{team.value}")

    def strike(self, target_id: int) -> None:
        raise IllegalMoveError(None, {"type": "Strike", "target_id": target_id}, "This minigame has no bells to strike.")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()

    def snapshot(self) -> dict[str, Any]:
        return {"live": self.live}


MINIGAMES: dict[MinigameKind, type] = {
    MinigameKind.CLASSIC: SimultaneousChoice,
    MinigameKind.TELEPORTING_BELL: SpatialRace,
    MinigameKind.QUICK_DRAW: ReactionRace,
}


@dataclass(eq=False)
class MinigameArbiter:
    """Runs one minigame and reports the buzzing team exactly once."""

    kind: MinigameKind
    timers: TimerGroup
    on_buzzed: BuzzCallback
    settings: MinigameSettings = field(default_factory=MinigameSettings)
    rng: random.Random = field(default_factory=random.Random)
    winner: Team | None = None
    reason: str | None = None
    started: bool = False
    cancelled: bool = False

    def __post_init__(self) -> None:
        self.kind = MinigameKind.parse(self.kind)
        self.game: Minigame = MINIGAMES[self.kind](self.settings, self.timers, self.rng, self._decide)

    @property
    def decided(self) -> bool:
        return self.winner is not None

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        self.game.start()

    def press(self, team: Team) -> Team | None:
        """Buzzer press. Returns the winner if this press decided the game."""
        self._require_running({"type": "Press", "team": team.value})
        if self.decided:
            return None
        self.game.press(team)
        return self.winner

    def strike(self, target_id: int) -> Team | None:
        self._require_running({"type": "Strike", "target_id": target_id})
        if self.decided:
            return None
        self.game.strike(target_id)
        return self.winner

    def cancel(self) -> None:
        self.cancelled = True
        self.game.stop()

    def snapshot(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "started": self.started,
            "cancelled": self.cancelled,
            "winner": self.winner.value if self.winner else None,
            "reason": self.reason,
            **self.game.snapshot(),
        }

    def _require_running(self, action: dict[str, Any]) -> None:
        if self.cancelled:
            raise IllegalMoveError(None, action, "Minigame was cancelled.")
        if not self.started:
            raise IllegalMoveError(None, action, "Minigame has not started.")

    def _decide(self, team: Team, reason: str) -> None:
        if self.winner is not None:
            return
        self.winner = team
        self.reason = reason
        self.game.stop()
        logger.debug("Minigame %s (%s) decided for %s: %s", self.kind.value, self.timers.owner, team.value, reason)
        self.on_buzzed(team)
