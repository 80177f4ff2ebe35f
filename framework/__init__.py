"""Framework exports for games, agents, runners and timers."""

from .errors import ArenaError, IllegalMoveError, MatchConfigurationError
from .events import EventType, MatchEvent
from .game import Game, LegalMovesSpec, PlayerId
from .move import Move
from .observation import Observation
from .player import Agent
from .result import MatchResult, TerminationReason
from .runner import MatchRun, MatchRunner, RunnerConfig
from .scheduler import ManualScheduler, MonotonicScheduler, TimerGroup
from .state import Record, State

__all__ = [
    "Agent",
    "ArenaError",
    "EventType",
    "Game",
    "IllegalMoveError",
    "LegalMovesSpec",
    "ManualScheduler",
    "MatchConfigurationError",
    "MatchEvent",
    "MatchResult",
    "MatchRun",
    "MatchRunner",
    "MonotonicScheduler",
    "Move",
    "Observation",
    "PlayerId",
    "Record",
    "RunnerConfig",
    "State",
    "TerminationReason",
    "TimerGroup",
]
