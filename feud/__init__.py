"""Feud package exports."""

from .feud_categories import Category, CategoryDeck, CategoryEntry, ROUND_OPTIONS, load_categories
from .feud_faceoff import FaceOffReason, FaceOffVerdict, resolve_face_off
from .feud_game import FeudGame, FeudState
from .feud_matcher import AnswerMatcher, ExactAnswerMatcher, normalize_guess
from .feud_minigame import MinigameArbiter, MinigameKind, MinigameSettings
from .feud_moves import (
    AdvanceReveal,
    BeginFaceOff,
    Buzz,
    ChoosePlayOrPass,
    ContinueToScores,
    DeclareWrong,
    FaceOffTimeout,
    MoveType,
    Settle,
    SkipCategory,
    SubmitGuess,
)
from .feud_observation import FeudObservation
from .feud_round import Decision, RoundOutcome, RoundRules, RoundStateMachine
from .feud_scores import Scoreboard
from .feud_semantic import SemanticAnswerMatcher, matcher_from_env
from .feud_state import (
    HOST_PLAYER_ID,
    TEAM_PLAYER_IDS,
    Answer,
    Difficulty,
    GamePhase,
    RevealedAnswer,
    Role,
    RoundState,
    Team,
)
from .feud_strikes import MAX_STRIKES, StrikeTracker

__all__ = [
    "AdvanceReveal",
    "Answer",
    "AnswerMatcher",
    "BeginFaceOff",
    "Buzz",
    "Category",
    "CategoryDeck",
    "CategoryEntry",
    "ChoosePlayOrPass",
    "ContinueToScores",
    "DeclareWrong",
    "Decision",
    "Difficulty",
    "ExactAnswerMatcher",
    "FaceOffReason",
    "FaceOffTimeout",
    "FaceOffVerdict",
    "FeudGame",
    "FeudObservation",
    "FeudState",
    "GamePhase",
    "HOST_PLAYER_ID",
    "MAX_STRIKES",
    "MinigameArbiter",
    "MinigameKind",
    "MinigameSettings",
    "MoveType",
    "ROUND_OPTIONS",
    "RevealedAnswer",
    "Role",
    "RoundOutcome",
    "RoundRules",
    "RoundState",
    "RoundStateMachine",
    "Scoreboard",
    "SemanticAnswerMatcher",
    "Settle",
    "SkipCategory",
    "StrikeTracker",
    "SubmitGuess",
    "TEAM_PLAYER_IDS",
    "Team",
    "load_categories",
    "matcher_from_env",
    "normalize_guess",
    "resolve_face_off",
]
