"""Command-line entry point for seeded headless feud matches."""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Sequence

from framework.agents import RandomAgent
from framework.env_utils import getenv_any
from framework.runner import MatchRunner, RunnerConfig
from framework.serialize import json_dumps

from .feud_game import FeudGame
from .feud_minigame import MinigameKind
from .feud_moves import MoveType
from .feud_state import HOST_PLAYER_ID, TEAM_PLAYER_IDS, Difficulty

logger = logging.getLogger(__name__)


def build_agents(miss_rate: float) -> dict[str, RandomAgent]:
    agents = {player_id: RandomAgent(f"random-{player_id.lower()}", miss_rate=miss_rate) for player_id in TEAM_PLAYER_IDS}
    agents[HOST_PLAYER_ID] = RandomAgent("random-host", avoid=(MoveType.SKIP_CATEGORY.value,))
    return agents


def summarize(results: Sequence[dict[str, Any]]) -> dict[str, Any]:
    winners = Counter(result["winner"] or "TIE" for result in results)
    reasons = Counter(result["termination_reason"] for result in results)
    return {
        "games": len(results),
        "winners": dict(sorted(winners.items())),
        "termination_reasons": dict(sorted(reasons.items())),
        "results": list(results),
    }


def main(argv: Sequence[str] | None = None) -> int:
    """Run a batch of random-agent matches and print a JSON summary."""
    parser = argparse.ArgumentParser(description="Run seeded feud matches with random agents.")
    parser.add_argument("--num-games", type=int, default=1)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--difficulty", default=Difficulty.EASY.value, choices=[member.value for member in Difficulty])
    parser.add_argument("--rounds", type=int, default=3)
    parser.add_argument("--minigame", default=MinigameKind.CLASSIC.value, choices=[member.value for member in MinigameKind])
    parser.add_argument("--miss-rate", type=float, default=0.35, help="Chance a team guesses a decoy instead of an answer.")
    parser.add_argument("--categories", type=str, default=None, help="Path to a JSON category file.")
    parser.add_argument("--max-turns", type=int, default=1000)
    parser.add_argument("--log-dir", type=str, default=None)
    parser.add_argument("--output", type=str, default=None)
    parser.add_argument("--log-level", default=getenv_any("FEUD_LOG_LEVEL", default="WARNING"))
    args = parser.parse_args(argv)

    logging.basicConfig(level=str(args.log_level).upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    game_config: dict[str, Any] = {
        "difficulty": args.difficulty,
        "total_rounds": args.rounds,
        "minigame": args.minigame,
    }
    if args.categories:
        game_config["categories_path"] = args.categories

    runner = MatchRunner(RunnerConfig(max_turns=args.max_turns, event_log_dir=args.log_dir))
    results = []
    for offset in range(args.num_games):
        seed = args.seed + offset
        run = runner.run_match(FeudGame(), build_agents(args.miss_rate), seed=seed, game_config=game_config)
        logger.info("seed=%d winner=%s reason=%s", seed, run.result.winner, run.result.termination_reason.value)
        results.append(run.result.to_dict())

    summary = summarize(results)
    print(json_dumps(summary, indent=2))
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_dumps(summary, indent=2), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
