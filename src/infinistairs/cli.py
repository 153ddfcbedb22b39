import argparse
import logging
from pathlib import Path

from .autoplay import AutoPilot, simulate_run
from .config import GameConfig
from .core.rng import RNG
from .errors import ConfigError
from .logging_config import configure_logging
from .machine import RunStateMachine
from .persistence import JsonHighScoreStore, MemoryHighScoreStore

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="infinistairs",
        description="Infinity Stairs - play one headless run with the autopilot and report the result",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to a YAML file overriding the default game configuration.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible staircase and bot.")
    parser.add_argument(
        "--mistake-rate",
        type=float,
        default=0.0,
        help="Probability (0-1) that the autopilot picks the wrong direction.",
    )
    parser.add_argument("--max-ticks", type=int, default=None, help="Stop the run after this many clock ticks.")
    parser.add_argument(
        "--high-score-file",
        type=Path,
        default=None,
        help="JSON file holding the best score (defaults to the user data directory).",
    )
    parser.add_argument("--no-save", action="store_true", help="Keep the high score in memory only.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging.")
    args = parser.parse_args(argv)
    if not 0.0 <= args.mistake_rate <= 1.0:
        parser.error("--mistake-rate must be between 0 and 1")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(default_level=logging.DEBUG if args.debug else logging.WARNING)

    try:
        config = GameConfig.load(user_path=args.config_path)
    except ConfigError as e:
        logger.error("%s", e.to_human())
        return 2

    if args.no_save:
        store = MemoryHighScoreStore()
    else:
        store = JsonHighScoreStore(args.high_score_file, key=config.high_score_key)

    machine = RunStateMachine(config=config, store=store, rng=RNG(args.seed))
    pilot = AutoPilot(rng=RNG(None if args.seed is None else args.seed + 1), mistake_rate=args.mistake_rate)
    result = simulate_run(machine, pilot, max_ticks=args.max_ticks)

    lives = "-" if result.lives is None else str(result.lives)
    print(
        f"{result.phase.value} floor={result.current_floor} score={result.score} "
        f"lives={lives} high_score={result.high_score}"
    )
    return 0
