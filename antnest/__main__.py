"""Entry point for ``python -m antnest``.

Loads the default YAML config, founds a colony, and either opens a
Pygame window to watch it or runs a fixed number of ticks headless and
logs a summary.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from antnest.simulation.config import SimulationConfig
from antnest.simulation.engine import SimulationEngine
from antnest.simulation.persistence import PersistenceError

logger = logging.getLogger("antnest")

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="antnest",
        description="antnest - ant colony simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window and log a summary",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=2000,
        help="Ticks to run in headless mode (default: 2000)",
    )
    parser.add_argument(
        "--load",
        type=pathlib.Path,
        default=None,
        help="Start from a saved snapshot instead of a new colony",
    )
    parser.add_argument(
        "--save",
        type=pathlib.Path,
        default=None,
        help="Write a snapshot here after a headless run",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Pixels per world unit (default: 1.0)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    return parser


def run_headless(engine: SimulationEngine, ticks: int) -> None:
    """Advance ``engine`` by ``ticks`` fixed ticks and log a summary."""
    engine.run(ticks)
    stats = engine.statistics()
    logger.info(
        "After %d ticks (day %d): %d workers, %d eggs, queen=%s, "
        "%d structures, store %.1f, phase %s (%.0f%%)",
        engine.tick,
        engine.clock.current_day + 1,
        stats.worker_count,
        stats.egg_count,
        "alive" if stats.queen_count else "none",
        stats.nest_structures,
        stats.food_store,
        stats.phase,
        stats.phase_progress * 100,
    )


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, create engine, then run headless or launch renderer."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    engine = SimulationEngine(config=config)
    if args.load is not None:
        try:
            engine.load(args.load)
        except PersistenceError as exc:
            logger.error("Could not load %s: %s", args.load, exc)
            return 1
    else:
        engine.found_colony()

    if args.headless:
        run_headless(engine, args.ticks)
        if args.save is not None:
            try:
                engine.save(args.save)
            except PersistenceError as exc:
                logger.error("Could not save %s: %s", args.save, exc)
                return 1
        return 0

    from antnest.ui.pygame_client import PygameRenderer

    renderer = PygameRenderer(engine=engine, scale=args.scale)
    renderer.run(fps=args.fps)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
