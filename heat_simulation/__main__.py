import argparse
import dataclasses
import logging
from pathlib import Path

from heat_simulation.config import SimulationConfig, load_config
from heat_simulation.logging_config import setup_logging
from heat_simulation.simulation import HeatSimulation

logger = logging.getLogger("heat_simulation.cli")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="2D heat diffusion on the GPU")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON simulation config.")
    parser.add_argument("--dim", type=int, default=None, help="Grid edge length in cells.")
    parser.add_argument("--speed", type=float, default=None, help="Diffusion speed per sub-step.")
    parser.add_argument("--steps-per-frame", type=int, default=None, help="Sub-steps per frame.")
    parser.add_argument("--frames", type=int, default=None, help="Frames to run (default: forever when shown).")
    parser.add_argument("--headless", action="store_true", help="Run without opening a window.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level for console output.",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file.")
    return parser


def resolve_config(args: argparse.Namespace) -> SimulationConfig:
    config = load_config(args.config) if args.config is not None else SimulationConfig()
    overrides = {}
    if args.dim is not None:
        overrides["dim"] = args.dim
    if args.speed is not None:
        overrides["speed"] = args.speed
    if args.steps_per_frame is not None:
        overrides["steps_per_frame"] = args.steps_per_frame
    return dataclasses.replace(config, **overrides)


def run_headless(simulation: HeatSimulation, frames: int) -> None:
    with simulation:
        for _ in range(frames):
            simulation.request_frame()
        logger.info("ran %d frames, average %.1f ms", frames, simulation.frame_stats.average_ms)


def main(argv=None) -> None:
    args = build_arg_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)
    config = resolve_config(args)

    simulation = HeatSimulation(config)
    if args.headless:
        run_headless(simulation, args.frames if args.frames is not None else 1)
        return

    from heat_simulation.animation import show
    show(simulation, frames=args.frames)


if __name__ == "__main__":
    main()
