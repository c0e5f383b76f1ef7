"""
Entry point for the stackbattle rules engine.

Supports two modes:
  - simulate: Run a headless bot match and write a CSV event log.
  - replay:   Re-run a seeded match twice and check both runs agree.

Usage:
    python main.py --mode simulate
    python main.py --mode simulate --config config/match.yaml --seed 42
    python main.py --mode simulate --players alice bob carol
    python main.py --mode replay --seed 7
"""

from __future__ import annotations

import argparse
import pathlib
import sys

import yaml


def load_config(config_path: str | pathlib.Path) -> dict:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Dict of configuration key-value pairs.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    config_path = pathlib.Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Namespace with mode, config, seed, players, and session_id attributes.
    """
    parser = argparse.ArgumentParser(
        description="stackbattle — run headless battle matches on the rules engine.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["simulate", "replay"],
        default="simulate",
        help="Run mode: 'simulate' (one match), 'replay' (determinism check).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/match.yaml",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Match seed (overrides the config file).",
    )
    parser.add_argument(
        "--players",
        type=str,
        nargs="+",
        default=None,
        help="Player ids (overrides the config file).",
    )
    parser.add_argument(
        "--session-id",
        type=str,
        default=None,
        help="Session ID for naming the event log (default: auto-generated timestamp).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point: parse args, load config, and dispatch to the selected mode."""
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.seed is not None:
        config["seed"] = args.seed
    if args.players:
        config["players"] = args.players

    from stackbattle.simulate import simulate

    if args.mode == "simulate":
        import datetime
        session_id = args.session_id or datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = pathlib.Path(config.get("log_dir", "runs")) / f"match_{session_id}.csv"
        simulate(config, log_path=log_path)

    elif args.mode == "replay":
        if config.get("seed") is None:
            print("Error: replay mode needs a seed (--seed or config).", file=sys.stderr)
            sys.exit(1)
        first = simulate(config).get_state()
        second = simulate(config).get_state()
        same = all(
            (first["players"][pid]["grid"] == second["players"][pid]["grid"]).all()
            and first["players"][pid]["score_state"] == second["players"][pid]["score_state"]
            for pid in first["players"]
        )
        print("Replay identical" if same else "Replay DIVERGED")
        if not same:
            sys.exit(1)

    else:
        print(f"Unknown mode: {args.mode}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
