"""CLI option models and parser helpers."""

from __future__ import annotations

import argparse
from enum import StrEnum

from reef_agent.models.session import SessionMode, SessionParams


class LogFormat(StrEnum):
    """CLI log formatter mode."""

    READABLE = "readable"
    JSON = "json"


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(prog="reef-agent", description="Autonomous Reef RPG agent")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Play one bounded session")
    run_parser.add_argument(
        "--mode",
        type=str,
        default=SessionMode.ADVENTURE.value,
        choices=[mode.value for mode in SessionMode],
        help="Play style that biases action scoring",
    )
    run_parser.add_argument(
        "--max-actions",
        type=int,
        default=None,
        help="Ceiling on successful actions (minimum 5)",
    )
    run_parser.add_argument("--target-zone", type=str, default=None, help="Pin movement toward this zone")
    run_parser.add_argument("--config", type=str, default=None, help="Path to YAML config file")
    run_parser.add_argument("--env-file", type=str, default=None, help="Dotenv file holding the wallet key")
    run_parser.add_argument("--seed", type=int, default=None, help="Seed for score noise and message choice")
    run_parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format",
    )

    status_parser = subparsers.add_parser("status", help="Print the persisted agent record")
    status_parser.add_argument("--config", type=str, default=None, help="Path to YAML config file")
    status_parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format",
    )

    return parser


def build_session_params(args: argparse.Namespace, default_max_actions: int) -> SessionParams:
    """Build session parameters from parsed ``run`` args."""
    max_actions = args.max_actions if args.max_actions is not None else default_max_actions
    return SessionParams(
        mode=SessionMode(args.mode),
        max_actions=max_actions,
        target_zone=args.target_zone,
    )
