"""CLI entrypoint for running Reef agent sessions."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from reef_agent.cli.helpers import (
    _build_controller,
    _configure_logging,
    _install_signal_handlers,
    _resolve_path,
    _restore_signal_handlers,
)
from reef_agent.cli.options import LogFormat, build_arg_parser, build_session_params
from reef_agent.config.loader import load_config
from reef_agent.config.secrets import load_environment_secrets
from reef_agent.interfaces.collaborators import EventCancellation
from reef_agent.memory.persistence import AgentRecordStore

logger = logging.getLogger(__name__)


def run_command(args: argparse.Namespace) -> int:
    """Run a single session and print its result as JSON."""
    config = load_config(args.config)
    _configure_logging(level=config.logging.level, log_format=args.log_format or config.logging.format)
    params = build_session_params(args, config.session.max_actions)

    cancellation = EventCancellation()
    controller, client = _build_controller(config, cancellation, seed=args.seed)
    previous = _install_signal_handlers(cancellation)
    try:
        logger.info("[BOOT] Starting session: mode=%s max_actions=%s", params.mode, params.max_actions)
        result = controller.run(params)
    finally:
        _restore_signal_handlers(previous)
        client.close()

    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.success else 1


def status_command(args: argparse.Namespace) -> int:
    """Print the persisted agent record without its API key."""
    config = load_config(args.config)
    store = AgentRecordStore(_resolve_path(config.storage.record_path))
    if not store.exists():
        logger.info("[STATUS] No agent record at %s", store.path)
        return 1
    record = store.load()
    if record is None:
        logger.error("[STATUS] Agent record at %s is unreadable; the next run re-registers", store.path)
        return 1

    document = record.to_document()
    if document.get("apiKey"):
        document["apiKey"] = f"{document['apiKey'][:6]}..."
    print(json.dumps(document, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Bootstrap logger before config loading.
    _configure_logging(level="INFO", log_format=getattr(args, "log_format", None) or LogFormat.READABLE.value)

    try:
        if args.command == "run":
            load_environment_secrets(args.env_file)
            return run_command(args)
        if args.command == "status":
            return status_command(args)
        raise ValueError(f"Unsupported command: {args.command}")
    except Exception as exc:
        logger.error("[BOOT] CLI execution failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
