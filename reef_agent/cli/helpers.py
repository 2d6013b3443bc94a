"""Wiring helpers for the reef-agent CLI."""

from __future__ import annotations

import json
import logging
import random
import signal
from collections.abc import Callable
from pathlib import Path
from typing import Any

from reef_agent.cli.options import LogFormat
from reef_agent.config.loader import Config
from reef_agent.config.secrets import resolve_private_key, resolve_rpc_url
from reef_agent.core.loop import SessionController
from reef_agent.environment.client import ReefClient
from reef_agent.environment.registration import RegistrationFlow
from reef_agent.environment.wallet import EntryFeeWallet
from reef_agent.interfaces.collaborators import EventCancellation, JsonEmotionSource, LoggingActivityLogger
from reef_agent.memory.persistence import AgentRecordStore
from reef_agent.strategy.candidates import CandidateGenerator

logger = logging.getLogger(__name__)


class _JSONLogFormatter(logging.Formatter):
    """Compact JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        kind = getattr(record, "activity", None)
        if kind:
            payload["kind"] = kind
        data = getattr(record, "data", None)
        if data:
            payload["data"] = data
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=True, default=str)


def _configure_logging(level: str = "INFO", log_format: str = LogFormat.READABLE.value) -> None:
    """Configure process-wide logging."""
    resolved_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, "_reef_agent_handler", False)]

    handler = logging.StreamHandler()
    handler._reef_agent_handler = True  # type: ignore[attr-defined]
    if log_format == LogFormat.JSON.value:
        formatter: logging.Formatter = _JSONLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(resolved_level)

    # Connection pool chatter and web3 provider logs drown the activity feed.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


def _resolve_path(path: str) -> Path:
    return Path(path).expanduser()


def _wallet_factory(config: Config) -> Callable[[str], EntryFeeWallet]:
    api = config.api

    def _build(private_key: str) -> EntryFeeWallet:
        return EntryFeeWallet(
            private_key,
            rpc_url=resolve_rpc_url(api.rpc_url),
            contract_address=api.contract_address,
            selector=api.enter_selector,
            chain_id=api.chain_id,
            receipt_timeout=api.receipt_timeout,
        )

    return _build


def _build_controller(
    config: Config,
    cancellation: EventCancellation,
    seed: int | None = None,
) -> tuple[SessionController, ReefClient]:
    """Assemble a session controller from configuration."""
    rng = random.Random(seed)
    client = ReefClient(config.api.base_url, timeout=config.api.timeout)
    store = AgentRecordStore(_resolve_path(config.storage.record_path))
    activity = LoggingActivityLogger()
    registration = RegistrationFlow(
        client,
        store,
        activity,
        agent_name=config.api.agent_name,
        private_key=resolve_private_key(),
        wallet_factory=_wallet_factory(config),
    )
    generator = CandidateGenerator(
        config=config.scoring.to_scoring_config(),
        rng=rng,
        noise=config.scoring.noise,
    )
    controller = SessionController(
        client,
        registration,
        store,
        JsonEmotionSource(_resolve_path(config.storage.emotion_path)),
        activity=activity,
        cancellation=cancellation,
        generator=generator,
        config=config.session.to_controller_config(),
        rng=rng,
    )
    return controller, client


def _install_signal_handlers(cancellation: EventCancellation) -> dict[int, Any]:
    """Route SIGINT/SIGTERM to the cancellation signal; return previous handlers."""

    def _handler(signum: int, _frame: Any) -> None:
        logger.info("[CLI] Received signal %s, finishing session...", signum)
        cancellation.cancel()

    previous: dict[int, Any] = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, _handler)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)
