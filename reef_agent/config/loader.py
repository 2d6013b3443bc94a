"""Configuration loader for reef-agent.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values using the REEFAGENT_ prefix.
Nested keys use double underscores: REEFAGENT_SESSION__ACTION_DELAY_SECONDS=8
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from reef_agent.core.loop import ControllerConfig
from reef_agent.strategy.candidates import ScoringConfig

ENV_PREFIX = "REEFAGENT_"


class ApiConfig(BaseModel):
    """Game service and payment rail settings."""

    base_url: str = Field(default="https://thereef.co")
    timeout: float = Field(default=30.0, gt=0, le=300, description="HTTP timeout in seconds")
    agent_name: str = Field(default="EMOLT", min_length=1)
    contract_address: str = Field(default="0x6CEb87A98435E3Da353Bf7D5b921Be0071031d7D")
    enter_selector: str = Field(default="0xe97dcb62", pattern="^0x[0-9a-fA-F]{8}$")
    rpc_url: str = Field(default="https://rpc.monad.xyz")
    chain_id: int = Field(default=143, ge=1)
    receipt_timeout: float = Field(default=180.0, gt=0)


class SessionConfig(BaseModel):
    """Pacing and refresh cadence for a session."""

    action_delay_seconds: float = Field(default=6.0, ge=0)
    rest_cooldown_seconds: float = Field(default=61.0, ge=0)
    broadcast_cooldown_seconds: float = Field(default=61.0, ge=0)
    refresh_every: int = Field(default=4, ge=1)
    status_refresh_every: int = Field(default=8, ge=1)
    max_survey_attempts: int = Field(default=3, ge=1, le=10)
    max_actions: int = Field(default=40, ge=5, description="Default action budget")

    def to_controller_config(self) -> ControllerConfig:
        return ControllerConfig(
            action_delay_seconds=self.action_delay_seconds,
            rest_cooldown_seconds=self.rest_cooldown_seconds,
            broadcast_cooldown_seconds=self.broadcast_cooldown_seconds,
            refresh_every=self.refresh_every,
            status_refresh_every=self.status_refresh_every,
            max_survey_attempts=self.max_survey_attempts,
        )


class ScoringSection(BaseModel):
    """Candidate scoring constants."""

    energy_reserve: int = Field(default=15, ge=0)
    loop_guard_penalty: float = Field(default=10.0, ge=0)
    loop_guard_window: int = Field(default=3, ge=2)
    top_n: int = Field(default=4, ge=1)
    noise: bool = Field(default=True, description="Perturb scores by exploration")

    def to_scoring_config(self) -> ScoringConfig:
        return ScoringConfig(
            energy_reserve=self.energy_reserve,
            loop_guard_penalty=self.loop_guard_penalty,
            loop_guard_window=self.loop_guard_window,
            top_n=self.top_n,
        )


class StorageConfig(BaseModel):
    """File locations."""

    record_path: str = Field(default="state/reef-state.json")
    emotion_path: str = Field(default="state/emotion-state.json")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="readable", pattern="^(readable|json)$")


class Config(BaseModel):
    """Root configuration model."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    scoring: ScoringSection = Field(default_factory=ScoringSection)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _get_env_value(key: str) -> str | None:
    """Get environment variable with REEFAGENT_ prefix."""
    return os.environ.get(f"{ENV_PREFIX}{key.upper()}")


def _apply_env_overrides(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Apply environment variable overrides to config data.

    Example: REEFAGENT_API__BASE_URL=http://localhost:3000 sets api.base_url.
    """
    result = data.copy()

    for key, value in result.items():
        env_key = f"{prefix}__{key}" if prefix else key

        if isinstance(value, dict):
            result[key] = _apply_env_overrides(value, env_key)
        else:
            env_value = _get_env_value(env_key)
            if env_value is not None:
                if isinstance(value, bool):
                    result[key] = env_value.lower() in ("true", "1", "yes")
                elif isinstance(value, int):
                    result[key] = int(env_value)
                elif isinstance(value, float):
                    result[key] = float(env_value)
                else:
                    result[key] = env_value

    return result


def default_config_path() -> Path:
    return Path(__file__).resolve().parent.parent.parent / "configs" / "default.yaml"


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses configs/default.yaml
            when present and built-in defaults otherwise.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist.
        ValidationError: If config values are invalid.
    """
    if config_path is None:
        path = default_config_path()
        if not path.exists():
            data: dict[str, Any] = get_default_config().model_dump()
            return Config.model_validate(_apply_env_overrides(data))
    else:
        path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        loaded = yaml.safe_load(f) or {}

    # Defaults first so every key can be overridden from the environment.
    data = _deep_merge(get_default_config().model_dump(), loaded)
    data = _apply_env_overrides(data)
    return Config.model_validate(data)


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_default_config() -> Config:
    """Get default configuration without loading from file."""
    return Config()
