"""Configuration management for reef-agent."""

from reef_agent.config.loader import Config, get_default_config, load_config
from reef_agent.config.secrets import load_environment_secrets, resolve_private_key, resolve_rpc_url

__all__ = [
    "Config",
    "get_default_config",
    "load_config",
    "load_environment_secrets",
    "resolve_private_key",
    "resolve_rpc_url",
]
