"""Wallet secrets for the entry-fee payment.

The burner wallet key lives in a dotenv file next to the working directory
(or wherever ``--env-file`` / ``REEFAGENT_ENV_FILE`` points). The file is
refused unless only its owner can read it.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_FILE_VAR = "REEFAGENT_ENV_FILE"
PRIVATE_KEY_VARS = ("BURNER_PRIVATE_KEY", "PRIVATE_KEY")
RPC_URL_VAR = "MONAD_RPC_URL"


def _check_private(path: Path) -> None:
    if path.is_symlink():
        raise PermissionError(f"Refusing to load wallet secrets through a symlink: {path}")
    if os.name != "nt" and path.stat().st_mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise PermissionError(f"Wallet secrets in {path} are readable by others; run chmod 600 {path}")


def load_environment_secrets(env_file: str | Path | None = None, *, strict: bool = True) -> Path | None:
    """Load the wallet dotenv file into the process environment.

    Values already present in the environment are kept. An explicitly named
    file (argument or ``REEFAGENT_ENV_FILE``) must exist when ``strict``;
    the implicit ``./.env`` is simply skipped when absent.

    Returns:
        The loaded file, or None when nothing was loaded.
    """
    explicit = env_file or os.environ.get(ENV_FILE_VAR)
    path = Path(explicit).expanduser() if explicit else Path(".env")
    if not path.exists():
        if explicit and strict:
            raise FileNotFoundError(f"Dotenv file not found: {path}")
        return None
    if not path.is_file():
        raise ValueError(f"Dotenv path is not a regular file: {path}")

    _check_private(path)
    load_dotenv(dotenv_path=path, override=False)
    logger.debug("[SECRETS] Loaded %s", path)
    return path


def resolve_private_key() -> str | None:
    """Wallet key from BURNER_PRIVATE_KEY, falling back to PRIVATE_KEY.

    Keys without the ``0x`` prefix are accepted and normalized.
    """
    for name in PRIVATE_KEY_VARS:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value if value.startswith("0x") else f"0x{value}"
    return None


def resolve_rpc_url(default: str) -> str:
    return (os.environ.get(RPC_URL_VAR) or "").strip() or default
