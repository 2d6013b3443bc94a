"""Tests for wallet secret loading and resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from reef_agent.config.secrets import (
    load_environment_secrets,
    resolve_private_key,
    resolve_rpc_url,
)

WALLET_KEY = "0x" + "ab" * 32


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BURNER_PRIVATE_KEY", "PRIVATE_KEY", "MONAD_RPC_URL", "REEFAGENT_ENV_FILE"):
        monkeypatch.delenv(name, raising=False)


def _wallet_env(path: Path, body: str, mode: int = 0o600) -> Path:
    path.write_text(body)
    os.chmod(path, mode)
    return path


class TestLoadWalletEnv:
    """The burner wallet dotenv file."""

    def test_burner_key_reaches_resolver(self, tmp_path: Path) -> None:
        env_file = _wallet_env(tmp_path / "wallet.env", f"BURNER_PRIVATE_KEY={WALLET_KEY}\n")

        assert load_environment_secrets(env_file) == env_file
        assert resolve_private_key() == WALLET_KEY

    def test_exported_key_wins_over_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = _wallet_env(tmp_path / "wallet.env", f"BURNER_PRIVATE_KEY={WALLET_KEY}\n")
        monkeypatch.setenv("BURNER_PRIVATE_KEY", "0xexported")

        load_environment_secrets(env_file)

        assert resolve_private_key() == "0xexported"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_shared_wallet_file_refused(self, tmp_path: Path) -> None:
        env_file = _wallet_env(tmp_path / "wallet.env", f"PRIVATE_KEY={WALLET_KEY}\n", mode=0o640)

        with pytest.raises(PermissionError, match="chmod 600"):
            load_environment_secrets(env_file)

        assert resolve_private_key() is None

    @pytest.mark.skipif(os.name == "nt", reason="Symlink semantics differ on Windows")
    def test_symlinked_wallet_file_refused(self, tmp_path: Path) -> None:
        real = _wallet_env(tmp_path / "real.env", f"PRIVATE_KEY={WALLET_KEY}\n")
        link = tmp_path / "wallet.env"
        link.symlink_to(real)

        with pytest.raises(PermissionError, match="symlink"):
            load_environment_secrets(link)

    def test_named_file_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_environment_secrets(tmp_path / "missing.env")

        assert load_environment_secrets(tmp_path / "missing.env", strict=False) is None

    def test_implicit_dotenv_is_optional(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        assert load_environment_secrets() is None

    def test_env_file_variable_points_at_rpc_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env_file = _wallet_env(tmp_path / "monad.env", "MONAD_RPC_URL=https://rpc.example\n")
        monkeypatch.setenv("REEFAGENT_ENV_FILE", str(env_file))

        assert load_environment_secrets() == env_file
        assert resolve_rpc_url("https://rpc.monad.xyz") == "https://rpc.example"


class TestResolveWallet:
    def test_burner_key_preferred_and_stripped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BURNER_PRIVATE_KEY", " 0xburner \n")
        monkeypatch.setenv("PRIVATE_KEY", "0xmain")

        assert resolve_private_key() == "0xburner"

    def test_blank_burner_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BURNER_PRIVATE_KEY", "  ")
        monkeypatch.setenv("PRIVATE_KEY", "0xmain")

        assert resolve_private_key() == "0xmain"

    def test_bare_hex_key_gets_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", "ab" * 32)

        assert resolve_private_key() == WALLET_KEY

    def test_no_key(self) -> None:
        assert resolve_private_key() is None

    def test_rpc_default_when_unset_or_blank(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert resolve_rpc_url("https://rpc.monad.xyz") == "https://rpc.monad.xyz"

        monkeypatch.setenv("MONAD_RPC_URL", " ")
        assert resolve_rpc_url("https://rpc.monad.xyz") == "https://rpc.monad.xyz"
