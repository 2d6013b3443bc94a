"""Tests for the CLI parser, wiring and commands."""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

import reef_agent.cli as cli
from reef_agent.cli import main, run_command, status_command
from reef_agent.cli.helpers import _build_controller, _configure_logging, _JSONLogFormatter
from reef_agent.cli.options import build_arg_parser, build_session_params
from reef_agent.config import Config
from reef_agent.interfaces.collaborators import EventCancellation
from reef_agent.memory.persistence import AgentRecordStore
from reef_agent.models.records import PersistedAgentRecord
from reef_agent.models.session import SessionMode, SessionResult


def _config_file(tmp_path: Path) -> Path:
    config_file = tmp_path / "config.yaml"
    with open(config_file, "w") as f:
        yaml.dump(
            {
                "storage": {
                    "record_path": str(tmp_path / "reef-state.json"),
                    "emotion_path": str(tmp_path / "emotion-state.json"),
                }
            },
            f,
        )
    return config_file


class TestCLIParser:
    """Argument parsing behavior."""

    def test_parses_run_command_options(self) -> None:
        parser = build_arg_parser()

        args = parser.parse_args([
            "run",
            "--mode",
            "grind",
            "--max-actions",
            "12",
            "--target-zone",
            "kelp_forest",
            "--seed",
            "7",
        ])

        assert args.command == "run"
        assert args.mode == "grind"
        assert args.max_actions == 12
        assert args.target_zone == "kelp_forest"
        assert args.seed == 7
        assert args.log_format is None

    def test_rejects_unknown_mode(self) -> None:
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["run", "--mode", "speedrun"])

    def test_session_params_use_config_default(self) -> None:
        args = build_arg_parser().parse_args(["run", "--mode", "pvp"])

        params = build_session_params(args, default_max_actions=25)

        assert params.mode == SessionMode.PVP
        assert params.max_actions == 25
        assert params.target_zone is None

    def test_session_params_clamp_budget(self) -> None:
        args = build_arg_parser().parse_args(["run", "--max-actions", "2", "--target-zone", " "])

        params = build_session_params(args, default_max_actions=40)

        assert params.max_actions == 5
        assert params.target_zone is None


class TestLogging:
    def test_json_formatter_includes_activity(self) -> None:
        record = logging.LogRecord("reef_agent.activity", logging.INFO, __file__, 1, "[ACTION] gather", None, None)
        record.activity = "action"
        record.data = {"target": "seaweed"}

        payload = json.loads(_JSONLogFormatter().format(record))

        assert payload["msg"] == "[ACTION] gather"
        assert payload["kind"] == "action"
        assert payload["data"] == {"target": "seaweed"}

    def test_configure_logging_replaces_own_handler(self) -> None:
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        try:
            _configure_logging("DEBUG", "json")
            _configure_logging("INFO", "readable")

            ours = [h for h in root.handlers if getattr(h, "_reef_agent_handler", False)]
            assert len(ours) == 1
            assert root.level == logging.INFO
        finally:
            root.handlers = before
            root.setLevel(level)


class TestWiring:
    def test_build_controller(self, tmp_path: Path) -> None:
        config = Config.model_validate({"storage": {"record_path": str(tmp_path / "state.json")}})

        controller, client = _build_controller(config, EventCancellation(), seed=3)
        try:
            assert client.base_url == "https://thereef.co"
            assert controller.phase == "registering"
        finally:
            client.close()


class TestCommands:
    """run/status command behavior."""

    def test_run_prints_result_and_exit_code(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        controller = MagicMock()
        controller.run.return_value = SessionResult(success=True, summary="reef session in shallows", reflection="ok")
        client = MagicMock()
        build = MagicMock(return_value=(controller, client))
        monkeypatch.setattr(cli, "_build_controller", build)
        args = build_arg_parser().parse_args(["run", "--config", str(_config_file(tmp_path)), "--max-actions", "9"])

        code = run_command(args)

        assert code == 0
        params = controller.run.call_args.args[0]
        assert params.max_actions == 9
        client.close.assert_called_once()
        output = json.loads(capsys.readouterr().out)
        assert output["summary"] == "reef session in shallows"

    def test_run_failure_exit_code(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        controller = MagicMock()
        controller.run.return_value = SessionResult(success=False, summary="failed", reflection="no")
        monkeypatch.setattr(cli, "_build_controller", MagicMock(return_value=(controller, MagicMock())))
        args = build_arg_parser().parse_args(["run", "--config", str(_config_file(tmp_path))])

        assert run_command(args) == 1

    def test_status_masks_api_key(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config_file = _config_file(tmp_path)
        AgentRecordStore(tmp_path / "reef-state.json").save(
            PersistedAgentRecord(
                api_key="abcdef123456",
                agent_name="EMOLT",
                wallet_address="0xabc",
                registered_at="2026-01-02T00:00:00+00:00",
            )
        )

        code = status_command(Namespace(config=str(config_file)))

        assert code == 0
        document = json.loads(capsys.readouterr().out)
        assert document["apiKey"] == "abcdef..."
        assert document["agentName"] == "EMOLT"

    def test_status_without_record(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="reef_agent.cli")

        assert status_command(Namespace(config=str(_config_file(tmp_path)))) == 1
        assert "No agent record" in caplog.text

    def test_status_with_corrupted_record(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str], caplog: pytest.LogCaptureFixture
    ) -> None:
        config_file = _config_file(tmp_path)
        (tmp_path / "reef-state.json").write_text("{not json", encoding="utf-8")
        caplog.set_level(logging.INFO, logger="reef_agent.cli")

        assert status_command(Namespace(config=str(config_file))) == 1
        assert "unreadable" in caplog.text
        assert capsys.readouterr().out == ""

    def test_main_without_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "reef-agent" in capsys.readouterr().out

    def test_main_reports_failures(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "load_environment_secrets", MagicMock())

        assert main(["run", "--config", str(tmp_path / "missing.yaml")]) == 1

    def test_main_run_loads_secrets(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secrets = MagicMock()
        monkeypatch.setattr(cli, "load_environment_secrets", secrets)
        monkeypatch.setattr(cli, "run_command", MagicMock(return_value=0))

        assert main(["run", "--env-file", "custom.env"]) == 0
        secrets.assert_called_once_with("custom.env")
