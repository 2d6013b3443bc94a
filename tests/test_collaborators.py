"""Tests for the default collaborator implementations and broadcast lines."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path

import pytest

from reef_agent.interfaces.collaborators import (
    ActivityKind,
    EventCancellation,
    JsonEmotionSource,
    LoggingActivityLogger,
    NeverCancelled,
    StaticEmotionSource,
)
from reef_agent.models.profile import PRIMARY_EMOTIONS
from reef_agent.strategy.messages import BROADCAST_TEMPLATES, pick_broadcast_message


class TestEmotionSources:
    """Emotion state readers."""

    def test_static_dominant(self) -> None:
        source = StaticEmotionSource({"fear": 0.7, "joy": 0.2})

        assert source.dominant() == "fear"
        assert StaticEmotionSource({}, dominant="joy").dominant() == "joy"
        assert StaticEmotionSource({}).dominant() == "anticipation"

    def test_json_source_fills_missing_emotions(self, tmp_path: Path) -> None:
        path = tmp_path / "emotion-state.json"
        path.write_text(json.dumps({"emotions": {"anger": 0.6}, "dominant": "anger"}), encoding="utf-8")

        source = JsonEmotionSource(path)
        emotions = source.emotions()

        assert set(emotions) == set(PRIMARY_EMOTIONS)
        assert emotions["anger"] == 0.6
        assert emotions["joy"] == 0.0
        assert source.dominant() == "anger"

    def test_json_source_missing_file(self, tmp_path: Path) -> None:
        source = JsonEmotionSource(tmp_path / "missing.json")

        assert all(value == 0.0 for value in source.emotions().values())
        assert source.dominant() == "anticipation"

    def test_json_source_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "emotion-state.json"
        path.write_text("{broken", encoding="utf-8")

        assert JsonEmotionSource(path).dominant() == "anticipation"

    def test_unknown_named_dominant_falls_back_to_strongest(self, tmp_path: Path) -> None:
        path = tmp_path / "emotion-state.json"
        path.write_text(json.dumps({"emotions": {"trust": 0.4}, "dominant": "boredom"}), encoding="utf-8")

        assert JsonEmotionSource(path).dominant() == "trust"


class TestActivityLogger:
    def test_entries_carry_kind_and_data(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="reef_agent.activity")

        activity = LoggingActivityLogger()
        activity.log(ActivityKind.ACTION, "gather → seaweed", {"score": 4.0})
        activity.log(ActivityKind.THOUGHT, "pondering")

        action, thought = caplog.records
        assert action.getMessage() == "[ACTION] gather → seaweed"
        assert action.levelno == logging.INFO
        assert action.activity == "action"  # type: ignore[attr-defined]
        assert action.data == {"score": 4.0}  # type: ignore[attr-defined]
        assert thought.levelno == logging.DEBUG


class TestCancellation:
    def test_event_cancellation(self) -> None:
        cancellation = EventCancellation()
        assert not cancellation.cancelled

        cancellation.cancel()

        assert cancellation.cancelled
        assert not NeverCancelled().cancelled


class TestBroadcastMessages:
    def test_line_matches_dominant_emotion(self) -> None:
        for seed in range(20):
            message = pick_broadcast_message("fear", "kelp_forest", 4, random.Random(seed))

            assert any(message.startswith(line) for line in BROADCAST_TEMPLATES["fear"])
            if "[" in message:
                assert message.endswith("[kelp forest, L4]")

    def test_unknown_emotion_uses_anticipation(self) -> None:
        message = pick_broadcast_message("boredom", "shallows", 1, random.Random(1))

        assert any(message.startswith(line) for line in BROADCAST_TEMPLATES["anticipation"])
