"""Interfaces for the collaborators a session consumes but does not own.

A session reads the agent's emotional state, reports activity to a log
sink and watches a cancellation signal. The defaults here are a JSON file
emotion store, a logging-backed activity log and a threading.Event.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from reef_agent.models.profile import PRIMARY_EMOTIONS

logger = logging.getLogger(__name__)

DEFAULT_DOMINANT = "anticipation"


class ActivityKind(Enum):
    """Kinds of entries written to the activity log."""

    STEP = "step"
    THOUGHT = "thought"
    ACTION = "action"
    RESULT = "result"
    ERROR = "error"


class EmotionSource(ABC):
    """Read-only view of the agent's current emotional state."""

    @abstractmethod
    def emotions(self) -> Mapping[str, float]:
        """Return primary emotion intensities in [0, 1]."""
        ...

    def dominant(self) -> str:
        """Return the name of the strongest emotion."""
        emotions = self.emotions()
        if not emotions:
            return DEFAULT_DOMINANT
        name, value = max(emotions.items(), key=lambda pair: pair[1])
        return name if value > 0 else DEFAULT_DOMINANT


class ActivityLogger(ABC):
    """Sink for human-readable session activity."""

    @abstractmethod
    def log(self, kind: ActivityKind, message: str, data: dict[str, Any] | None = None) -> None:
        ...


class CancellationSignal(ABC):
    """Cooperative cancellation checked between actions."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class StaticEmotionSource(EmotionSource):
    """Emotion source over a fixed mapping."""

    def __init__(self, emotions: Mapping[str, float], dominant: str | None = None) -> None:
        self._emotions = dict(emotions)
        self._dominant = dominant

    def emotions(self) -> Mapping[str, float]:
        return dict(self._emotions)

    def dominant(self) -> str:
        return self._dominant or super().dominant()


class JsonEmotionSource(EmotionSource):
    """Emotion state read from a JSON document.

    The document carries ``emotions`` (name to intensity) and optionally
    ``dominant``. A missing or unreadable file yields a neutral state.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _document(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("[EMOTION] Could not read %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def emotions(self) -> Mapping[str, float]:
        raw = self._document().get("emotions") or {}
        if not isinstance(raw, dict):
            return {name: 0.0 for name in PRIMARY_EMOTIONS}
        return {name: float(raw.get(name) or 0.0) for name in PRIMARY_EMOTIONS}

    def dominant(self) -> str:
        named = self._document().get("dominant")
        if isinstance(named, str) and named in PRIMARY_EMOTIONS:
            return named
        return super().dominant()


class LoggingActivityLogger(ActivityLogger):
    """Forward activity entries to the standard logging tree."""

    _LEVELS = {
        ActivityKind.STEP: logging.INFO,
        ActivityKind.THOUGHT: logging.DEBUG,
        ActivityKind.ACTION: logging.INFO,
        ActivityKind.RESULT: logging.INFO,
        ActivityKind.ERROR: logging.ERROR,
    }

    def __init__(self, name: str = "reef_agent.activity") -> None:
        self._logger = logging.getLogger(name)

    def log(self, kind: ActivityKind, message: str, data: dict[str, Any] | None = None) -> None:
        extra = {"activity": kind.value}
        if data:
            extra["data"] = data
        self._logger.log(self._LEVELS[kind], "[%s] %s", kind.value.upper(), message, extra=extra)


class EventCancellation(CancellationSignal):
    """Cancellation backed by a threading.Event, safe to set from signal handlers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


class NeverCancelled(CancellationSignal):
    @property
    def cancelled(self) -> bool:
        return False
