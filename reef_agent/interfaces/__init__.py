"""Interfaces for external collaborators."""

from reef_agent.interfaces.collaborators import (
    ActivityKind,
    ActivityLogger,
    CancellationSignal,
    EmotionSource,
    EventCancellation,
    JsonEmotionSource,
    LoggingActivityLogger,
    NeverCancelled,
    StaticEmotionSource,
)

__all__ = [
    "ActivityKind",
    "ActivityLogger",
    "CancellationSignal",
    "EmotionSource",
    "EventCancellation",
    "JsonEmotionSource",
    "LoggingActivityLogger",
    "NeverCancelled",
    "StaticEmotionSource",
]
