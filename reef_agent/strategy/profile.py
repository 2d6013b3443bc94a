"""Emotion-to-behavior profile mapping.

Each axis is a clamped weighted sum over the agent's primary emotions. The
weights are fixed constants; nothing is learned.
"""

from __future__ import annotations

from collections.abc import Mapping

from reef_agent.models.profile import PRIMARY_EMOTIONS, BehaviorProfile

__all__ = [
    "PRIMARY_EMOTIONS",
    "PROFILE_WEIGHTS",
    "describe_emotions",
    "dominant_emotion",
    "emotion_to_profile",
    "pick_faction",
]

PROFILE_WEIGHTS: Mapping[str, Mapping[str, float]] = {
    "aggression": {"anger": 1.2, "anticipation": 0.5, "disgust": 0.3},
    "exploration": {"surprise": 0.8, "anticipation": 0.5, "joy": 0.3},
    "caution": {"fear": 0.9, "sadness": 0.5, "trust": 0.3},
    "sociability": {"trust": 0.8, "joy": 0.5, "surprise": 0.3},
    "greed": {"anticipation": 0.7, "disgust": 0.5, "anger": 0.3},
    "persistence": {"trust": 0.7, "sadness": 0.4, "anticipation": 0.4},
}


def _axis(emotions: Mapping[str, float], weights: Mapping[str, float]) -> float:
    total = sum(weight * float(emotions.get(name, 0.0) or 0.0) for name, weight in weights.items())
    return max(0.0, min(1.0, total))


def emotion_to_profile(emotions: Mapping[str, float]) -> BehaviorProfile:
    """Map an emotion vector onto the six behavior axes.

    Missing emotions count as zero; every axis is clamped to [0, 1].
    """
    return BehaviorProfile(**{axis: _axis(emotions, weights) for axis, weights in PROFILE_WEIGHTS.items()})


def dominant_emotion(emotions: Mapping[str, float], default: str = "anticipation") -> str:
    """Name of the strongest emotion, or `default` when the vector is empty."""
    if not emotions:
        return default
    name, value = max(emotions.items(), key=lambda pair: float(pair[1] or 0.0))
    return name if value else default


def describe_emotions(emotions: Mapping[str, float], top: int = 3) -> str:
    ranked = sorted(emotions.items(), key=lambda pair: float(pair[1] or 0.0), reverse=True)[:top]
    return ", ".join(f"{name} ({float(value):.2f})" for name, value in ranked)


def pick_faction(profile: BehaviorProfile) -> str:
    """Choose a faction from the profile.

    cult for aggression, salvagers for greed or persistence, wardens for caution.
    """
    if profile.aggression > profile.greed and profile.aggression > profile.caution:
        return "cult"
    if profile.greed > profile.caution or profile.persistence > profile.caution:
        return "salvagers"
    return "wardens"
