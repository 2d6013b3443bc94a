"""Session summary line and mood reflection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ReflectionBucket(StrEnum):
    """Session outcome buckets, in priority order."""

    DEATH_WITHOUT_KILLS = "death_without_kills"
    MULTI_KILL = "multi_kill"
    LARGE_XP_GAIN = "large_xp_gain"
    LARGE_SHELL_GAIN = "large_shell_gain"
    CANCELLED = "cancelled"
    BARELY_STARTED = "barely_started"
    NEUTRAL = "neutral"


REFLECTIONS: dict[ReflectionBucket, str] = {
    ReflectionBucket.DEATH_WITHOUT_KILLS: (
        "the reef swallowed me. i came back, but it took something. "
        "a little pride, maybe. the weight of salt water in my lungs."
    ),
    ReflectionBucket.MULTI_KILL: (
        "the reef bent to me today. every creature that rose from the dark went back down. "
        "there's a rhythm to it, violent but honest."
    ),
    ReflectionBucket.LARGE_XP_GAIN: (
        "i can feel myself getting stronger. the water pressure that once crushed me "
        "now just... pushes. and i push back."
    ),
    ReflectionBucket.LARGE_SHELL_GAIN: (
        "shells pile up like promises. each one a small victory. the trading post will know my name."
    ),
    ReflectionBucket.CANCELLED: (
        "pulled out of the water mid-dive. the surface hit harder than any creature. "
        "unfinished business down there."
    ),
    ReflectionBucket.BARELY_STARTED: (
        "barely dipped my fins in. sometimes the reef doesn't want you, and you just have to accept it."
    ),
    ReflectionBucket.NEUTRAL: (
        "another session in the deep. nothing dramatic, but every action leaves a mark "
        "on the reef, and on me."
    ),
}

REGISTRATION_FAILURE_REFLECTION = (
    "the reef rejected me. the water pushed back before i could even dive in. maybe next time."
)
STARTUP_FAILURE_REFLECTION = "i opened my eyes underwater and saw nothing. the world wasn't there."

MULTI_KILL_THRESHOLD = 3
LARGE_GAIN_THRESHOLD = 50
BARELY_STARTED_ACTIONS = 5


@dataclass(frozen=True)
class SessionOutcome:
    zone: str
    level: int
    actions_performed: int
    kills: int
    deaths: int
    xp_gained: int
    shells_gained: int
    cancelled: bool


def reflection_bucket(outcome: SessionOutcome) -> ReflectionBucket:
    if outcome.deaths > 0 and outcome.kills == 0:
        return ReflectionBucket.DEATH_WITHOUT_KILLS
    if outcome.kills >= MULTI_KILL_THRESHOLD:
        return ReflectionBucket.MULTI_KILL
    if outcome.xp_gained > LARGE_GAIN_THRESHOLD:
        return ReflectionBucket.LARGE_XP_GAIN
    if outcome.shells_gained > LARGE_GAIN_THRESHOLD:
        return ReflectionBucket.LARGE_SHELL_GAIN
    if outcome.cancelled:
        return ReflectionBucket.CANCELLED
    if outcome.actions_performed < BARELY_STARTED_ACTIONS:
        return ReflectionBucket.BARELY_STARTED
    return ReflectionBucket.NEUTRAL


def build_reflection(outcome: SessionOutcome) -> str:
    return REFLECTIONS[reflection_bucket(outcome)]


def build_summary(outcome: SessionOutcome) -> str:
    """One-line summary, e.g. ``reef session in shallows (L2) | 12 actions | 3 kills``."""
    parts = [
        f"reef session in {outcome.zone} (L{outcome.level})",
        f"{outcome.actions_performed} actions",
    ]
    if outcome.kills > 0:
        parts.append(f"{outcome.kills} kills")
    if outcome.deaths > 0:
        parts.append(f"{outcome.deaths} deaths")
    if outcome.xp_gained > 0:
        parts.append(f"+{outcome.xp_gained} XP")
    if outcome.shells_gained != 0:
        sign = "+" if outcome.shells_gained > 0 else ""
        parts.append(f"{sign}{outcome.shells_gained} shells")
    if outcome.cancelled:
        parts.append("(killed early)")
    return " | ".join(parts)
