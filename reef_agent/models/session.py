"""Session parameter and result models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from reef_agent.models.records import LifetimeStats

MIN_ACTIONS = 5
DEFAULT_MAX_ACTIONS = 40


class SessionMode(StrEnum):
    """Play style that biases scoring constants."""

    ADVENTURE = "adventure"
    GRIND = "grind"
    QUEST = "quest"
    SOCIAL = "social"
    PVP = "pvp"


class SessionParams(BaseModel):
    """Caller-supplied configuration for one session."""

    mode: SessionMode = Field(default=SessionMode.ADVENTURE)
    max_actions: int = Field(default=DEFAULT_MAX_ACTIONS, description="Successful action ceiling")
    target_zone: str | None = Field(default=None, description="Pinned destination zone")

    model_config = {"frozen": True}

    @field_validator("max_actions", mode="before")
    @classmethod
    def _clamp_max_actions(cls, value: Any) -> int:
        if not value:
            return DEFAULT_MAX_ACTIONS
        return max(int(value), MIN_ACTIONS)

    @field_validator("target_zone", mode="before")
    @classmethod
    def _blank_target_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SessionStats(BaseModel):
    """Statistics bundle reported at the end of a session."""

    zone: str
    level: int
    hp: str
    energy: str
    shells: int
    xp: int
    actions_performed: int
    kills: int
    deaths: int
    xp_gained: int
    shells_gained: int
    mode: SessionMode
    equipment: dict[str, str | None]
    faction: str | None
    optimal_zone: str
    actions: list[str] = Field(default_factory=list)
    lifetime: LifetimeStats = Field(default_factory=LifetimeStats)


class SessionResult(BaseModel):
    """Structured outcome returned by every session, including failures."""

    success: bool
    summary: str
    reflection: str
    stats: SessionStats | None = None
