"""Persisted agent record that survives across sessions.

The on-disk document uses camelCase keys; Python code uses snake_case
attribute names. Both spellings are accepted on load.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LastStatus(_CamelModel):
    """Snapshot of the agent's status at the end of the last session."""

    level: int = 1
    hp: int = 100
    max_hp: int = 100
    energy: int = 100
    max_energy: int = 100
    zone: str = "unknown"
    shells: int = 0
    xp: int = 0
    faction: str | None = None
    reputation: int = 0


class KnownGear(_CamelModel):
    """Last known equipment per slot."""

    weapon: str | None = None
    armor: str | None = None
    accessory: str | None = None


class LifetimeStats(_CamelModel):
    """Lifetime counters accumulated over every session."""

    sessions: int = Field(default=0, ge=0)
    total_actions: int = Field(default=0, ge=0)
    total_xp: int = Field(default=0, ge=0)
    total_shells: int = Field(default=0, ge=0)
    kills: int = Field(default=0, ge=0)
    deaths: int = Field(default=0, ge=0)


class PersistedAgentRecord(_CamelModel):
    """Registration credentials plus lifetime progress of one agent identity."""

    api_key: str = ""
    agent_name: str
    wallet_address: str
    registered_at: str
    last_status: LastStatus | None = None
    known_gear: KnownGear | None = None
    faction_joined: bool | None = None
    session_goals: list[str] | None = None
    lifetime: LifetimeStats = Field(default_factory=LifetimeStats)

    @property
    def has_key(self) -> bool:
        return bool(self.api_key)

    def to_document(self) -> dict[str, object]:
        """Serialize to the camelCase JSON document, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
