"""Shared data models for the Reef agent.

All models use Pydantic for validation and serialization.
"""

from reef_agent.models.actions import COMBAT_ACTIONS, ActionCandidate
from reef_agent.models.game_state import (
    EQUIPMENT_SLOTS,
    CombatState,
    CombatStatus,
    Equipment,
    GameState,
    InventoryItem,
    QuestInfo,
    QuestStatus,
    parse_inventory,
)
from reef_agent.models.profile import PRIMARY_EMOTIONS, BehaviorProfile
from reef_agent.models.records import KnownGear, LastStatus, LifetimeStats, PersistedAgentRecord
from reef_agent.models.session import SessionMode, SessionParams, SessionResult, SessionStats

__all__ = [
    "COMBAT_ACTIONS",
    "EQUIPMENT_SLOTS",
    "PRIMARY_EMOTIONS",
    "ActionCandidate",
    "BehaviorProfile",
    "CombatState",
    "CombatStatus",
    "Equipment",
    "GameState",
    "InventoryItem",
    "KnownGear",
    "LastStatus",
    "LifetimeStats",
    "PersistedAgentRecord",
    "QuestInfo",
    "QuestStatus",
    "SessionMode",
    "SessionParams",
    "SessionResult",
    "SessionStats",
    "parse_inventory",
]
