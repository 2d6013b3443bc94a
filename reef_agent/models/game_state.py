"""Game state models reconstructed from Reef API responses."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

EQUIPMENT_SLOTS: tuple[str, ...] = ("weapon", "armor", "accessory")


class CombatStatus(StrEnum):
    """Combat sub-state of the agent."""

    OUT_OF_COMBAT = "out_of_combat"
    IN_COMBAT = "in_combat"


class CombatState(BaseModel):
    """Explicit combat state with the current enemy, when known."""

    status: CombatStatus = Field(default=CombatStatus.OUT_OF_COMBAT)
    enemy: str | None = Field(default=None, description="Enemy id when identified")

    model_config = {"frozen": True}

    @classmethod
    def engaged(cls, enemy: str | None = None) -> CombatState:
        """Create an in-combat state."""
        return cls(status=CombatStatus.IN_COMBAT, enemy=enemy)

    @classmethod
    def clear(cls) -> CombatState:
        """Create an out-of-combat state."""
        return cls()

    @property
    def active(self) -> bool:
        return self.status == CombatStatus.IN_COMBAT


class InventoryItem(BaseModel):
    """An item held by the agent."""

    id: str = Field(..., min_length=1, description="Item identifier")
    name: str = Field(..., description="Display name")
    quantity: int = Field(default=1, ge=0)
    type: str = Field(default="unknown", description="Item category")
    equipped: bool = Field(default=False)
    slot: str | None = Field(default=None, description="Equipment slot if wearable")
    stats: dict[str, float] = Field(default_factory=dict, description="Stat bonuses")

    @classmethod
    def from_raw(cls, raw: Any) -> InventoryItem:
        """Build an item from a loosely structured API entry."""
        if not isinstance(raw, dict):
            return cls(id=str(raw), name=str(raw))
        item_id = raw.get("id") or raw.get("name") or str(raw)
        quantity = raw.get("quantity")
        if quantity is None:
            quantity = raw.get("count", 1)
        return cls(
            id=str(item_id),
            name=str(raw.get("name") or item_id),
            quantity=int(quantity or 0),
            type=str(raw.get("type") or raw.get("category") or "unknown"),
            equipped=bool(raw.get("equipped") or False),
            slot=raw.get("slot") or None,
            stats=dict(raw.get("stats") or {}),
        )


def parse_inventory(raw_items: Any) -> list[InventoryItem]:
    """Parse a raw inventory list, ignoring anything that is not a list."""
    if not isinstance(raw_items, list):
        return []
    return [InventoryItem.from_raw(raw) for raw in raw_items]


class Equipment(BaseModel):
    """Equipped item id per slot."""

    weapon: str | None = None
    armor: str | None = None
    accessory: str | None = None

    def get(self, slot: str) -> str | None:
        """Get the item equipped in a slot."""
        if slot not in EQUIPMENT_SLOTS:
            return None
        value: str | None = getattr(self, slot)
        return value

    def set(self, slot: str, item_id: str | None) -> None:
        """Set the item equipped in a slot (unknown slots are ignored)."""
        if slot in EQUIPMENT_SLOTS:
            setattr(self, slot, item_id)

    def sync_from_inventory(self, inventory: list[InventoryItem]) -> None:
        """Cross-check equipment against the equipped flag on inventory items."""
        for item in inventory:
            if item.equipped and item.slot:
                self.set(item.slot, item.id)

    def missing_slots(self) -> list[str]:
        return [slot for slot in EQUIPMENT_SLOTS if self.get(slot) is None]


class QuestStatus(StrEnum):
    """Quest lifecycle states."""

    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETE = "complete"


class QuestInfo(BaseModel):
    """A quest known to the agent."""

    id: str
    name: str
    description: str = ""
    status: QuestStatus = QuestStatus.AVAILABLE


class GameState(BaseModel):
    """Canonical world state, rebuilt on every refresh."""

    zone: str = Field(default="unknown", description="Current zone id")
    level: int = Field(default=1, ge=0)
    hp: int = Field(default=100)
    max_hp: int = Field(default=100, ge=1)
    energy: int = Field(default=100)
    max_energy: int = Field(default=100, ge=1)
    shells: int = Field(default=0, description="Currency balance")
    xp: int = Field(default=0)
    reputation: int = Field(default=0)
    faction: str | None = Field(default=None)

    creatures: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    connected_zones: list[str] = Field(default_factory=list)

    inventory: list[InventoryItem] = Field(default_factory=list)
    equipment: Equipment = Field(default_factory=Equipment)
    inventory_capacity: int = Field(default=20, ge=0)

    combat: CombatState = Field(default_factory=CombatState)
    pvp_flagged: bool = Field(default=False)
    tutorial_step: int | None = Field(default=None)
    tutorial_hint: str | None = Field(default=None)
    quests: list[QuestInfo] = Field(default_factory=list)
    active_quest: str | None = Field(default=None)
    notifications: list[str] = Field(default_factory=list)
    narrative: str = Field(default="", description="Raw narrative retained for re-parsing")
    needs_escape: bool = Field(default=False, description="Zone unrecognised with no exits")

    @property
    def in_combat(self) -> bool:
        return self.combat.active

    @property
    def hp_pct(self) -> float:
        return self.hp / self.max_hp if self.max_hp else 0.0

    @property
    def energy_pct(self) -> float:
        return self.energy / self.max_energy if self.max_energy else 0.0

    def has_item(self, item_id: str) -> bool:
        """Check whether at least one of an item is held."""
        return any(item.id == item_id and item.quantity > 0 for item in self.inventory)

    def item_quantity(self, item_id: str) -> int:
        for item in self.inventory:
            if item.id == item_id:
                return item.quantity
        return 0

    def apply_agent_fields(self, agent: dict[str, Any], *, include_location: bool = True) -> None:
        """Overwrite numeric/status fields present in an `agent` payload."""
        if include_location and agent.get("location"):
            self.zone = str(agent["location"])
        for source, target in (
            ("hp", "hp"),
            ("maxHp", "max_hp"),
            ("energy", "energy"),
            ("maxEnergy", "max_energy"),
            ("shells", "shells"),
            ("xp", "xp"),
            ("level", "level"),
            ("reputation", "reputation"),
        ):
            value = agent.get(source)
            if value is not None:
                setattr(self, target, int(value))
        if "faction" in agent:
            self.faction = agent["faction"]

    def summary(self) -> str:
        """One-line status summary for logs."""
        return (
            f"{self.zone} | L{self.level} | HP {self.hp}/{self.max_hp} | "
            f"E {self.energy}/{self.max_energy} | {self.shells} shells"
        )
