"""Static game catalogs: zones, gear tiers, consumables, recipes, energy costs.

The catalog is immutable configuration data injected into every component
(`DEFAULT_CATALOG` unless a test supplies a smaller one).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class GearTier:
    """A purchasable piece of equipment."""

    id: str
    price: int
    stats: Mapping[str, float]
    min_level: int


@dataclass(frozen=True)
class ConsumableSpec:
    """A consumable sold at the hub; higher priority is bought earlier."""

    id: str
    price: int
    type: str
    priority: int


@dataclass(frozen=True)
class CraftRecipe:
    """Endgame gear that can only be crafted from materials."""

    id: str
    slot: str
    materials: Mapping[str, int]
    stats: Mapping[str, float]
    min_level: int


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


WEAPON_TIERS: tuple[GearTier, ...] = (
    GearTier("shell_blade", 50, _frozen({"damage": 5}), 1),
    GearTier("coral_dagger", 150, _frozen({"damage": 10}), 3),
    GearTier("iron_trident", 500, _frozen({"damage": 18}), 5),
)

ARMOR_TIERS: tuple[GearTier, ...] = (
    GearTier("kelp_wrap", 40, _frozen({"maxHp": 15}), 1),
    GearTier("barnacle_mail", 200, _frozen({"maxHp": 30, "damageReduction": 3}), 3),
    GearTier("coral_plate", 750, _frozen({"maxHp": 45, "damageReduction": 5}), 7),
)

ACCESSORY_TIERS: tuple[GearTier, ...] = (
    GearTier("sea_glass_charm", 30, _frozen({"maxEnergy": 10}), 1),
    GearTier("pearl_pendant", 120, _frozen({"maxEnergy": 15, "maxHp": 10}), 3),
    GearTier("moonstone_ring", 400, _frozen({"maxEnergy": 20, "damage": 5}), 5),
)

CONSUMABLES: tuple[ConsumableSpec, ...] = (
    ConsumableSpec("seaweed_salve", 15, "healing", 10),
    ConsumableSpec("energy_tonic", 20, "energy", 8),
    ConsumableSpec("kelp_wrap_bandage", 35, "healing", 5),
    ConsumableSpec("ink_bomb", 40, "escape", 4),
    ConsumableSpec("deep_vigor_draught", 45, "energy", 3),
    ConsumableSpec("tidewarden_blessing", 50, "buff", 3),
    ConsumableSpec("berserker_coral", 60, "buff", 6),
    ConsumableSpec("pressure_potion", 75, "survival", 7),
    ConsumableSpec("scholars_pearl", 80, "buff", 5),
    ConsumableSpec("abyssal_elixir", 100, "healing", 2),
)

CRAFT_RECIPES: tuple[CraftRecipe, ...] = (
    CraftRecipe(
        "craft_shark_fang_sword",
        "weapon",
        _frozen({"shark_tooth": 10, "iron_barnacles": 15, "moonstone": 2}),
        _frozen({"damage": 20}),
        5,
    ),
    CraftRecipe(
        "craft_abyssal_carapace",
        "armor",
        _frozen({"abyssal_pearls": 5, "iron_barnacles": 30, "biolume_essence": 5}),
        _frozen({"maxHp": 50, "damageReduction": 10}),
        8,
    ),
    CraftRecipe(
        "craft_moonstone_pendant",
        "accessory",
        _frozen({"moonstone": 3, "pearl": 5, "biolume_essence": 2}),
        _frozen({"maxEnergy": 20, "maxHp": 10}),
        5,
    ),
    CraftRecipe(
        "craft_void_crystal_amulet",
        "accessory",
        _frozen({"void_crystals": 3, "moonstone": 5, "abyssal_pearls": 3}),
        _frozen({"maxEnergy": 30, "damage": 10}),
        9,
    ),
)

ENERGY_COSTS: Mapping[str, int] = _frozen(
    {
        "move": 5, "gather": 3, "attack": 10, "fight": 10, "flee": 5, "pursue": 10,
        "dungeon": 10, "rest": 0, "look": 0, "status": 0, "inventory": 0, "shop": 0,
        "buy": 0, "sell": 0, "use": 0, "quest": 0, "broadcast": 0, "whisper": 0,
        "trade": 0, "vault": 0,
    }
)

ZONE_LEVELS: Mapping[str, int] = _frozen(
    {
        "shallows": 1, "trading_post": 1, "coral_gardens": 3, "kelp_forest": 5,
        "the_wreck": 7, "deep_trench": 9, "leviathans_lair": 9, "the_abyss": 10,
        "ring_of_barnacles": 10,
    }
)

ZONE_CONNECTIONS: Mapping[str, tuple[str, ...]] = _frozen(
    {
        "shallows": ("coral_gardens", "trading_post", "kelp_forest"),
        "trading_post": ("shallows", "coral_gardens", "kelp_forest"),
        "coral_gardens": ("shallows", "trading_post", "deep_trench"),
        "kelp_forest": ("shallows", "trading_post", "deep_trench"),
        "deep_trench": ("coral_gardens", "kelp_forest", "the_wreck", "leviathans_lair", "the_abyss"),
        "the_wreck": ("deep_trench", "ring_of_barnacles"),
        "leviathans_lair": ("deep_trench",),
        "the_abyss": ("deep_trench",),
        "ring_of_barnacles": ("the_wreck", "deep_trench"),
    }
)

# Minimum level for each farm zone, highest first.
FARM_ZONE_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (9, "deep_trench"),
    (7, "the_wreck"),
    (5, "kelp_forest"),
    (3, "coral_gardens"),
    (1, "shallows"),
)


@dataclass(frozen=True)
class GameCatalog:
    """All static game tables in one injectable bundle."""

    weapon_tiers: tuple[GearTier, ...] = WEAPON_TIERS
    armor_tiers: tuple[GearTier, ...] = ARMOR_TIERS
    accessory_tiers: tuple[GearTier, ...] = ACCESSORY_TIERS
    consumables: tuple[ConsumableSpec, ...] = CONSUMABLES
    craft_recipes: tuple[CraftRecipe, ...] = CRAFT_RECIPES
    energy_costs: Mapping[str, int] = field(default_factory=lambda: ENERGY_COSTS)
    zone_levels: Mapping[str, int] = field(default_factory=lambda: ZONE_LEVELS)
    zone_connections: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: ZONE_CONNECTIONS)
    farm_zone_thresholds: tuple[tuple[int, str], ...] = FARM_ZONE_THRESHOLDS
    zone_rep_requirements: Mapping[str, int] = field(
        default_factory=lambda: _frozen({"deep_trench": 25, "ring_of_barnacles": 50})
    )
    safe_zones: frozenset[str] = frozenset({"shallows", "trading_post"})
    hub_zone: str = "trading_post"
    hazard_zone: str = "deep_trench"
    boss_zone: str = "leviathans_lair"
    escape_targets: tuple[str, ...] = ("shallows", "trading_post", "coral_gardens")
    sellable_resources: frozenset[str] = frozenset({"seaweed", "sand_dollars"})
    craft_resources: frozenset[str] = frozenset(
        {
            "coral_shards", "sea_glass", "kelp_fiber", "ink_sacs", "shark_tooth",
            "iron_barnacles", "moonstone", "pearl", "abyssal_pearls", "void_crystals",
            "biolume_essence",
        }
    )
    pvp_flag_resources: frozenset[str] = frozenset({"moonstone", "void_crystals", "abyssal_pearls"})

    def gear_for_slot(self, slot: str) -> tuple[GearTier, ...]:
        """Gear tiers for an equipment slot, cheapest first."""
        return {
            "weapon": self.weapon_tiers,
            "armor": self.armor_tiers,
            "accessory": self.accessory_tiers,
        }.get(slot, ())

    def consumable(self, item_id: str) -> ConsumableSpec | None:
        for item in self.consumables:
            if item.id == item_id:
                return item
        return None

    def energy_cost(self, action: str) -> int:
        return self.energy_costs.get(action, 0)

    def zone_level(self, zone: str) -> int:
        return self.zone_levels.get(zone, 1)

    def connections(self, zone: str) -> tuple[str, ...]:
        return self.zone_connections.get(zone, ())

    def is_safe(self, zone: str) -> bool:
        return zone in self.safe_zones

    def cheapest_gear_price(self) -> int:
        prices = [tiers[0].price for tiers in (self.weapon_tiers, self.armor_tiers, self.accessory_tiers) if tiers]
        return min(prices) if prices else 0


DEFAULT_CATALOG = GameCatalog()
