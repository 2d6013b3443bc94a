"""Gear and inventory economy helpers shared by the scorer and the planner."""

from __future__ import annotations

from collections.abc import Mapping

from reef_agent.models.game_state import EQUIPMENT_SLOTS, GameState, InventoryItem
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog, GearTier

# Fraction of inventory capacity filled with sellables that warrants a hub visit.
SELLABLE_FILL_THRESHOLD = 0.7
# Resources held above this quantity are sold unless they are craft materials.
EXCESS_RESOURCE_QUANTITY = 10
# Shell balance above which a missing healing item is worth a hub visit.
COMFORTABLE_SHELLS = 50


def target_farm_zone(level: int, catalog: GameCatalog = DEFAULT_CATALOG) -> str:
    """Return the level-appropriate farming zone."""
    for min_level, zone in catalog.farm_zone_thresholds:
        if level >= min_level:
            return zone
    return catalog.farm_zone_thresholds[-1][1]


def get_next_upgrade(
    slot: str,
    current_id: str | None,
    shells: int,
    level: int,
    catalog: GameCatalog = DEFAULT_CATALOG,
) -> GearTier | None:
    """Find the best affordable, level-eligible tier strictly above the current one.

    Args:
        slot: Equipment slot name.
        current_id: Currently equipped item id, or None when the slot is empty.
        shells: Available currency.
        level: Agent level.
        catalog: Gear tables.

    Returns:
        The highest qualifying tier, or None if nothing qualifies.
    """
    tiers = catalog.gear_for_slot(slot)
    if not tiers:
        return None

    current_idx = -1
    if current_id:
        for idx, tier in enumerate(tiers):
            if tier.id == current_id:
                current_idx = idx
                break

    for idx in range(len(tiers) - 1, current_idx, -1):
        tier = tiers[idx]
        if tier.price <= shells and tier.min_level <= level:
            return tier
    return None


def get_sellable_items(
    inventory: list[InventoryItem],
    catalog: GameCatalog = DEFAULT_CATALOG,
) -> list[InventoryItem]:
    """Items worth selling: junk resources and excess non-craft resources."""
    sellable: list[InventoryItem] = []
    for item in inventory:
        if item.id in catalog.sellable_resources:
            sellable.append(item)
            continue
        if item.id in catalog.craft_resources or item.equipped:
            continue
        if item.type == "resource" and item.quantity > EXCESS_RESOURCE_QUANTITY:
            sellable.append(item)
    return sellable


def should_visit_hub(state: GameState, catalog: GameCatalog = DEFAULT_CATALOG) -> bool:
    """Decide whether a trip to the hub for selling/buying is worthwhile."""
    sellable_count = sum(item.quantity for item in get_sellable_items(state.inventory, catalog))
    if state.inventory_capacity > 0:
        if sellable_count / state.inventory_capacity > SELLABLE_FILL_THRESHOLD:
            return True

    for slot in EQUIPMENT_SLOTS:
        if get_next_upgrade(slot, state.equipment.get(slot), state.shells, state.level, catalog):
            return True

    if state.equipment.missing_slots() and state.shells >= catalog.cheapest_gear_price():
        return True

    return not state.has_item("seaweed_salve") and state.shells > COMFORTABLE_SHELLS


def has_materials(state: GameState, materials: Mapping[str, int]) -> bool:
    """Check whether the inventory covers every material quantity."""
    for material, quantity in materials.items():
        if state.item_quantity(material) < quantity:
            return False
    return True
