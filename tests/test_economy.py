"""Tests for gear upgrades, farm zones and hub-visit decisions."""

from __future__ import annotations

from reef_agent.models.game_state import Equipment, GameState, InventoryItem
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog, GearTier
from reef_agent.strategy.economy import (
    get_next_upgrade,
    get_sellable_items,
    has_materials,
    should_visit_hub,
    target_farm_zone,
)


class TestNextUpgrade:
    """Best affordable, level-eligible tier strictly above the current one."""

    def test_first_weapon_when_affordable(self) -> None:
        upgrade = get_next_upgrade("weapon", None, 60, 1)

        assert upgrade is not None
        assert upgrade.id == "shell_blade"
        assert upgrade.price == 50

    def test_nothing_when_too_poor(self) -> None:
        assert get_next_upgrade("weapon", None, 40, 1) is None

    def test_skips_to_highest_eligible_tier(self) -> None:
        upgrade = get_next_upgrade("weapon", None, 1000, 5)

        assert upgrade is not None
        assert upgrade.id == "iron_trident"

    def test_level_gates_tiers(self) -> None:
        upgrade = get_next_upgrade("weapon", None, 1000, 1)

        assert upgrade is not None
        assert upgrade.id == "shell_blade"

    def test_never_downgrades(self) -> None:
        assert get_next_upgrade("weapon", "iron_trident", 10_000, 10) is None
        assert get_next_upgrade("armor", "barnacle_mail", 100, 3) is None

    def test_unknown_slot(self) -> None:
        assert get_next_upgrade("boots", None, 1000, 10) is None

    def test_smaller_injected_catalog(self) -> None:
        catalog = GameCatalog(weapon_tiers=(GearTier("stick", 1, {"damage": 1}, 1),))

        upgrade = get_next_upgrade("weapon", None, 5, 1, catalog)

        assert upgrade is not None
        assert upgrade.id == "stick"


class TestFarmZone:
    def test_thresholds(self) -> None:
        assert target_farm_zone(1) == "shallows"
        assert target_farm_zone(3) == "coral_gardens"
        assert target_farm_zone(6) == "kelp_forest"
        assert target_farm_zone(7) == "the_wreck"
        assert target_farm_zone(12) == "deep_trench"

    def test_level_zero_falls_back_to_lowest_zone(self) -> None:
        assert target_farm_zone(0) == "shallows"


class TestSellables:
    def test_keeps_craft_materials_and_equipped_items(self) -> None:
        inventory = [
            InventoryItem(id="seaweed", name="Seaweed", quantity=3, type="resource"),
            InventoryItem(id="moonstone", name="Moonstone", quantity=40, type="resource"),
            InventoryItem(id="driftwood", name="Driftwood", quantity=11, type="resource"),
            InventoryItem(id="driftwood_club", name="Club", quantity=12, type="resource", equipped=True),
            InventoryItem(id="shells_trinket", name="Trinket", quantity=2, type="resource"),
        ]

        sellable = get_sellable_items(inventory)

        assert [item.id for item in sellable] == ["seaweed", "driftwood"]


class TestHubVisit:
    def test_no_visit_when_geared_and_stocked(self) -> None:
        state = GameState(
            equipment=Equipment(weapon="shell_blade", armor="kelp_wrap", accessory="sea_glass_charm"),
            inventory=[InventoryItem(id="seaweed_salve", name="Seaweed Salve")],
            shells=20,
        )

        assert should_visit_hub(state) is False

    def test_visit_when_inventory_full_of_junk(self) -> None:
        state = GameState(
            inventory_capacity=10,
            inventory=[
                InventoryItem(id="seaweed", name="Seaweed", quantity=8, type="resource"),
                InventoryItem(id="seaweed_salve", name="Seaweed Salve"),
            ],
            equipment=Equipment(weapon="shell_blade", armor="kelp_wrap", accessory="sea_glass_charm"),
        )

        assert should_visit_hub(state) is True

    def test_visit_when_upgrade_affordable(self) -> None:
        state = GameState(shells=60, inventory=[InventoryItem(id="seaweed_salve", name="Seaweed Salve")])

        assert should_visit_hub(state) is True

    def test_visit_for_healing_when_comfortable(self) -> None:
        state = GameState(
            shells=51,
            level=1,
            equipment=Equipment(weapon="iron_trident", armor="coral_plate", accessory="moonstone_ring"),
        )

        assert should_visit_hub(state) is True


class TestMaterials:
    def test_has_materials(self) -> None:
        state = GameState(inventory=[InventoryItem(id="moonstone", name="Moonstone", quantity=3)])

        assert has_materials(state, {"moonstone": 3})
        assert not has_materials(state, {"moonstone": 3, "pearl": 1})

    def test_default_catalog_recipes_have_slots(self) -> None:
        assert all(recipe.slot in ("weapon", "armor", "accessory") for recipe in DEFAULT_CATALOG.craft_recipes)
