"""Tests for shared data models.

These tests verify that:
1. Valid instances can be created
2. Invalid instances raise ValidationError
3. Model methods work as expected
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from reef_agent.models.actions import ActionCandidate
from reef_agent.models.game_state import CombatState, Equipment, GameState, InventoryItem, parse_inventory
from reef_agent.models.profile import BehaviorProfile
from reef_agent.models.session import SessionMode, SessionParams, SessionResult


class TestInventoryItem:
    """Tests for InventoryItem model."""

    def test_from_raw_dict(self) -> None:
        item = InventoryItem.from_raw(
            {"id": "coral_dagger", "name": "Coral Dagger", "count": 2, "category": "weapon", "equipped": True}
        )

        assert item.id == "coral_dagger"
        assert item.quantity == 2
        assert item.type == "weapon"
        assert item.equipped is True

    def test_from_raw_name_only(self) -> None:
        item = InventoryItem.from_raw({"name": "seaweed"})

        assert item.id == "seaweed"
        assert item.quantity == 1

    def test_from_raw_string(self) -> None:
        assert InventoryItem.from_raw("pearl").name == "pearl"

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InventoryItem(id="", name="nothing")

    def test_parse_inventory_ignores_non_lists(self) -> None:
        assert parse_inventory({"seaweed": 3}) == []
        assert [i.id for i in parse_inventory([{"id": "seaweed"}])] == ["seaweed"]


class TestEquipment:
    """Tests for Equipment model."""

    def test_sync_from_inventory(self) -> None:
        equipment = Equipment(weapon="shell_blade")

        equipment.sync_from_inventory(
            [
                InventoryItem(id="coral_dagger", name="Coral Dagger", equipped=True, slot="weapon"),
                InventoryItem(id="kelp_wrap", name="Kelp Wrap", slot="armor"),
            ]
        )

        assert equipment.weapon == "coral_dagger"
        assert equipment.armor is None

    def test_unknown_slot_ignored(self) -> None:
        equipment = Equipment()

        equipment.set("boots", "flippers")

        assert equipment.get("boots") is None
        assert equipment.missing_slots() == ["weapon", "armor", "accessory"]


class TestGameState:
    """Tests for GameState model."""

    def test_defaults(self) -> None:
        state = GameState()

        assert state.zone == "unknown"
        assert state.hp_pct == 1.0
        assert not state.in_combat

    def test_apply_agent_fields(self) -> None:
        state = GameState(zone="shallows")

        state.apply_agent_fields({"location": "kelp_forest", "hp": 40, "maxHp": 80, "faction": "wardens"})

        assert state.zone == "kelp_forest"
        assert state.hp_pct == 0.5
        assert state.faction == "wardens"

    def test_apply_agent_fields_without_location(self) -> None:
        state = GameState(zone="shallows")

        state.apply_agent_fields({"location": "kelp_forest", "shells": 12}, include_location=False)

        assert state.zone == "shallows"
        assert state.shells == 12

    def test_combat_state(self) -> None:
        state = GameState(combat=CombatState.engaged("reef_crab"))

        assert state.in_combat
        assert state.combat.enemy == "reef_crab"
        assert not CombatState.clear().active

    def test_summary(self) -> None:
        state = GameState(zone="shallows", level=3, hp=50, energy=40, shells=7)

        assert state.summary() == "shallows | L3 | HP 50/100 | E 40/100 | 7 shells"


class TestActionCandidate:
    def test_key_and_describe(self) -> None:
        candidate = ActionCandidate(action="fight", target="reef_crab", score=4.5, reason="hostile nearby")

        assert candidate.key == "fight→reef_crab"
        assert candidate.describe() == "fight → reef_crab (4.50): hostile nearby"
        assert ActionCandidate(action="look").key == "look"

    def test_empty_action_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ActionCandidate(action="")


class TestSessionParams:
    """Tests for SessionParams validation."""

    def test_defaults(self) -> None:
        params = SessionParams()

        assert params.mode == SessionMode.ADVENTURE
        assert params.max_actions == 40
        assert params.target_zone is None

    @pytest.mark.parametrize(("given", "expected"), [(0, 40), (None, 40), (3, 5), (12, 12)])
    def test_max_actions_clamped(self, given: int | None, expected: int) -> None:
        assert SessionParams(max_actions=given).max_actions == expected  # type: ignore[arg-type]

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValidationError):
            SessionParams(mode="speedrun")  # type: ignore[arg-type]

    def test_result_without_stats(self) -> None:
        result = SessionResult(success=False, summary="failed", reflection="...")

        assert result.model_dump(mode="json")["stats"] is None


class TestBehaviorProfile:
    def test_axis_bounds(self) -> None:
        with pytest.raises(ValidationError):
            BehaviorProfile(aggression=1.5)

    def test_describe(self) -> None:
        text = BehaviorProfile(aggression=0.5).describe()

        assert text.startswith("aggression=0.50 exploration=0.00")
