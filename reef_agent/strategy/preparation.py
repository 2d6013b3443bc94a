"""Hub preparation: sell junk, buy and equip gear, stock consumables, join a faction."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from reef_agent.environment.client import ReefClient
from reef_agent.interfaces.collaborators import ActivityKind, ActivityLogger, CancellationSignal
from reef_agent.models.game_state import EQUIPMENT_SLOTS, GameState, parse_inventory
from reef_agent.models.profile import BehaviorProfile
from reef_agent.runtime.recovery import AuthorizationError, ReefAPIError
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog
from reef_agent.strategy.economy import get_next_upgrade, get_sellable_items, should_visit_hub
from reef_agent.strategy.profile import pick_faction

logger = logging.getLogger(__name__)

HEALING_ITEM = "seaweed_salve"
ENERGY_ITEM = "energy_tonic"
SURVIVAL_ITEM = "pressure_potion"
HEALING_SHELL_FLOOR = 50
ENERGY_SHELL_FLOOR = 70
HAZARD_LEVEL = 9
FACTION_LEVEL = 5


@dataclass
class PreparationOutcome:
    """What the planner did during one hub visit."""

    actions_used: int = 0
    goals: list[str] = field(default_factory=list)
    faction_joined: str | None = None


class PreparationPlanner:
    """Runs the once-per-session shopping trip at the hub.

    Every step is independent: a failed call is logged and the planner
    moves on. Only authorization loss propagates. Cancellation is checked
    before each step.
    """

    def __init__(
        self,
        client: ReefClient,
        pause: Callable[[], None],
        activity: ActivityLogger,
        cancellation: CancellationSignal,
        catalog: GameCatalog = DEFAULT_CATALOG,
    ) -> None:
        self._client = client
        self._pause = pause
        self._activity = activity
        self._cancellation = cancellation
        self._catalog = catalog

    def should_run(self, state: GameState) -> bool:
        """Whether a hub visit is warranted right now."""
        return should_visit_hub(state, self._catalog)

    def _call(self, body: dict[str, Any], outcome: PreparationOutcome, failure: str) -> dict[str, Any] | None:
        """Issue one best-effort call followed by the inter-call delay."""
        try:
            result = self._client.action(body)
        except AuthorizationError:
            raise
        except ReefAPIError as e:
            self._activity.log(ActivityKind.ERROR, f"{failure} failed: {e}")
            self._pause()
            return None
        outcome.actions_used += 1
        self._pause()
        if result.get("success") is False:
            message = result.get("message") or result.get("error") or "rejected"
            self._activity.log(ActivityKind.ERROR, f"{failure} rejected: {message}")
            return None
        return result

    def run(
        self,
        state: GameState,
        profile: BehaviorProfile,
        faction_already_joined: bool = False,
        last_zone: str | None = None,
    ) -> PreparationOutcome:
        """Run the preparation sequence, mutating ``state`` as calls succeed.

        Args:
            state: Live game state; must be at the hub.
            profile: Behavior profile used for the faction choice.
            faction_already_joined: Persisted flag from earlier sessions.
            last_zone: Last zone recorded at the end of the previous session.

        Returns:
            Counts and goals for the session record.
        """
        outcome = PreparationOutcome()
        self._activity.log(ActivityKind.STEP, "prep phase: checking inventory & gear...")

        self._refresh_inventory(state, outcome)
        self._sell_junk(state, outcome)
        self._buy_upgrades(state, outcome)
        self._stock_consumables(state, outcome, last_zone)
        self._join_faction(state, profile, outcome, faction_already_joined)

        goals = f" ({', '.join(outcome.goals)})" if outcome.goals else ""
        self._activity.log(ActivityKind.STEP, f"prep phase complete: {outcome.actions_used} actions used{goals}")
        return outcome

    def _refresh_inventory(self, state: GameState, outcome: PreparationOutcome) -> None:
        result = self._call({"action": "inventory"}, outcome, "inventory")
        if result is None:
            return
        raw = result.get("inventory") or result.get("items") or []
        if isinstance(raw, list) and raw:
            state.inventory = parse_inventory(raw)
        if isinstance(result.get("agent"), dict):
            state.apply_agent_fields(result["agent"], include_location=False)
        state.equipment.sync_from_inventory(state.inventory)

    def _sell_junk(self, state: GameState, outcome: PreparationOutcome) -> None:
        for item in get_sellable_items(state.inventory, self._catalog):
            if self._cancellation.cancelled:
                return
            self._activity.log(ActivityKind.ACTION, f"selling {item.quantity}x {item.name}")
            body = {"action": "sell", "params": {"item": item.id, "quantity": str(item.quantity)}}
            result = self._call(body, outcome, f"sell {item.name}")
            if result is None:
                continue
            agent = result.get("agent")
            if isinstance(agent, dict) and agent.get("shells") is not None:
                state.apply_agent_fields(agent, include_location=False)
            else:
                earned = result.get("shells") or result.get("earned") or 0
                if isinstance(earned, (int, float)):
                    state.shells += int(earned)
                    self._activity.log(ActivityKind.RESULT, f"sold {item.name} → +{earned} shells")

    @staticmethod
    def _settle_purchase(state: GameState, result: dict[str, Any], list_price: int) -> None:
        """Take the balance the shop reports; fall back to the catalog price."""
        agent = result.get("agent")
        if isinstance(agent, dict) and agent.get("shells") is not None:
            state.apply_agent_fields(agent, include_location=False)
        else:
            state.shells -= list_price

    def _buy_upgrades(self, state: GameState, outcome: PreparationOutcome) -> None:
        for slot in EQUIPMENT_SLOTS:
            if self._cancellation.cancelled:
                return
            upgrade = get_next_upgrade(slot, state.equipment.get(slot), state.shells, state.level, self._catalog)
            if upgrade is None:
                continue
            self._activity.log(ActivityKind.ACTION, f"buying {upgrade.id} ({upgrade.price} shells)")
            bought = self._call({"action": "buy", "target": upgrade.id}, outcome, f"buy {upgrade.id}")
            if bought is None:
                continue
            self._settle_purchase(state, bought, upgrade.price)
            outcome.goals.append(f"bought {upgrade.id}")

            self._activity.log(ActivityKind.ACTION, f"equipping {upgrade.id}")
            if self._call({"action": "use", "target": upgrade.id}, outcome, f"equip {upgrade.id}") is None:
                continue
            state.equipment.set(slot, upgrade.id)

    def _buy_consumable(self, state: GameState, item_id: str, outcome: PreparationOutcome, goal: bool = False) -> None:
        consumable = self._catalog.consumable(item_id)
        price = consumable.price if consumable else 0
        self._activity.log(ActivityKind.ACTION, f"buying {item_id} ({price} shells)")
        bought = self._call({"action": "buy", "target": item_id}, outcome, f"buy {item_id}")
        if bought is None:
            return
        self._settle_purchase(state, bought, price)
        if goal:
            outcome.goals.append(f"bought {item_id}")

    def _stock_consumables(self, state: GameState, outcome: PreparationOutcome, last_zone: str | None) -> None:
        has_healing = state.has_item(HEALING_ITEM)
        has_energy = state.has_item(ENERGY_ITEM)

        if not has_healing and state.shells > HEALING_SHELL_FLOOR and not self._cancellation.cancelled:
            self._buy_consumable(state, HEALING_ITEM, outcome)
        if not has_energy and state.shells > ENERGY_SHELL_FLOOR and not self._cancellation.cancelled:
            self._buy_consumable(state, ENERGY_ITEM, outcome)

        survival = self._catalog.consumable(SURVIVAL_ITEM)
        heading_deep = state.level >= HAZARD_LEVEL or last_zone == self._catalog.hazard_zone
        if (
            survival is not None
            and heading_deep
            and not state.has_item(SURVIVAL_ITEM)
            and state.shells >= survival.price
            and not self._cancellation.cancelled
        ):
            self._buy_consumable(state, SURVIVAL_ITEM, outcome, goal=True)

    def _join_faction(
        self,
        state: GameState,
        profile: BehaviorProfile,
        outcome: PreparationOutcome,
        already_joined: bool,
    ) -> None:
        if state.level < FACTION_LEVEL or state.faction or already_joined or self._cancellation.cancelled:
            return
        faction = pick_faction(profile)
        self._activity.log(ActivityKind.ACTION, f"joining faction: {faction}")
        if self._call({"action": "faction", "params": {"join": faction}}, outcome, "join faction") is None:
            return
        state.faction = faction
        outcome.faction_joined = faction
        outcome.goals.append(f"joined {faction}")
