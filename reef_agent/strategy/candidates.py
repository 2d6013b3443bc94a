"""Weighted candidate generation and scoring for Reef actions.

The generator is a deterministic rule set over (GameState, BehaviorProfile,
SessionMode, target zone) with one explicit randomization step at the end:
every score is perturbed by uniform noise scaled by the profile's
exploration axis.

While the agent is in combat only combat-legal verbs are produced and no
other rule is evaluated.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from reef_agent.models.actions import ActionCandidate
from reef_agent.models.game_state import EQUIPMENT_SLOTS, GameState, QuestStatus
from reef_agent.models.profile import BehaviorProfile
from reef_agent.models.session import SessionMode
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog
from reef_agent.strategy.economy import (
    get_next_upgrade,
    get_sellable_items,
    has_materials,
    should_visit_hub,
    target_farm_zone,
)
from reef_agent.strategy.profile import pick_faction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringConfig:
    """Tunable scoring constants.

    Attributes:
        energy_reserve: Energy kept back for one flee before fight/gather/move.
        rest_hp_threshold: Rest is considered below this HP fraction.
        rest_energy_threshold: Rest is considered below this energy fraction.
        critical_hp_threshold: HP fraction that counts as an emergency.
        critical_hp_bonus: Rest bonus applied in an emergency.
        cannot_attack_flee_bonus: Flee bonus when attacking is unaffordable.
        loop_guard_window: Number of recent actions inspected for repetition.
        loop_guard_penalty: Score removed from a repeated action.
        escape_margin: Lead the escape override keeps over every other score.
        top_n: Number of candidates surfaced in logs before the pick.
    """

    energy_reserve: int = 15
    rest_hp_threshold: float = 0.8
    rest_energy_threshold: float = 0.5
    critical_hp_threshold: float = 0.3
    critical_hp_bonus: float = 5.0
    cannot_attack_flee_bonus: float = 10.0
    loop_guard_window: int = 3
    loop_guard_penalty: float = 10.0
    escape_margin: float = 10.0
    top_n: int = 4


class CandidateGenerator:
    """Rule-based action scorer for Reef sessions."""

    def __init__(
        self,
        catalog: GameCatalog = DEFAULT_CATALOG,
        config: ScoringConfig | None = None,
        rng: random.Random | None = None,
        noise: bool = True,
    ) -> None:
        self._catalog = catalog
        self._config = config or ScoringConfig()
        self._rng = rng or random.Random()
        self._noise = noise

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def generate(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode = SessionMode.ADVENTURE,
        target_zone: str | None = None,
    ) -> list[ActionCandidate]:
        """Generate every scored candidate for the current state."""
        if state.in_combat:
            candidates = self._combat_candidates(state, profile, mode)
        else:
            candidates = self._free_candidates(state, profile, mode, target_zone)

        if self._noise and profile.exploration > 0:
            for candidate in candidates:
                candidate.score += self._rng.uniform(-profile.exploration, profile.exploration)
        return candidates

    # -- combat ---------------------------------------------------------------

    def _combat_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        candidates: list[ActionCandidate] = []
        candidates.extend(self._recovery_candidates(state, profile))

        hp_pct = state.hp_pct
        can_attack = state.energy >= self._catalog.energy_cost("attack")
        can_flee = state.energy >= self._catalog.energy_cost("flee")

        if can_flee:
            flee_score = profile.caution * 3 + (1 - hp_pct) * 4
            if hp_pct < 0.25:
                flee_score += 5
            if not can_attack:
                flee_score += self._config.cannot_attack_flee_bonus
            candidates.append(
                ActionCandidate(action="flee", score=flee_score, reason="in combat, considering escape")
            )

        if can_attack:
            fight_score = profile.aggression * 3 + hp_pct * 2
            if mode == SessionMode.PVP:
                fight_score += 2
            enemy = state.combat.enemy or (state.creatures[0] if state.creatures else None)
            verb = "fight" if enemy else "attack"
            candidates.append(
                ActionCandidate(
                    action=verb,
                    target=enemy,
                    score=fight_score,
                    reason=f"continue fighting {enemy}" if enemy else "continue fighting",
                )
            )

        if not can_attack and not can_flee:
            candidates.append(
                ActionCandidate(action="rest", score=10.0, reason="no energy to fight or flee, must rest")
            )
        return candidates

    def _recovery_candidates(self, state: GameState, profile: BehaviorProfile) -> list[ActionCandidate]:
        """Rest and restorative consumables; legal in and out of combat."""
        candidates: list[ActionCandidate] = []
        hp_pct = state.hp_pct
        energy_pct = state.energy_pct

        if hp_pct < self._config.rest_hp_threshold or energy_pct < self._config.rest_energy_threshold:
            score = (1 - hp_pct) * 3 + (1 - energy_pct) * 2 + profile.caution * 1.5
            if hp_pct < self._config.critical_hp_threshold:
                score += self._config.critical_hp_bonus
            candidates.append(
                ActionCandidate(
                    action="rest",
                    score=score,
                    reason=f"hp={hp_pct * 100:.0f}% energy={energy_pct * 100:.0f}%",
                )
            )

        if hp_pct < 0.5 and state.has_item("seaweed_salve"):
            candidates.append(
                ActionCandidate(
                    action="use",
                    target="seaweed_salve",
                    score=(1 - hp_pct) * 5,
                    reason=f"heal (HP {hp_pct * 100:.0f}%)",
                )
            )

        if energy_pct < 0.2 and state.has_item("energy_tonic"):
            candidates.append(
                ActionCandidate(
                    action="use",
                    target="energy_tonic",
                    score=(1 - energy_pct) * 4,
                    reason=f"restore energy ({energy_pct * 100:.0f}%)",
                )
            )
        return candidates

    # -- out of combat ----------------------------------------------------------

    def _free_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
        target_zone: str | None,
    ) -> list[ActionCandidate]:
        candidates = self._recovery_candidates(state, profile)
        candidates.extend(self._buff_candidates(state, profile))
        candidates.extend(self._fight_candidates(state, profile, mode))
        candidates.extend(self._pvp_candidates(state, profile, mode))
        candidates.extend(self._gather_candidates(state, profile, mode))
        candidates.extend(self._move_candidates(state, profile, mode, target_zone))
        candidates.extend(self._quest_candidates(state, profile, mode))
        candidates.extend(self._hub_candidates(state, profile))
        candidates.extend(self._equip_candidates(state))
        candidates.extend(self._faction_candidates(state, profile))
        candidates.extend(self._strategic_move_candidates(state, profile, target_zone))
        candidates.extend(self._vault_candidates(state))
        candidates.extend(self._boss_candidates(state, profile))
        candidates.extend(self._social_candidates(state, profile, mode))
        candidates.extend(self._escape_candidates(state, candidates))
        candidates.append(ActionCandidate(action="look", score=0.5, reason="refresh surroundings"))
        return candidates

    def can_afford(self, state: GameState, action: str) -> bool:
        """Whether an action leaves enough energy in reserve for one flee."""
        return state.energy >= self._catalog.energy_cost(action) + self._config.energy_reserve

    def _buff_candidates(self, state: GameState, profile: BehaviorProfile) -> list[ActionCandidate]:
        if state.level >= 5 and state.hp_pct > 0.7 and state.creatures and state.has_item("berserker_coral"):
            return [
                ActionCandidate(
                    action="use",
                    target="berserker_coral",
                    score=profile.aggression * 3 + 1,
                    reason="buff before combat",
                )
            ]
        return []

    def _fight_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        if not self.can_afford(state, "fight"):
            return []
        candidates = []
        for creature in state.creatures:
            score = profile.aggression * 3 + state.hp_pct * 1.5
            score -= (1 - state.energy_pct) * 2
            if state.hp_pct < self._config.critical_hp_threshold:
                score -= 4
            if mode == SessionMode.GRIND:
                score += 2
            if mode == SessionMode.PVP:
                score += 1
            if not self._catalog.is_safe(state.zone):
                score += 1
            candidates.append(
                ActionCandidate(action="fight", target=creature, score=score, reason=f"fight {creature}")
            )
        return candidates

    def _pvp_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        if mode != SessionMode.PVP or self._catalog.is_safe(state.zone):
            return []
        if not self.can_afford(state, "attack"):
            return []
        candidates = []
        for agent in state.agents:
            score = profile.aggression * 4
            if state.hp_pct < 0.5:
                score -= 3
            score += 1 if state.level >= 5 else -2
            candidates.append(
                ActionCandidate(action="attack", target=f"@{agent}", score=score, reason=f"PvP attack {agent}")
            )
        return candidates

    def _gather_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        if not self.can_afford(state, "gather"):
            return []
        tutorial_wants_gather = bool(state.tutorial_hint and "gather" in state.tutorial_hint.lower())
        candidates = []
        for resource in state.resources:
            score = profile.greed * 2.5 + profile.persistence
            score -= 1 - state.energy_pct
            if mode == SessionMode.GRIND:
                score += 2
            if tutorial_wants_gather:
                score += 8
            if resource in self._catalog.sellable_resources and state.shells < 100:
                score += 1
            flags_pvp = resource in self._catalog.pvp_flag_resources
            if flags_pvp:
                score -= profile.caution * 3
                if state.agents:
                    score -= 2
            reason = f"gather {resource}" + (" (PvP flag risk)" if flags_pvp else "")
            candidates.append(ActionCandidate(action="gather", target=resource, score=score, reason=reason))
        return candidates

    def _move_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
        target_zone: str | None,
    ) -> list[ActionCandidate]:
        if not self.can_afford(state, "move"):
            return []
        catalog = self._catalog
        candidates = []
        for zone in state.connected_zones:
            rep_required = catalog.zone_rep_requirements.get(zone)
            if rep_required and state.reputation < rep_required:
                continue

            zone_level = catalog.zone_level(zone)
            score = profile.exploration * 2
            if target_zone and zone == target_zone:
                score += 8
            elif target_zone and target_zone in catalog.connections(zone):
                score += 3

            level_diff = zone_level - state.level
            if level_diff > 2:
                score -= 3
            elif level_diff >= 0:
                score += 1

            safe = catalog.is_safe(zone)
            if not safe:
                score -= profile.caution * 1.5
            if state.pvp_flagged:
                score += 2 if safe else -3
            if mode == SessionMode.ADVENTURE:
                score += 1.5
            if zone == "shallows" and state.level >= 3 and profile.caution < 0.5:
                score -= 2
            if zone == catalog.hub_zone and state.shells > 100:
                score += profile.greed

            candidates.append(
                ActionCandidate(action="move", target=zone, score=score, reason=f"travel to {zone} (L{zone_level})")
            )
        return candidates

    def _quest_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        candidates = []
        if state.active_quest:
            score = profile.persistence * 2 + 5
            if mode == SessionMode.QUEST:
                score += 3
            candidates.append(
                ActionCandidate(
                    action="quest",
                    target="complete",
                    params={"quest": state.active_quest},
                    score=score,
                    reason=f"complete quest {state.active_quest}",
                )
            )

        available = next((q for q in state.quests if q.status == QuestStatus.AVAILABLE), None)
        if available is not None:
            candidates.append(
                ActionCandidate(
                    action="quest",
                    target="accept",
                    params={"quest": available.id},
                    score=profile.persistence * 2 + 4,
                    reason=f"accept quest: {available.name}",
                )
            )

        list_score = profile.persistence * 2 + 2
        if mode == SessionMode.QUEST:
            list_score += 3
        if state.tutorial_step is not None:
            list_score += 2
        if state.quests:
            list_score -= 2
        candidates.append(
            ActionCandidate(action="quest", target="list", score=list_score, reason="check available quests")
        )
        return candidates

    def _hub_candidates(self, state: GameState, profile: BehaviorProfile) -> list[ActionCandidate]:
        """Sell, buy, craft and browse; only legal at the hub."""
        catalog = self._catalog
        if state.zone != catalog.hub_zone:
            return []
        candidates = []
        for item in get_sellable_items(state.inventory, catalog):
            candidates.append(
                ActionCandidate(
                    action="sell",
                    target=item.id,
                    params={"quantity": str(item.quantity)},
                    score=profile.greed * 2 + 2,
                    reason=f"sell {item.quantity}x {item.name}",
                )
            )

        for slot in EQUIPMENT_SLOTS:
            upgrade = get_next_upgrade(slot, state.equipment.get(slot), state.shells, state.level, catalog)
            if upgrade is None:
                continue
            tier_idx = catalog.gear_for_slot(slot).index(upgrade)
            candidates.append(
                ActionCandidate(
                    action="buy",
                    target=upgrade.id,
                    score=3 + tier_idx,
                    reason=f"buy {upgrade.id} ({upgrade.price} shells, {slot})",
                )
            )

        for recipe in catalog.craft_recipes:
            if state.level < recipe.min_level or state.equipment.get(recipe.slot) == recipe.id:
                continue
            if has_materials(state, recipe.materials):
                candidates.append(
                    ActionCandidate(
                        action="craft",
                        target=recipe.id,
                        score=6 + (2 if recipe.min_level >= 9 else 0),
                        reason=f"craft {recipe.id} (endgame {recipe.slot})",
                    )
                )

        if state.shells > 30:
            candidates.append(
                ActionCandidate(
                    action="shop",
                    score=profile.greed * 2 + 1,
                    reason=f"browse shop ({state.shells} shells)",
                )
            )
        return candidates

    def _equip_candidates(self, state: GameState) -> list[ActionCandidate]:
        return [
            ActionCandidate(action="use", target=item.id, score=4.0, reason=f"equip {item.name} ({item.slot})")
            for item in state.inventory
            if item.slot and not item.equipped
        ]

    def _faction_candidates(self, state: GameState, profile: BehaviorProfile) -> list[ActionCandidate]:
        if state.level < 5 or state.faction:
            return []
        return [
            ActionCandidate(
                action="faction",
                params={"join": pick_faction(profile)},
                score=5.0,
                reason="join a faction (L5+ eligible)",
            )
        ]

    def _strategic_move_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        target_zone: str | None,
    ) -> list[ActionCandidate]:
        """Moves toward the hub when shopping is due, or toward the farm zone."""
        if not self.can_afford(state, "move"):
            return []
        catalog = self._catalog
        candidates = []

        if (
            state.zone != catalog.hub_zone
            and catalog.hub_zone in state.connected_zones
            and should_visit_hub(state, catalog)
        ):
            candidates.append(
                ActionCandidate(
                    action="move",
                    target=catalog.hub_zone,
                    score=3 + profile.greed,
                    reason="visit hub (need to sell/buy)",
                )
            )

        optimal = target_farm_zone(state.level, catalog)
        rep_required = catalog.zone_rep_requirements.get(optimal)
        can_enter = not rep_required or state.reputation >= rep_required
        if state.zone == optimal or target_zone or not can_enter:
            return candidates

        if optimal in state.connected_zones:
            candidates.append(
                ActionCandidate(
                    action="move",
                    target=optimal,
                    score=profile.exploration * 2 + 3,
                    reason=f"advance to {optimal} (optimal for L{state.level})",
                )
            )
            return candidates

        for next_zone in state.connected_zones:
            if optimal in catalog.connections(next_zone):
                candidates.append(
                    ActionCandidate(
                        action="move",
                        target=next_zone,
                        score=profile.exploration * 2 + 2,
                        reason=f"route through {next_zone} toward {optimal}",
                    )
                )
                break
        return candidates

    def _vault_candidates(self, state: GameState) -> list[ActionCandidate]:
        if state.zone != self._catalog.hub_zone:
            return []
        return [
            ActionCandidate(
                action="vault",
                target="deposit",
                params={"item": item.id, "quantity": str(item.quantity)},
                score=2.0,
                reason=f"vault {item.quantity}x {item.name} for safekeeping",
            )
            for item in state.inventory
            if item.id in self._catalog.craft_resources and item.quantity > 5
        ]

    def _boss_candidates(self, state: GameState, profile: BehaviorProfile) -> list[ActionCandidate]:
        if state.level < 9 or state.zone != self._catalog.boss_zone or state.hp_pct <= 0.8:
            return []
        score = profile.aggression * 3 + 2
        if state.has_item("berserker_coral"):
            score += 1
        return [
            ActionCandidate(
                action="challenge",
                target="boss",
                score=score,
                reason=f"challenge the boss (L{state.level}, HP {state.hp_pct * 100:.0f}%)",
            )
        ]

    def _social_candidates(
        self,
        state: GameState,
        profile: BehaviorProfile,
        mode: SessionMode,
    ) -> list[ActionCandidate]:
        social = mode == SessionMode.SOCIAL
        candidates = []
        if not self._catalog.is_safe(state.zone) or state.agents:
            candidates.append(
                ActionCandidate(
                    action="broadcast",
                    score=profile.sociability * 2 + (3 if social else 0),
                    reason="say something to the zone",
                )
            )
        candidates.append(
            ActionCandidate(
                action="inbox",
                score=profile.sociability * 1.5 + 0.5 + (2 if social else 0),
                reason="check for messages and trade offers",
            )
        )
        candidates.append(
            ActionCandidate(
                action="trade",
                target="pending",
                score=profile.greed * 1.5 + profile.sociability * 0.5 + (2 if social else 0),
                reason="check pending trade offers",
            )
        )
        return candidates

    def _escape_candidates(
        self,
        state: GameState,
        existing: Sequence[ActionCandidate],
    ) -> list[ActionCandidate]:
        """Override that dominates every other score in an unknown zone with no exits."""
        stranded = state.needs_escape or state.zone == "unknown" or not state.connected_zones
        if not stranded or not self.can_afford(state, "move"):
            return []
        ceiling = max((c.score for c in existing), default=0.0)
        score = max(ceiling, 0.0) + self._config.escape_margin
        return [
            ActionCandidate(action="move", target=zone, score=score, reason=f"escape unknown zone → {zone}")
            for zone in self._catalog.escape_targets
        ]


def apply_loop_guard(
    candidates: list[ActionCandidate],
    history: Sequence[str],
    config: ScoringConfig | None = None,
) -> str | None:
    """Penalize the action repeated across the whole recent window.

    Returns:
        The penalized key, or None when no repetition was detected.
    """
    config = config or ScoringConfig()
    window = config.loop_guard_window
    if len(history) < window:
        return None
    last_key = history[-1]
    if any(key != last_key for key in history[-window:]):
        return None
    for candidate in candidates:
        if candidate.key == last_key:
            candidate.score -= config.loop_guard_penalty
    logger.debug("[LOOP-GUARD] %s repeated %sx, penalizing", last_key, window)
    return last_key


def rank_candidates(candidates: list[ActionCandidate]) -> list[ActionCandidate]:
    """Sort by score descending; ties keep generation order."""
    return sorted(candidates, key=lambda c: -c.score)


def pick_action(candidates: list[ActionCandidate], top_n: int = 4) -> tuple[ActionCandidate, list[ActionCandidate]]:
    """Pick the best candidate and return it with the surfaced top-N.

    Raises:
        ValueError: If there are no candidates.
    """
    if not candidates:
        raise ValueError("No candidates to pick from")
    ranked = rank_candidates(candidates)
    top = ranked[:top_n]
    logger.info(
        "evaluating %s options...\n%s",
        len(ranked),
        "\n".join(f"  {i}. {c.describe()}" for i, c in enumerate(top, start=1)),
    )
    return ranked[0], top


def to_request_body(candidate: ActionCandidate, broadcast_message: str | None = None) -> dict[str, Any]:
    """Build the POST /action body for a candidate."""
    body: dict[str, Any] = {"action": candidate.action}
    if candidate.action == "broadcast":
        message = broadcast_message or "..."
        body["params"] = {"message": message}
        body["message"] = message
        return body
    if candidate.action == "sell":
        body["params"] = {"item": candidate.target, "quantity": candidate.params.get("quantity", "1")}
        return body
    if candidate.target:
        body["target"] = candidate.target
    if candidate.params:
        body["params"] = dict(candidate.params)
    return body
