"""Tests for candidate generation, loop guard and request bodies."""

from __future__ import annotations

import random

import pytest

from reef_agent.models.actions import COMBAT_ACTIONS, ActionCandidate
from reef_agent.models.game_state import CombatState, Equipment, GameState, InventoryItem
from reef_agent.models.profile import BehaviorProfile
from reef_agent.models.session import SessionMode
from reef_agent.strategy.candidates import (
    CandidateGenerator,
    ScoringConfig,
    apply_loop_guard,
    pick_action,
    rank_candidates,
    to_request_body,
)

NEUTRAL = BehaviorProfile()


def _generator() -> CandidateGenerator:
    return CandidateGenerator(noise=False)


def _busy_state(**overrides: object) -> GameState:
    """A state where nearly every rule has something to say."""
    fields: dict[str, object] = {
        "zone": "trading_post",
        "level": 6,
        "shells": 400,
        "creatures": ["reef_crab"],
        "resources": ["seaweed"],
        "agents": ["Bubbles"],
        "connected_zones": ["shallows", "coral_gardens", "kelp_forest"],
        "inventory": [
            InventoryItem(id="seaweed", name="Seaweed", quantity=12, type="resource"),
            InventoryItem(id="seaweed_salve", name="Seaweed Salve", quantity=2),
            InventoryItem(id="coral_dagger", name="Coral Dagger", slot="weapon"),
        ],
    }
    fields.update(overrides)
    return GameState(**fields)


class TestCombatInvariant:
    """In combat only combat verbs are produced."""

    @pytest.mark.parametrize("energy", [0, 5, 12, 50, 100])
    @pytest.mark.parametrize("hp", [10, 45, 100])
    def test_only_combat_actions_in_combat(self, energy: int, hp: int) -> None:
        state = _busy_state(energy=energy, hp=hp, combat=CombatState.engaged("reef_crab"))
        profile = BehaviorProfile(aggression=0.7, caution=0.4, exploration=0.5, greed=0.6, sociability=0.9)

        candidates = CandidateGenerator(rng=random.Random(3)).generate(state, profile, SessionMode.PVP)

        assert candidates
        assert {c.action for c in candidates} <= COMBAT_ACTIONS

    def test_fight_targets_current_enemy(self) -> None:
        state = GameState(zone="shallows", combat=CombatState.engaged("spiny_lobster"))

        candidates = _generator().generate(state, NEUTRAL)

        fight = next(c for c in candidates if c.action == "fight")
        assert fight.target == "spiny_lobster"

    def test_unknown_enemy_uses_bare_attack(self) -> None:
        state = GameState(zone="shallows", combat=CombatState.engaged())

        candidates = _generator().generate(state, NEUTRAL)

        assert any(c.action == "attack" and c.target is None for c in candidates)

    def test_forced_flee_when_attack_unaffordable(self) -> None:
        state = GameState(zone="shallows", energy=5, combat=CombatState.engaged("reef_crab"))

        candidates = _generator().generate(state, NEUTRAL)
        best, _ = pick_action(candidates)

        flee = next(c for c in candidates if c.action == "flee")
        assert flee.score == pytest.approx(ScoringConfig().cannot_attack_flee_bonus)
        assert best.action == "flee"
        assert not any(c.action in ("fight", "attack") for c in candidates)

    def test_rest_when_neither_attack_nor_flee_affordable(self) -> None:
        state = GameState(zone="shallows", energy=2, combat=CombatState.engaged("reef_crab"))

        candidates = _generator().generate(state, NEUTRAL)

        assert any(c.action == "rest" and c.score >= 10 for c in candidates)


class TestEnergyReserve:
    """Fight/gather/move always leave enough energy for one flee."""

    @pytest.mark.parametrize("energy", range(0, 41))
    def test_costly_actions_respect_reserve(self, energy: int) -> None:
        generator = _generator()
        state = _busy_state(zone="coral_gardens", energy=energy)

        candidates = generator.generate(state, NEUTRAL, SessionMode.GRIND)

        for candidate in candidates:
            if candidate.action in ("move", "gather", "fight"):
                cost = {"move": 5, "gather": 3, "fight": 10}[candidate.action]
                assert energy >= cost + 15, candidate

    def test_escape_moves_are_gated_too(self) -> None:
        state = GameState(zone="unknown", energy=10, needs_escape=True)

        candidates = _generator().generate(state, NEUTRAL)

        assert not any(c.action == "move" for c in candidates)


class TestScenarios:
    """End-to-end scoring scenarios."""

    def test_low_hp_rest_gets_critical_bonus(self) -> None:
        state = GameState(zone="shallows", hp=15, max_hp=100, energy=80)

        candidates = _generator().generate(state, NEUTRAL)

        rest = next(c for c in candidates if c.action == "rest")
        # (1 - 0.15) * 3 + (1 - 0.8) * 2 + critical bonus
        assert rest.score == pytest.approx(0.85 * 3 + 0.2 * 2 + 5.0)

    def test_escape_override_dominates(self) -> None:
        state = GameState(zone="unknown", needs_escape=True, resources=["seaweed"])

        candidates = _generator().generate(state, NEUTRAL)
        best, _ = pick_action(candidates)

        others = [c.score for c in candidates if not c.reason.startswith("escape")]
        assert best.action == "move"
        assert best.target in ("shallows", "trading_post", "coral_gardens")
        assert best.score == pytest.approx(max(others) + 10)

    def test_hub_offers_sell_buy_and_equip(self) -> None:
        state = _busy_state(shells=60, level=1)

        candidates = _generator().generate(state, NEUTRAL)

        keys = {c.key for c in candidates}
        assert "sell→seaweed" in keys
        assert "buy→shell_blade" in keys
        assert "use→coral_dagger" in keys

    def test_no_hub_actions_away_from_hub(self) -> None:
        state = _busy_state(zone="shallows")

        candidates = _generator().generate(state, NEUTRAL)

        assert not any(c.action in ("sell", "buy", "craft", "shop", "vault") for c in candidates)

    def test_target_zone_pins_move_bonus(self) -> None:
        state = GameState(zone="shallows", connected_zones=["coral_gardens", "trading_post"])

        candidates = _generator().generate(state, NEUTRAL, target_zone="trading_post")
        best, _ = pick_action(candidates)

        assert best.key == "move→trading_post"

    def test_faction_join_params(self) -> None:
        state = GameState(zone="shallows", level=5, connected_zones=["coral_gardens"])
        profile = BehaviorProfile(aggression=0.9)

        candidates = _generator().generate(state, profile)

        faction = next(c for c in candidates if c.action == "faction")
        assert faction.params == {"join": "cult"}

    def test_pvp_attacks_only_outside_safe_zones(self) -> None:
        safe = GameState(zone="shallows", agents=["Bubbles"])
        risky = GameState(zone="coral_gardens", agents=["Bubbles"])

        assert not any(c.target == "@Bubbles" for c in _generator().generate(safe, NEUTRAL, SessionMode.PVP))
        assert any(c.target == "@Bubbles" for c in _generator().generate(risky, NEUTRAL, SessionMode.PVP))

    def test_active_quest_completion_candidate(self) -> None:
        state = GameState(zone="shallows", active_quest="q7")

        candidates = _generator().generate(state, NEUTRAL, SessionMode.QUEST)

        complete = next(c for c in candidates if c.target == "complete")
        assert complete.params == {"quest": "q7"}
        assert complete.score == pytest.approx(8.0)

    def test_noise_is_bounded_by_exploration(self) -> None:
        state = _busy_state(zone="shallows")
        profile = BehaviorProfile(exploration=0.5)

        plain = CandidateGenerator(noise=False).generate(state, profile)
        noisy = CandidateGenerator(rng=random.Random(7)).generate(state, profile)

        for a, b in zip(plain, noisy, strict=True):
            assert a.key == b.key
            assert abs(a.score - b.score) <= 0.5


class TestLoopGuard:
    """Repetition penalty."""

    def test_penalizes_exactly_the_configured_amount(self) -> None:
        candidates = [
            ActionCandidate(action="fight", target="reef_crab", score=5.0),
            ActionCandidate(action="gather", target="seaweed", score=4.0),
        ]

        penalized = apply_loop_guard(candidates, ["fight→reef_crab"] * 3)
        best, _ = pick_action(candidates)

        assert penalized == "fight→reef_crab"
        assert candidates[0].score == pytest.approx(5.0 - 10.0)
        assert candidates[1].score == pytest.approx(4.0)
        assert best.key == "gather→seaweed"

    def test_no_penalty_without_full_repetition(self) -> None:
        candidates = [ActionCandidate(action="fight", target="reef_crab", score=5.0)]

        penalized = apply_loop_guard(candidates, ["fight→reef_crab", "look", "fight→reef_crab"])

        assert penalized is None
        assert candidates[0].score == 5.0

    def test_short_history_is_ignored(self) -> None:
        candidates = [ActionCandidate(action="look", score=0.5)]

        assert apply_loop_guard(candidates, ["look", "look"]) is None

    def test_custom_penalty(self) -> None:
        candidates = [ActionCandidate(action="look", score=0.5)]

        apply_loop_guard(candidates, ["look"] * 3, ScoringConfig(loop_guard_penalty=2.5))

        assert candidates[0].score == pytest.approx(-2.0)


class TestPicking:
    """Ranking, picking and request bodies."""

    def test_rank_is_stable_for_ties(self) -> None:
        first = ActionCandidate(action="move", target="a", score=1.0)
        second = ActionCandidate(action="move", target="b", score=1.0)

        assert rank_candidates([first, second]) == [first, second]

    def test_pick_returns_top_n(self) -> None:
        candidates = [ActionCandidate(action="look", score=float(i)) for i in range(6)]

        best, top = pick_action(candidates, top_n=4)

        assert best.score == 5.0
        assert [c.score for c in top] == [5.0, 4.0, 3.0, 2.0]

    def test_pick_from_nothing_raises(self) -> None:
        with pytest.raises(ValueError):
            pick_action([])

    def test_broadcast_body(self) -> None:
        body = to_request_body(ActionCandidate(action="broadcast"), "hello reef")

        assert body == {"action": "broadcast", "params": {"message": "hello reef"}, "message": "hello reef"}

    def test_sell_body(self) -> None:
        body = to_request_body(ActionCandidate(action="sell", target="seaweed", params={"quantity": "12"}))

        assert body == {"action": "sell", "params": {"item": "seaweed", "quantity": "12"}}

    def test_target_and_params_body(self) -> None:
        move = to_request_body(ActionCandidate(action="move", target="shallows"))
        quest = to_request_body(ActionCandidate(action="quest", target="accept", params={"quest": "q1"}))

        assert move == {"action": "move", "target": "shallows"}
        assert quest == {"action": "quest", "target": "accept", "params": {"quest": "q1"}}


class TestEquipmentHelpers:
    def test_missing_slots(self) -> None:
        assert Equipment(weapon="shell_blade").missing_slots() == ["armor", "accessory"]
