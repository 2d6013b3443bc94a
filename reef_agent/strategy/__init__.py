"""Strategy package: catalogs, behavior profiles, scoring and preparation."""

from reef_agent.strategy.candidates import (
    CandidateGenerator,
    ScoringConfig,
    apply_loop_guard,
    pick_action,
    rank_candidates,
    to_request_body,
)
from reef_agent.strategy.catalog import DEFAULT_CATALOG, ConsumableSpec, CraftRecipe, GameCatalog, GearTier
from reef_agent.strategy.economy import get_next_upgrade, get_sellable_items, should_visit_hub, target_farm_zone
from reef_agent.strategy.preparation import PreparationOutcome, PreparationPlanner
from reef_agent.strategy.profile import emotion_to_profile, pick_faction

__all__ = [
    "DEFAULT_CATALOG",
    "CandidateGenerator",
    "ConsumableSpec",
    "CraftRecipe",
    "GameCatalog",
    "GearTier",
    "PreparationOutcome",
    "PreparationPlanner",
    "ScoringConfig",
    "apply_loop_guard",
    "emotion_to_profile",
    "get_next_upgrade",
    "get_sellable_items",
    "pick_action",
    "pick_faction",
    "rank_candidates",
    "should_visit_hub",
    "target_farm_zone",
    "to_request_body",
]
