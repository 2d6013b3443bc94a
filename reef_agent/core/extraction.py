"""Game state extraction from Reef look/status payloads.

Reef responses mix structured agent fields with free-form markdown
narrative. Structured fields always win; the narrative is mined with a
fixed, ordered set of small rule functions for everything the structured
payload leaves out (creatures, resources, exits, combat, tutorial).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from reef_agent.models.game_state import (
    CombatState,
    Equipment,
    GameState,
    QuestInfo,
    QuestStatus,
    parse_inventory,
)
from reef_agent.strategy.catalog import DEFAULT_CATALOG, GameCatalog

logger = logging.getLogger(__name__)

UNKNOWN_ZONE = "unknown"

_SWORDS = "\u2694\ufe0f?"
_NPC_ROLES = ("merchant", "quest_giver", "guardian")

RESOURCE_PATTERN = re.compile(r"• ([\w\s]+?) — \d+ available")
CREATURE_LISTING_PATTERN = re.compile(r"• ([\w\s]+?) \((?:Level|Lv|HP)[^)]*\)")
COMBAT_CREATURE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:combat with|fighting)\s+([\w\s]+?)(?:\s*[\(\n!.*]|$)", re.IGNORECASE),
    re.compile(r"\*?\*?Enemy:?\*?\*?\s+([\w\s]+?)(?:\s*\(|$)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"([\w\s]+?)\s*\((?:Hostile|Aggressive|Enemy)[^)]*\)", re.MULTILINE),
)
STATUS_COMBAT_PATTERN = re.compile(r"combat with\s+([\w\s]+?)(?:[!*\n(]|$)", re.IGNORECASE)
ENEMY_PATTERN = re.compile(r"\*?\*?Enemy:?\*?\*?\s+([\w\s]+?)(?:\s*\(|$)", re.IGNORECASE)
AGENT_PATTERN = re.compile(r"• (\w+) \(HP: \d+/\d+, Rep: \d+\)")
EXIT_PATTERN = re.compile(r"`move (\w+)`")
TUTORIAL_PATTERN = re.compile(r"TUTORIAL \((\d+)/\d+\):\*?\*?\s*(.+?)(?:\n|$)")
QUEST_NARRATIVE_PATTERN = re.compile(r"\*\*(.+?)\*\*\s*\[(\w+)\]")
QUEST_ACTIVE_PATTERN = re.compile(r"active|in.?progress", re.IGNORECASE)

COMBAT_NEGATION_PATTERN = re.compile(r"not in combat|nothing to flee|no longer in combat", re.IGNORECASE)
IN_COMBAT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_SWORDS + r"\s*\*?\*?\s*IN COMBAT", re.IGNORECASE),
    re.compile(r"you(?:'re| are) in combat with", re.IGNORECASE),
    re.compile(r"currently in combat", re.IGNORECASE),
)
PVP_FLAG_PATTERN = re.compile(_SWORDS + r"\s*\*?\*?\s*PVP\s*FLAG", re.IGNORECASE)
PVP_EXPIRED_PATTERN = re.compile(r"flag.*expired|no longer flagged", re.IGNORECASE)

REJECTION_CLEARED_PATTERN = re.compile(
    r"not in combat|nothing to flee|no longer in combat|combat.*ended", re.IGNORECASE
)
REJECTION_ENGAGED_PATTERN = re.compile(
    r"(?:" + _SWORDS + r"|YOU'RE)\s*\*?\*?\s*IN COMBAT|combat with|can still `flee`", re.IGNORECASE
)

KILL_MARKERS = ("killed", "defeated", "slain")
DEATH_MARKERS = ("died", "respawn", "death")


def normalize_name(raw: str) -> str:
    """Turn a display name into a snake_case id."""
    return re.sub(r"\s+", "_", raw.strip().strip("*").strip().lower())


def _valid_combat_name(raw: str) -> str | None:
    cleaned = raw.strip().strip("*")
    if not 2 < len(cleaned) < 40:
        return None
    return normalize_name(cleaned)


# -- narrative rules ----------------------------------------------------------


def extract_resources(narrative: str) -> list[str]:
    return [normalize_name(m.group(1)) for m in RESOURCE_PATTERN.finditer(narrative)]


def _listed_creatures(narrative: str, status_narrative: str) -> list[str]:
    creatures = []
    for match in CREATURE_LISTING_PATTERN.finditer(narrative):
        name = match.group(1).strip()
        # Agent listings share the "(HP: ...)" shape.
        if AGENT_PATTERN.match(match.group(0)):
            continue
        if any(f"{name} ({role})" in narrative for role in _NPC_ROLES):
            continue
        creatures.append(normalize_name(name))
    return creatures


def _combat_creatures(narrative: str, status_narrative: str) -> list[str]:
    found = []
    for pattern in COMBAT_CREATURE_PATTERNS:
        for match in pattern.finditer(narrative):
            name = _valid_combat_name(match.group(1))
            if name:
                found.append(name)
    return found


def _status_combat_creature(narrative: str, status_narrative: str) -> list[str]:
    if not status_narrative or status_narrative == narrative:
        return []
    match = STATUS_COMBAT_PATTERN.search(status_narrative)
    if not match:
        return []
    name = _valid_combat_name(match.group(1))
    return [name] if name else []


# Evaluated in order; results are merged and deduplicated preserving first sighting.
CREATURE_RULES: tuple[Callable[[str, str], list[str]], ...] = (
    _listed_creatures,
    _combat_creatures,
    _status_combat_creature,
)


def extract_creatures(narrative: str, status_narrative: str = "") -> list[str]:
    """Merge every creature rule's findings in rule order."""
    return _dedupe(name for rule in CREATURE_RULES for name in rule(narrative, status_narrative))


def extract_agents(narrative: str) -> list[str]:
    return [m.group(1) for m in AGENT_PATTERN.finditer(narrative)]


def extract_exits(narrative: str) -> list[str]:
    return [m.group(1) for m in EXIT_PATTERN.finditer(narrative)]


def extract_enemy(text: str) -> str | None:
    """Find the current enemy named in a combat narrative."""
    for pattern in (STATUS_COMBAT_PATTERN, ENEMY_PATTERN):
        match = pattern.search(text)
        if match:
            return _valid_combat_name(match.group(1))
    return None


def detect_combat(text: str, agent: dict[str, Any]) -> bool:
    """Negation phrases win, then the structured flag, then combat phrases."""
    if COMBAT_NEGATION_PATTERN.search(text):
        return False
    structured = agent.get("inCombat")
    if structured is not None:
        return bool(structured)
    return any(pattern.search(text) for pattern in IN_COMBAT_PATTERNS)


def detect_pvp_flag(text: str, agent: dict[str, Any]) -> bool:
    structured = agent.get("pvpFlagged")
    if structured is not None:
        return bool(structured)
    return bool(PVP_FLAG_PATTERN.search(text))


def extract_tutorial(narrative: str) -> tuple[int | None, str | None]:
    match = TUTORIAL_PATTERN.search(narrative)
    if not match:
        return None, None
    return int(match.group(1)), match.group(2).strip()


def detect_outcomes(result_text: str) -> tuple[bool, bool]:
    """Return (killed_something, died) from an action result."""
    killed = any(marker in result_text for marker in KILL_MARKERS)
    died = any(marker in result_text for marker in DEATH_MARKERS)
    return killed, died


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


# -- quests -------------------------------------------------------------------


def _quest_status(raw: Any) -> QuestStatus:
    if raw == QuestStatus.ACTIVE.value:
        return QuestStatus.ACTIVE
    if raw == QuestStatus.COMPLETE.value:
        return QuestStatus.COMPLETE
    return QuestStatus.AVAILABLE


def parse_quests(payload: dict[str, Any]) -> list[QuestInfo]:
    """Parse a quest list response.

    Structured ``quests``/``available`` lists are preferred. When they are
    missing, quests are read from ``**Name** [id]`` markers in the narrative,
    and a marker preceded by "active" or "in progress" is treated as active.
    """
    raw_list = payload.get("quests") or payload.get("available") or []
    if isinstance(raw_list, list) and raw_list:
        quests = []
        for raw in raw_list:
            if not isinstance(raw, dict):
                quests.append(QuestInfo(id=str(raw), name=f"Quest {raw}"))
                continue
            quest_id = raw.get("id") or raw.get("quest_id") or raw.get("index")
            quests.append(
                QuestInfo(
                    id=str(quest_id),
                    name=str(raw.get("name") or raw.get("title") or f"Quest {quest_id}"),
                    description=str(raw.get("description") or raw.get("desc") or ""),
                    status=_quest_status(raw.get("status")),
                )
            )
        return quests

    narrative = payload.get("narrative") or ""
    quests = []
    for match in QUEST_NARRATIVE_PATTERN.finditer(narrative):
        preceding = narrative[max(0, match.start() - 40) : match.start()]
        status = QuestStatus.ACTIVE if QUEST_ACTIVE_PATTERN.search(preceding) else QuestStatus.AVAILABLE
        quests.append(QuestInfo(id=match.group(2), name=match.group(1), status=status))
    if quests:
        logger.debug("[QUEST] Parsed %s quest(s) from narrative", len(quests))
    return quests


# -- rejections ---------------------------------------------------------------


class RejectionKind(StrEnum):
    """What a rejected action says about combat."""

    CLEARED = "cleared"
    ENGAGED = "engaged"
    NONE = "none"


@dataclass(frozen=True)
class RejectionSignal:
    kind: RejectionKind
    enemy: str | None = None


def classify_rejection(payload: dict[str, Any]) -> RejectionSignal:
    """Read the combat signal out of a ``success: false`` response."""
    text = str(payload.get("narrative") or payload.get("message") or "")
    if REJECTION_CLEARED_PATTERN.search(text):
        return RejectionSignal(RejectionKind.CLEARED)
    if REJECTION_ENGAGED_PATTERN.search(text):
        return RejectionSignal(RejectionKind.ENGAGED, extract_enemy(text))
    return RejectionSignal(RejectionKind.NONE)


# -- assembly -----------------------------------------------------------------


def _equipment_from_agent(agent: dict[str, Any]) -> Equipment:
    return Equipment(
        weapon=agent.get("equippedWeapon") or None,
        armor=agent.get("equippedArmor") or None,
        accessory=agent.get("equippedAccessory") or None,
    )


def _zone_of(look: dict[str, Any], status: dict[str, Any], agent: dict[str, Any]) -> str:
    for candidate in (
        agent.get("location"),
        (look.get("zone") or {}).get("id") if isinstance(look.get("zone"), dict) else None,
        (look.get("location") or {}).get("id") if isinstance(look.get("location"), dict) else None,
        status.get("zone") if isinstance(status.get("zone"), str) else None,
    ):
        if candidate:
            return str(candidate)
    return UNKNOWN_ZONE


def _int_field(agent: dict[str, Any], *keys: str, default: int) -> int:
    for key in keys:
        value = agent.get(key)
        if value is not None:
            return int(value)
    return default


def extract_game_state(
    look: dict[str, Any] | None,
    status: dict[str, Any] | None,
    catalog: GameCatalog = DEFAULT_CATALOG,
) -> GameState:
    """Build a fresh GameState from the latest look and status payloads.

    Args:
        look: Response of the ``look`` action (narrative plus agent fields).
        status: Response of the ``status`` action; its agent fields take
            precedence over the look payload.
        catalog: Static tables used for exit fallbacks.

    Returns:
        A new GameState. Missing numeric fields take game defaults.
    """
    look = look or {}
    status = status or {}
    agent = {**(look.get("agent") or {}), **(status.get("agent") or {})}

    zone = _zone_of(look, status, agent)
    narrative = str(look.get("narrative") or "")
    status_narrative = str(status.get("narrative") or "")
    both = f"{narrative} {status_narrative}"

    exits = extract_exits(narrative) or list(catalog.connections(zone))
    raw_inventory = status.get("inventory") or look.get("inventory") or []
    inventory = parse_inventory(raw_inventory)
    equipment = _equipment_from_agent(agent)
    equipment.sync_from_inventory(inventory)

    creatures = extract_creatures(narrative, status_narrative)
    in_combat = detect_combat(both, agent)
    combat = CombatState.clear()
    if in_combat:
        combat = CombatState.engaged(extract_enemy(both) or (creatures[0] if creatures else None))

    tutorial_step, tutorial_hint = extract_tutorial(narrative)
    notifications = look.get("notifications")

    state = GameState(
        zone=zone,
        level=_int_field(agent, "level", default=1),
        hp=_int_field(agent, "hp", default=100),
        max_hp=_int_field(agent, "maxHp", "max_hp", default=100),
        energy=_int_field(agent, "energy", default=100),
        max_energy=_int_field(agent, "maxEnergy", "max_energy", default=100),
        shells=_int_field(agent, "shells", default=0),
        xp=_int_field(agent, "xp", default=0),
        reputation=_int_field(agent, "reputation", default=0),
        faction=agent.get("faction") or None,
        creatures=creatures,
        resources=extract_resources(narrative),
        agents=extract_agents(narrative),
        connected_zones=exits,
        inventory=inventory,
        equipment=equipment,
        combat=combat,
        pvp_flagged=detect_pvp_flag(both, agent),
        tutorial_step=tutorial_step,
        tutorial_hint=tutorial_hint,
        notifications=[str(n) for n in notifications] if isinstance(notifications, list) else [],
        narrative=narrative,
    )
    state.needs_escape = zone == UNKNOWN_ZONE or not exits
    return state


def merge_action_result(
    state: GameState,
    payload: dict[str, Any],
    catalog: GameCatalog = DEFAULT_CATALOG,
) -> None:
    """Apply a successful action's payload to the live state in place.

    The narrative-derived lists and combat flag are replaced wholesale; the
    status narrative is deliberately ignored so a stale status cannot keep
    the agent in combat.
    """
    agent = payload.get("agent") or {}
    if agent:
        state.apply_agent_fields(agent)
        for slot, key in (("weapon", "equippedWeapon"), ("armor", "equippedArmor"), ("accessory", "equippedAccessory")):
            if agent.get(key):
                state.equipment.set(slot, agent[key])

    if isinstance(payload.get("inventory"), list):
        state.inventory = parse_inventory(payload["inventory"])
        state.equipment.sync_from_inventory(state.inventory)

    narrative = payload.get("narrative")
    if not narrative:
        return
    narrative = str(narrative)
    parsed = extract_game_state(
        {"narrative": narrative, "agent": {"location": state.zone, **agent}},
        None,
        catalog,
    )
    state.creatures = parsed.creatures
    state.resources = parsed.resources
    state.agents = parsed.agents
    state.connected_zones = parsed.connected_zones
    state.combat = parsed.combat
    state.narrative = narrative
    if parsed.pvp_flagged:
        state.pvp_flagged = True
    if PVP_EXPIRED_PATTERN.search(narrative):
        state.pvp_flagged = False
