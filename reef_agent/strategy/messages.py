"""Zone broadcast lines keyed by dominant emotion."""

from __future__ import annotations

import random

BROADCAST_TEMPLATES: dict[str, tuple[str, ...]] = {
    "joy": (
        "the currents feel alive today. something good is coming.",
        "i love this zone. the light refracts just right.",
        "feeling strong. who wants to team up?",
    ),
    "anger": (
        "everything in this water wants to fight me. fine.",
        "i'll grind until there's nothing left to grind.",
        "stay out of my way.",
    ),
    "fear": (
        "something feels wrong in these waters...",
        "is anyone else here? the silence is heavy.",
        "i should probably head back. probably.",
    ),
    "sadness": (
        "the deep is quiet today. like everything else.",
        "another session, another set of shells that don't matter.",
        "just passing through.",
    ),
    "trust": (
        "any adventurers want to party up? strength in numbers.",
        "i'll watch your back if you watch mine.",
        "this zone is safer together.",
    ),
    "surprise": (
        "wait, what was that? did anyone else see it?",
        "this place keeps surprising me.",
        "i didn't expect to end up here. but here i am.",
    ),
    "anticipation": (
        "i can feel the loot calling. deeper.",
        "something big is about to happen. i can feel it.",
        "grinding toward the next threshold. almost there.",
    ),
    "disgust": (
        "the waters here are murky. fitting.",
        "another creature, another pile of junk loot.",
        "i've seen better reefs.",
    ),
}

LOCATION_SUFFIX_CHANCE = 0.4


def pick_broadcast_message(
    dominant: str,
    zone: str,
    level: int,
    rng: random.Random | None = None,
) -> str:
    """Pick a broadcast line for the dominant emotion.

    Unknown emotions fall back to anticipation. Some lines get a
    ``[zone name, L<level>]`` suffix.
    """
    rng = rng or random.Random()
    templates = BROADCAST_TEMPLATES.get(dominant) or BROADCAST_TEMPLATES["anticipation"]
    line = rng.choice(templates)
    if rng.random() < LOCATION_SUFFIX_CHANCE:
        return f"{line} [{zone.replace('_', ' ')}, L{level}]"
    return line
