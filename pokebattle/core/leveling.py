"""XP thresholds, level lookup and stat growth."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from pydantic import BaseModel

from pokebattle.utils.config import config

if TYPE_CHECKING:
    from pokebattle.core.creature import Creature

# Total XP required to reach each level (index 0 = level 1)
XP_TABLE: list[int] = [
    0,      # Level 1
    100,    # Level 2
    250,    # Level 3
    450,    # Level 4
    700,    # Level 5
    1000,   # Level 6
    1350,   # Level 7
    1750,   # Level 8
    2200,   # Level 9
    2700,   # Level 10
    3250,   # Level 11
    3850,   # Level 12
    4500,   # Level 13
    5200,   # Level 14
    5950,   # Level 15
    6750,   # Level 16
    7600,   # Level 17
    8500,   # Level 18
    9450,   # Level 19
    10450,  # Level 20
]

GROWING_STATS = ("hp", "attack", "defense", "speed")


class LevelUpResult(BaseModel):
    """Outcome of awarding XP to one creature."""

    creature_id: str
    leveled_up: bool
    old_level: int
    new_level: int


def calculate_level(xp: int) -> int:
    """Return the level a creature with ``xp`` total XP is at."""
    for level in range(len(XP_TABLE), 0, -1):
        if xp >= XP_TABLE[level - 1]:
            return min(level, config.max_level)
    return 1


def xp_for_level(level: int) -> int:
    """Total XP required to reach a level."""
    level = max(1, min(level, len(XP_TABLE)))
    return XP_TABLE[level - 1]


def xp_to_next_level(current_xp: int, current_level: int) -> int:
    """XP still needed for the next level (0 at max level)."""
    if current_level >= config.max_level:
        return 0
    return max(0, XP_TABLE[current_level] - current_xp)


def calculate_stat_increase(stat: int, old_level: int, new_level: int) -> int:
    """Points a stat gains going from ``old_level`` to ``new_level``.

    Each level adds a fixed fraction of the current stat value, minimum 1.
    """
    levels_gained = new_level - old_level
    if levels_gained <= 0:
        return 0
    per_level = max(1, math.floor(stat * config.stat_growth_rate))
    return per_level * levels_gained


def apply_experience(creature: Creature, amount: int) -> LevelUpResult:
    """Add XP to a creature, recompute its level and grow its stats.

    Mutates ``creature`` in place.
    """
    old_level = creature.level
    creature.xp += max(0, amount)
    new_level = calculate_level(creature.xp)

    if new_level > old_level:
        for stat in GROWING_STATS:
            current = getattr(creature, stat)
            setattr(creature, stat, current + calculate_stat_increase(current, old_level, new_level))
        creature.level = new_level

    return LevelUpResult(
        creature_id=creature.id,
        leveled_up=new_level > old_level,
        old_level=old_level,
        new_level=max(old_level, new_level),
    )
