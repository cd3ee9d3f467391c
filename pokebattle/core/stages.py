"""Stat stages: in-battle boosts and drops for attack, defense and speed."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

MIN_STAGE = -6
MAX_STAGE = 6

# Indexed by stage + 6
STAGE_MULTIPLIERS: list[float] = [
    0.25, 0.28, 0.33, 0.4, 0.5, 0.66,  # -6 .. -1
    1.0,
    1.5, 2.0, 2.5, 3.0, 3.5, 4.0,  # +1 .. +6
]


class BattleStat(str, Enum):
    """Stats that can be boosted or lowered during battle."""

    ATTACK = "attack"
    DEFENSE = "defense"
    SPEED = "speed"


class StatStages(BaseModel):
    """Current stage of each modifiable stat for an active creature."""

    attack: int = 0
    defense: int = 0
    speed: int = 0

    def get(self, stat: BattleStat) -> int:
        return getattr(self, stat.value)

    def set(self, stat: BattleStat, value: int) -> None:
        setattr(self, stat.value, clamp_stage(value))

    def reset(self) -> None:
        self.attack = 0
        self.defense = 0
        self.speed = 0


def clamp_stage(stage: int) -> int:
    """Clamp a stage to [-6, +6]."""
    return max(MIN_STAGE, min(MAX_STAGE, stage))


def stage_multiplier(stage: int) -> float:
    """Return the stat multiplier for a stage (clamped before lookup)."""
    return STAGE_MULTIPLIERS[clamp_stage(stage) + 6]


_RISE_TEXT = {1: "rose", 2: "rose sharply"}
_FALL_TEXT = {1: "fell", 2: "fell sharply"}


def apply_stage_change(
    stages: StatStages,
    stat: BattleStat,
    delta: int,
    target_name: str,
) -> tuple[int, str]:
    """Move a stat stage by ``delta`` and describe the result.

    Returns (applied_delta, message). The stored stage is clamped, so the
    applied delta may be smaller than requested; when nothing changes the
    message says the stat can't go any higher/lower.
    """
    current = stages.get(stat)
    new = clamp_stage(current + delta)
    applied = new - current
    stages.set(stat, new)

    label = f"{target_name}'s {stat.value}"
    if applied == 0:
        direction = "higher" if delta > 0 else "lower"
        return 0, f"{label} can't go any {direction}!"

    size = abs(applied)
    if applied > 0:
        verb = _RISE_TEXT.get(size, "rose drastically")
    else:
        verb = _FALL_TEXT.get(size, "fell drastically")
    return applied, f"{label} {verb}!"
