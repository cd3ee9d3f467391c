"""Status conditions: move gating, infliction and the end-of-turn tick."""

from __future__ import annotations

from pokebattle.core.moves import StatusEffect
from pokebattle.core.random_source import RandomSource
from pokebattle.core.state import SideState

FREEZE_THAW_CHANCE = 0.2
FULL_PARALYSIS_CHANCE = 0.25

INFLICT_MESSAGES: dict[StatusEffect, str] = {
    StatusEffect.POISON: "{name} was poisoned!",
    StatusEffect.BURN: "{name} was burned!",
    StatusEffect.PARALYZE: "{name} is paralyzed! It may be unable to move!",
    StatusEffect.FREEZE: "{name} was frozen solid!",
    StatusEffect.SLEEP: "{name} fell asleep!",
}


def roll_duration(status: StatusEffect, rng: RandomSource) -> int | None:
    """Turns a new status lasts. None means until the creature switches out."""
    if status == StatusEffect.FREEZE:
        return rng.randint(2, 4)
    if status == StatusEffect.SLEEP:
        return rng.randint(1, 3)
    return None


def check_can_move(side: SideState, name: str, rng: RandomSource) -> tuple[bool, list[str]]:
    """Run the pre-move status gate for a side's active creature.

    Returns (can_move, log lines).
    """
    if side.status == StatusEffect.FREEZE:
        if rng.random() < FREEZE_THAW_CHANCE:
            side.clear_status()
            return True, [f"{name} thawed out!"]
        return False, [f"{name} is frozen solid!"]

    if side.status == StatusEffect.SLEEP:
        if side.status_turns is None or side.status_turns <= 1:
            side.clear_status()
            return True, [f"{name} woke up!"]
        return False, [f"{name} is fast asleep!"]

    if side.status == StatusEffect.PARALYZE:
        if rng.random() < FULL_PARALYSIS_CHANCE:
            return False, [f"{name} is paralyzed and can't move!"]

    return True, []


def inflict_status(
    side: SideState,
    status: StatusEffect,
    chance: int,
    name: str,
    rng: RandomSource,
) -> str | None:
    """Roll ``chance`` to afflict a side's active creature.

    Statuses never stack: an afflicted creature keeps its current one.
    Returns the log line, or None when the roll failed.
    """
    if chance < 100 and rng.random() * 100 >= chance:
        return None
    if side.status != StatusEffect.NONE:
        return f"But {name} is already afflicted..."

    side.status = status
    side.status_turns = roll_duration(status, rng)
    return INFLICT_MESSAGES[status].format(name=name)


def end_of_turn(side: SideState, name: str, max_hp: int) -> list[str]:
    """Apply end-of-turn status damage and count down timed statuses."""
    if side.active_fainted:
        return []

    messages: list[str] = []
    if side.status in (StatusEffect.POISON, StatusEffect.BURN):
        dmg = max(1, max_hp // 16)
        side.active_hp = max(0, side.active_hp - dmg)
        if side.status == StatusEffect.POISON:
            messages.append(f"{name} was hurt by poison! (-{dmg} HP)")
        else:
            messages.append(f"{name} was hurt by its burn! (-{dmg} HP)")

    elif side.status in (StatusEffect.FREEZE, StatusEffect.SLEEP) and side.status_turns is not None:
        side.status_turns -= 1
        if side.status_turns <= 0:
            woke = side.status == StatusEffect.SLEEP
            side.clear_status()
            messages.append(f"{name} woke up!" if woke else f"{name} thawed out!")

    return messages
