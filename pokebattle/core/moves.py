"""Move model, type effectiveness chart, and damage calculation."""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from pokebattle.core.random_source import RandomSource
from pokebattle.core.stages import BattleStat, StatStages, stage_multiplier


class PokemonType(str, Enum):
    """All 18 elemental types."""

    NORMAL = "normal"
    FIRE = "fire"
    WATER = "water"
    ELECTRIC = "electric"
    GRASS = "grass"
    ICE = "ice"
    FIGHTING = "fighting"
    POISON = "poison"
    GROUND = "ground"
    FLYING = "flying"
    PSYCHIC = "psychic"
    BUG = "bug"
    ROCK = "rock"
    GHOST = "ghost"
    DRAGON = "dragon"
    DARK = "dark"
    STEEL = "steel"
    FAIRY = "fairy"


class StatusEffect(str, Enum):
    """Battle status conditions."""

    NONE = "none"
    POISON = "poison"
    BURN = "burn"
    PARALYZE = "paralyze"
    FREEZE = "freeze"
    SLEEP = "sleep"


class EffectTarget(str, Enum):
    """Who a move effect lands on."""

    SELF = "self"
    OPPONENT = "opponent"


# ---------------------------------------------------------------------------
# Type effectiveness chart
# ---------------------------------------------------------------------------
# TYPE_CHART[attacking_type] = {"strong": [...], "weak": [...], "immune": [...]}
# strong = x2, weak = x0.5, immune = x0, anything unlisted = x1.
# Some pairs are listed twice (Electric -> Ground is both weak and immune);
# lookups check strong, then immune, then weak.
# ---------------------------------------------------------------------------

# fmt: off
TYPE_CHART: dict[str, dict[str, list[str]]] = {
    "fire": {"strong": ["grass", "ice", "bug", "steel"], "weak": ["water", "ground", "rock"], "immune": []},
    "water": {"strong": ["fire", "ground", "rock"], "weak": ["grass", "electric"], "immune": []},
    "grass": {"strong": ["water", "ground", "rock"], "weak": ["fire", "ice", "poison", "flying", "bug"], "immune": []},
    "electric": {"strong": ["water", "flying"], "weak": ["ground"], "immune": ["ground"]},
    "psychic": {"strong": ["fighting", "poison"], "weak": ["bug", "ghost", "dark"], "immune": ["dark"]},
    "ice": {"strong": ["grass", "ground", "flying", "dragon"], "weak": ["fire", "fighting", "rock", "steel"], "immune": []},
    "dragon": {"strong": ["dragon"], "weak": ["ice", "dragon", "fairy"], "immune": ["fairy"]},
    "fighting": {"strong": ["normal", "ice", "rock", "dark", "steel"], "weak": ["flying", "psychic", "fairy"], "immune": ["ghost"]},
    "flying": {"strong": ["grass", "fighting", "bug"], "weak": ["electric", "ice", "rock"], "immune": ["ground"]},
    "poison": {"strong": ["grass", "fairy"], "weak": ["ground", "psychic"], "immune": []},
    "ground": {"strong": ["fire", "electric", "poison", "rock", "steel"], "weak": ["water", "grass", "ice"], "immune": ["flying"]},
    "rock": {"strong": ["fire", "ice", "flying", "bug"], "weak": ["water", "grass", "fighting", "ground", "steel"], "immune": []},
    "bug": {"strong": ["grass", "psychic", "dark"], "weak": ["fire", "flying", "rock"], "immune": []},
    "ghost": {"strong": ["psychic", "ghost"], "weak": ["ghost", "dark"], "immune": ["normal", "fighting"]},
    "steel": {"strong": ["ice", "rock", "fairy"], "weak": ["fire", "fighting", "ground"], "immune": ["poison"]},
    "dark": {"strong": ["psychic", "ghost"], "weak": ["fighting", "bug", "fairy"], "immune": ["psychic"]},
    "fairy": {"strong": ["fighting", "dragon", "dark"], "weak": ["poison", "steel"], "immune": []},
    "normal": {"strong": [], "weak": ["fighting"], "immune": ["ghost"]},
}
# fmt: on


def _type_value(t: str | PokemonType) -> str:
    return t.value if isinstance(t, PokemonType) else t.lower()


def get_single_type_effectiveness(move_type: str | PokemonType, defender_type: str | PokemonType) -> float:
    """Multiplier of one attacking type against one defending type."""
    matchups = TYPE_CHART.get(_type_value(move_type))
    if matchups is None:
        return 1.0
    dfn = _type_value(defender_type)
    if dfn in matchups["strong"]:
        return 2.0
    if dfn in matchups["immune"]:
        return 0.0
    if dfn in matchups["weak"]:
        return 0.5
    return 1.0


def get_type_effectiveness(move_type: str | PokemonType, defender_types: list[str] | list[PokemonType]) -> float:
    """Calculate combined type effectiveness multiplier.

    Multipliers from each defending type are multiplied together, so results
    can be 0x, 0.25x, 0.5x, 1x, 2x, or 4x.
    """
    mult = 1.0
    for dfn in defender_types:
        mult *= get_single_type_effectiveness(move_type, dfn)
    return mult


def effectiveness_message(effectiveness: float) -> str:
    """Suffix appended to the damage log line."""
    if effectiveness == 0:
        return " It has no effect!"
    if effectiveness > 1:
        return " It's super effective!"
    if effectiveness < 1:
        return " It's not very effective..."
    return ""


# ---------------------------------------------------------------------------
# Move effects
# ---------------------------------------------------------------------------

class StatBoost(BaseModel):
    """Raise a stat stage of the target."""

    kind: Literal["stat_boost"] = "stat_boost"
    target: EffectTarget = EffectTarget.SELF
    stat: BattleStat
    stages: int = Field(default=1, ge=-6, le=6)

    @property
    def delta(self) -> int:
        return abs(self.stages)


class StatReduction(BaseModel):
    """Lower a stat stage of the target."""

    kind: Literal["stat_reduction"] = "stat_reduction"
    target: EffectTarget = EffectTarget.OPPONENT
    stat: BattleStat
    stages: int = Field(default=-1, ge=-6, le=6)

    @property
    def delta(self) -> int:
        return -abs(self.stages)


class StatusInflict(BaseModel):
    """Chance to afflict the target with a status condition."""

    kind: Literal["status_effect"] = "status_effect"
    target: EffectTarget = EffectTarget.OPPONENT
    status: StatusEffect
    chance: int = Field(default=100, ge=0, le=100)


Effect = Annotated[Union[StatBoost, StatReduction, StatusInflict], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Move model
# ---------------------------------------------------------------------------

class Move(BaseModel):
    """A creature move."""

    name: str
    type: PokemonType
    power: int = Field(default=0, ge=0)  # 0 = status move, no damage
    accuracy: int = Field(default=100, ge=0, le=100)
    effect: Effect | None = None

    @property
    def is_damaging(self) -> bool:
        return self.power > 0


# ---------------------------------------------------------------------------
# Damage calculation
# ---------------------------------------------------------------------------

def calculate_damage(
    move: Move,
    attack_stat: int,
    defense_stat: int,
    defender_types: list[PokemonType],
    attacker_stages: StatStages,
    defender_stages: StatStages,
    attacker_status: StatusEffect,
    rng: RandomSource,
) -> int:
    """Calculate the damage of a damaging move.

    Formula:
        attack  = attack_stat * stage(attack), halved when burned
        defense = defense_stat * stage(defense)
        base    = floor((attack / defense) * power * effectiveness * 1.5 / 5)
        damage  = floor(base * (1 + uniform(-0.2, 0.2))), at least 1

    Immune matchups must be filtered out by the caller: this function never
    returns less than 1.
    """
    effectiveness = get_type_effectiveness(move.type, defender_types)

    modified_attack = attack_stat * stage_multiplier(attacker_stages.attack)
    if attacker_status == StatusEffect.BURN:
        modified_attack *= 0.5
    modified_defense = max(1, defense_stat) * stage_multiplier(defender_stages.defense)

    base = math.floor(((modified_attack / modified_defense) * move.power * effectiveness * 1.5) / 5)

    variance = rng.uniform(-0.2, 0.2)
    return max(1, math.floor(base * (1 + variance)))


# ---------------------------------------------------------------------------
# Move pool
# ---------------------------------------------------------------------------
# (name, type, power, accuracy, effect)
# ---------------------------------------------------------------------------

MOVE_POOL: list[tuple[str, str, int, int, Effect | None]] = [
    ("Flame Burst", "fire", 70, 100, StatusInflict(status=StatusEffect.BURN, chance=10)),
    ("Hydro Pump", "water", 110, 80, None),
    ("Vine Whip", "grass", 45, 100, None),
    ("Thunder", "electric", 110, 70, StatusInflict(status=StatusEffect.PARALYZE, chance=30)),
    ("Psychic", "psychic", 90, 100, None),
    ("Ice Beam", "ice", 90, 100, StatusInflict(status=StatusEffect.FREEZE, chance=10)),
    ("Dragon Pulse", "dragon", 85, 100, None),
    ("Close Combat", "fighting", 120, 100, None),
    ("Air Slash", "flying", 75, 95, None),
    ("Sludge Bomb", "poison", 90, 100, StatusInflict(status=StatusEffect.POISON, chance=30)),
    ("Earthquake", "ground", 100, 100, None),
    ("Rock Slide", "rock", 75, 90, None),
    ("Quick Attack", "normal", 40, 100, None),
    ("Shadow Ball", "ghost", 80, 100, None),
    ("Bug Bite", "bug", 60, 100, None),
    ("Steel Wing", "steel", 70, 90, StatBoost(stat=BattleStat.DEFENSE, stages=1)),
    ("Dark Pulse", "dark", 80, 100, None),
    ("Moonblast", "fairy", 95, 100, StatReduction(stat=BattleStat.ATTACK, stages=-1)),
]

STATUS_MOVE_POOL: list[tuple[str, str, int, int, Effect | None]] = [
    ("Growl", "normal", 0, 100, StatReduction(stat=BattleStat.ATTACK, stages=-1)),
    ("Tail Whip", "normal", 0, 100, StatReduction(stat=BattleStat.DEFENSE, stages=-1)),
    ("Swords Dance", "normal", 0, 100, StatBoost(stat=BattleStat.ATTACK, stages=2)),
    ("Iron Defense", "steel", 0, 100, StatBoost(stat=BattleStat.DEFENSE, stages=2)),
    ("Agility", "psychic", 0, 100, StatBoost(stat=BattleStat.SPEED, stages=2)),
    ("Toxic", "poison", 0, 90, StatusInflict(status=StatusEffect.POISON)),
    ("Thunder Wave", "electric", 0, 90, StatusInflict(status=StatusEffect.PARALYZE)),
    ("Will-O-Wisp", "fire", 0, 85, StatusInflict(status=StatusEffect.BURN)),
    ("Hypnosis", "psychic", 0, 60, StatusInflict(status=StatusEffect.SLEEP)),
]


def _move_from_tuple(data: tuple[str, str, int, int, Effect | None]) -> Move:
    """Create a Move from a pool tuple."""
    name, mtype, power, accuracy, effect = data
    return Move(
        name=name,
        type=PokemonType(mtype),
        power=power,
        accuracy=accuracy,
        effect=effect.model_copy() if effect is not None else None,
    )


def generate_moveset(types: list[PokemonType], rng: RandomSource, max_moves: int = 4) -> list[Move]:
    """Generate 2 to ``max_moves`` distinct moves for a creature.

    At least one damaging move matches one of the creature's types; a Normal
    move is used when the pool has none of its types.
    """
    type_values = {_type_value(t) for t in types}
    count = rng.randint(2, max_moves)

    type_moves = [m for m in MOVE_POOL if m[1] in type_values]
    other_moves = [m for m in MOVE_POOL if m[1] not in type_values] + STATUS_MOVE_POOL

    if type_moves:
        first = type_moves[rng.randrange(len(type_moves))]
    else:
        normal_moves = [m for m in MOVE_POOL if m[1] == "normal"]
        first = normal_moves[rng.randrange(len(normal_moves))]

    selected = [first]
    available = type_moves + other_moves
    while len(selected) < count:
        candidate = available[rng.randrange(len(available))]
        if all(candidate[0] != s[0] for s in selected):
            selected.append(candidate)

    return [_move_from_tuple(m) for m in selected]
