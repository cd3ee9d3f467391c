"""Creature model and random creature generation."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field, model_validator

from pokebattle.core.leveling import calculate_level
from pokebattle.core.moves import Move, PokemonType, generate_moveset
from pokebattle.core.random_source import RandomSource, default_random
from pokebattle.utils.config import config


class Creature(BaseModel):
    """A creature's reference data.

    Only leveling changes a creature once it exists: stats grow when the
    level computed from its XP goes up.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str

    # Types (1-2, order irrelevant to the rules)
    types: list[PokemonType] = Field(min_length=1, max_length=2)

    # Stats
    hp: int = Field(gt=0)  # Max HP
    attack: int = Field(gt=0)
    defense: int = Field(gt=0)
    speed: int = Field(gt=0)

    moves: list[Move] = Field(min_length=1, max_length=4)

    # Progression
    level: int = Field(default=1, ge=1, le=config.max_level)
    xp: int = Field(default=0, ge=0)

    description: str = ""
    image_url: str | None = None  # Portrait reference, opaque to the engine

    @model_validator(mode="after")
    def level_matches_xp(self) -> Creature:
        expected = calculate_level(self.xp)
        if self.level != expected:
            raise ValueError(f"Level {self.level} does not match {self.xp} XP (expected level {expected})")
        return self


# ---------------------------------------------------------------------------
# Random generation
# ---------------------------------------------------------------------------

NAME_ROOTS = [
    "Blaze", "Aqua", "Flora", "Volt", "Psy", "Frost", "Draco", "Punch", "Wind",
    "Venom", "Earth", "Stone", "Speed", "Phantom", "Steel", "Shadow", "Sparkle", "Thunder",
    "Crystal", "Inferno", "Tidal", "Jungle", "Storm", "Mystic", "Glacier", "Cosmos",
    "Crimson", "Azure", "Emerald", "Golden", "Silver", "Obsidian", "Prismatic", "Nebula",
]

NAME_SUFFIXES = [
    "rix", "saur", "axis", "wave", "bite", "nus", "claw", "storm", "fang", "guard",
    "bug", "mis", "crest", "maw", "wings", "ton", "fury", "blade", "heart", "soul",
    "fire", "flow", "wing", "tail", "horn", "eye", "fist", "strike", "roar",
    "whisper", "echo", "spark", "flame", "frost", "glow", "shine", "burst", "dash",
]


def generate_random_creature(rng: RandomSource | None = None) -> Creature:
    """Roll a brand-new level 1 creature.

    One type, with a 30% chance of a second distinct type; hp 80-129,
    attack 60-99, defense 50-89, speed 40-99; 2-4 moves.
    """
    rng = rng or default_random()
    all_types = list(PokemonType)

    name = NAME_ROOTS[rng.randrange(len(NAME_ROOTS))] + NAME_SUFFIXES[rng.randrange(len(NAME_SUFFIXES))]

    primary = all_types[rng.randrange(len(all_types))]
    types = [primary]
    if rng.random() > 0.7:
        others = [t for t in all_types if t != primary]
        types.append(others[rng.randrange(len(others))])

    type_label = "/".join(t.value.capitalize() for t in types)
    return Creature(
        name=name,
        types=types,
        hp=rng.randint(80, 129),
        attack=rng.randint(60, 99),
        defense=rng.randint(50, 89),
        speed=rng.randint(40, 99),
        moves=generate_moveset(types, rng, config.max_moves),
        description=f"A mysterious {type_label} type creature with incredible power.",
    )


def generate_team(size: int = 3, rng: RandomSource | None = None) -> list[Creature]:
    """Roll ``size`` random creatures."""
    rng = rng or default_random()
    return [generate_random_creature(rng) for _ in range(size)]
