"""The randomness capability handed to the battle engine."""

from __future__ import annotations

import random
from typing import Protocol


class RandomSource(Protocol):
    """Every random draw the engine makes goes through one of these methods.

    ``random.Random`` satisfies this protocol; tests pass scripted fakes.
    """

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def randint(self, a: int, b: int) -> int: ...

    def randrange(self, stop: int) -> int: ...


def default_random() -> RandomSource:
    """Return a fresh, OS-seeded generator."""
    return random.Random()
