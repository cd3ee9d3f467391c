"""Configuration management for PokeBattle."""

import os
from pathlib import Path

from pydantic import BaseModel


class Config(BaseModel):
    """Application configuration."""

    # Paths
    data_dir: Path = Path.home() / ".pokebattle"
    database_url: str = os.getenv(
        "POKEBATTLE_DATABASE_URL",
        f"sqlite:///{Path.home() / '.pokebattle' / 'pokebattle.db'}",
    )

    # Logging
    log_level: str = os.getenv("POKEBATTLE_LOG_LEVEL", "WARNING")

    # Leveling
    max_level: int = 20
    stat_growth_rate: float = 0.07  # Fraction of the current stat gained per level

    # Battle XP rewards
    xp_participation: int = 50  # Every roster member when the battle ends
    xp_victory: int = 100  # Winning side only
    xp_knockout: int = 75  # Active creature that knocked out an opponent
    xp_survival: int = 25  # Roster members that never fainted

    # Game settings
    default_team_size: int = 3
    max_moves: int = 4

    def ensure_dirs(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


# Global config instance
config = Config()
