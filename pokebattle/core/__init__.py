"""Battle rules: types, moves, status, leveling and turn resolution."""
