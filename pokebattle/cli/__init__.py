"""Command line interface for PokeBattle."""
