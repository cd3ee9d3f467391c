"""Main CLI application for PokeBattle."""

import logging

import typer
from rich.logging import RichHandler

from pokebattle import __version__
from pokebattle.cli.commands import battle
from pokebattle.cli.commands.battle import get_service
from pokebattle.cli.ui.displays import console, display_creature_card, display_creature_list
from pokebattle.core.errors import BattleError
from pokebattle.utils.config import config

# Create main app
app = typer.Typer(
    name="pokebattle",
    help="PokeBattle - turn-based creature battles",
    no_args_is_help=True,
)

# Register sub-commands
app.add_typer(battle.app, name="battle", help="Fight battles against the AI")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """PokeBattle - turn-based creature battles."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command("version")
def version() -> None:
    """Show the version."""
    console.print(f"PokeBattle {__version__}")


@app.command("generate")
def generate(
    count: int = typer.Option(3, "--count", "-n", min=1, max=12, help="How many creatures to roll"),
) -> None:
    """Generate random creatures."""
    creatures = get_service().generate_creatures(count)
    display_creature_list(creatures, title="New Creatures")


@app.command("roster")
def roster() -> None:
    """List every stored creature."""
    display_creature_list(get_service().list_creatures(), title="Creatures")


@app.command("show")
def show(creature_id: str = typer.Argument(..., help="Creature ID")) -> None:
    """Show one creature."""
    try:
        creature = get_service().get_creature(creature_id)
    except BattleError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1) from None
    display_creature_card(creature)


if __name__ == "__main__":
    app()
