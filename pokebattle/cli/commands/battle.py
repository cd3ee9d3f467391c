"""CLI commands for battles against the AI.

The CLI drives ``BattleService`` directly against the local database.
After every player action the AI side takes its turns until it is the
player's move again.
"""

from typing import NoReturn, Optional

import typer

from pokebattle.cli.ui.displays import console, display_battle
from pokebattle.core.errors import BattleError
from pokebattle.core.state import BattleSide, BattleState, Controller
from pokebattle.service import BattleService
from pokebattle.utils.config import config

app = typer.Typer(name="battle", help="Fight battles against the AI")

_service: BattleService | None = None


def get_service() -> BattleService:
    """Return the shared service, creating tables on first use."""
    global _service
    if _service is None:
        _service = BattleService()
        _service.storage.init_db()
    return _service


def _fail(exc: BattleError) -> NoReturn:
    console.print(f"[red]{exc.message}[/red]")
    raise typer.Exit(1)


def _let_ai_play(service: BattleService, state: BattleState) -> BattleState:
    """Run AI moves while it is an AI side's turn."""
    while not state.is_finished:
        acting = state.whose_turn
        if acting is None or state.side(acting).controller != Controller.AI:
            break
        state = service.perform_ai_move(state.battle_id)
    return state


def _show(service: BattleService, battle_id: str) -> None:
    display_battle(service.get_battle_view(battle_id))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("start")
def start_battle(
    team: Optional[list[str]] = typer.Option(
        None, "--team", "-t", help="Creature ID for your team (repeatable). Random if omitted."
    ),
    name: str = typer.Option("Player", "--name", help="Your trainer name"),
    size: int = typer.Option(
        config.default_team_size, "--size", "-s", min=1, max=6, help="Team size when rolling random teams"
    ),
) -> None:
    """Start a battle against a randomly rolled AI team."""
    service = get_service()
    try:
        if team:
            player_ids = list(team)
        else:
            player_ids = [c.id for c in service.generate_creatures(size)]
        opponent_ids = [c.id for c in service.generate_creatures(len(player_ids))]

        state = service.create_battle(
            player_ids,
            opponent_ids,
            side1_name=name,
            side2_name="Rival",
            side2_controller=Controller.AI,
        )
        state = _let_ai_play(service, state)
    except BattleError as exc:
        _fail(exc)

    console.print(f"[bold]Battle started:[/bold] {state.battle_id}")
    _show(service, state.battle_id)


@app.command("show")
def show_battle(battle_id: str = typer.Argument(..., help="Battle ID")) -> None:
    """Show the current state of a battle."""
    service = get_service()
    try:
        _show(service, battle_id)
    except BattleError as exc:
        _fail(exc)


@app.command("move")
def use_move(
    battle_id: str = typer.Argument(..., help="Battle ID"),
    move_index: int = typer.Argument(..., help="Move slot (0-3)"),
) -> None:
    """Use a move with your active creature."""
    service = get_service()
    try:
        state = service.submit_move(battle_id, move_index, side=BattleSide.SIDE1)
        _let_ai_play(service, state)
        _show(service, battle_id)
    except BattleError as exc:
        _fail(exc)


@app.command("switch")
def switch_creature(
    battle_id: str = typer.Argument(..., help="Battle ID"),
    creature_id: str = typer.Argument(..., help="Reserve creature ID"),
) -> None:
    """Send out a reserve creature."""
    service = get_service()
    try:
        state = service.submit_switch(battle_id, creature_id, side=BattleSide.SIDE1)
        _let_ai_play(service, state)
        _show(service, battle_id)
    except BattleError as exc:
        _fail(exc)
