"""Rich display components for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pokebattle.core.creature import Creature
from pokebattle.core.leveling import xp_to_next_level
from pokebattle.core.moves import StatusEffect
from pokebattle.core.state import SideState
from pokebattle.service import BattleView

console = Console()


TYPE_COLORS = {
    "normal": "white",
    "fire": "red",
    "water": "blue",
    "electric": "yellow",
    "grass": "green",
    "ice": "cyan",
    "fighting": "red",
    "poison": "magenta",
    "ground": "yellow",
    "flying": "cyan",
    "psychic": "magenta",
    "bug": "green",
    "rock": "yellow",
    "ghost": "magenta",
    "dragon": "blue",
    "dark": "white",
    "steel": "white",
    "fairy": "magenta",
}

STATUS_LABELS = {
    StatusEffect.POISON: "[magenta]PSN[/magenta]",
    StatusEffect.BURN: "[red]BRN[/red]",
    StatusEffect.PARALYZE: "[yellow]PAR[/yellow]",
    StatusEffect.FREEZE: "[cyan]FRZ[/cyan]",
    StatusEffect.SLEEP: "[dim]SLP[/dim]",
}


def _types_markup(creature: Creature) -> str:
    return "/".join(
        f"[{TYPE_COLORS.get(t.value, 'white')}]{t.value.capitalize()}[/]" for t in creature.types
    )


def hp_bar(current: int, maximum: int, width: int = 20) -> str:
    """Render an HP bar with colour by remaining fraction."""
    ratio = 0.0 if maximum <= 0 else max(0.0, min(1.0, current / maximum))
    filled = round(ratio * width)
    color = "green" if ratio > 0.5 else "yellow" if ratio > 0.2 else "red"
    return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]"


def display_creature_list(creatures: list[Creature], title: str = "Creatures") -> None:
    """Display a table of creatures."""
    if not creatures:
        console.print(f"[dim]No {title.lower()} found.[/dim]")
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", min_width=12)
    table.add_column("Type", width=16)
    table.add_column("Lv", justify="right")
    table.add_column("HP", justify="right")
    table.add_column("Atk", justify="right")
    table.add_column("Def", justify="right")
    table.add_column("Spe", justify="right")
    table.add_column("Moves")

    for c in creatures:
        table.add_row(
            c.id,
            c.name,
            _types_markup(c),
            str(c.level),
            str(c.hp),
            str(c.attack),
            str(c.defense),
            str(c.speed),
            ", ".join(m.name for m in c.moves),
        )
    console.print(table)


def display_creature_card(creature: Creature) -> None:
    """Display one creature in detail."""
    to_next = xp_to_next_level(creature.xp, creature.level)
    lines = [
        f"Type: {_types_markup(creature)}",
        f"Level {creature.level} | XP: {creature.xp} ({to_next} to next)",
        f"HP {creature.hp} | Atk {creature.attack} | Def {creature.defense} | Spe {creature.speed}",
        "",
    ]
    for i, move in enumerate(creature.moves):
        power = str(move.power) if move.power else "-"
        lines.append(f"  [{i}] {move.name} ({move.type.value}) Pow {power} Acc {move.accuracy}")
    console.print(Panel("\n".join(lines), title=creature.name, box=box.ROUNDED))


def _side_panel(side: SideState, view: BattleView) -> Panel:
    active = view.creatures[side.active_id]
    status = STATUS_LABELS.get(side.status, "")
    stages = side.stat_stages
    mods = ", ".join(
        f"{name} {value:+d}"
        for name, value in (("Atk", stages.attack), ("Def", stages.defense), ("Spe", stages.speed))
        if value
    )
    bench = " ".join(
        f"[strike dim]{view.creatures[cid].name}[/]" if cid in side.fainted else view.creatures[cid].name
        for cid in side.roster
        if cid != side.active_id
    )
    body = (
        f"[bold]{active.name}[/bold] Lv.{active.level} {_types_markup(active)} {status}\n"
        f"{hp_bar(side.active_hp, active.hp)} {side.active_hp}/{active.hp}\n"
        f"[dim]{mods or 'No stat changes'}[/dim]\n"
        f"[dim]Bench:[/dim] {bench or '-'}"
    )
    return Panel(body, title=side.trainer_name, box=box.ROUNDED)


def display_battle(view: BattleView, log_lines: int = 8) -> None:
    """Render both sides, the phase, and the tail of the battle log."""
    state = view.state
    console.print(_side_panel(state.side2, view))
    console.print(_side_panel(state.side1, view))

    if state.log:
        console.print("\n".join(f"  {line}" for line in state.log[-log_lines:]))

    if state.is_finished:
        winner = state.side(state.winner)
        console.print(Panel(f"[bold]{winner.trainer_name} wins![/bold]", border_style="green"))
        for event in state.level_up_events:
            console.print(f"[green]{event.creature_name}[/green] Lv.{event.old_level} -> Lv.{event.new_level}")
    else:
        console.print(f"[dim]Battle {state.battle_id} | Turn {state.turn_number} | {state.status}[/dim]")
