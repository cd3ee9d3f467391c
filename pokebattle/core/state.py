"""Battle state models.

The whole battle is one ``BattleState`` persisted as JSON between actions.
Its ``phase`` is a tagged union so each state machine state carries only
the fields that mean something in it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from pokebattle.core.moves import StatusEffect
from pokebattle.core.stages import StatStages


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BattleSide(str, Enum):
    """One of the two opposing sides."""

    SIDE1 = "side1"
    SIDE2 = "side2"

    @property
    def opponent(self) -> BattleSide:
        return BattleSide.SIDE2 if self is BattleSide.SIDE1 else BattleSide.SIDE1


class Controller(str, Enum):
    """Who picks actions for a side."""

    HUMAN = "human"
    AI = "ai"  # Moves via perform_ai_move, forced switches are automatic


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

class ActivePhase(BaseModel):
    """A move may be submitted by ``whose_turn``."""

    kind: Literal["active"] = "active"
    whose_turn: BattleSide


class SelectingPhase(BaseModel):
    """``side``'s active creature fainted and it must send out a reserve."""

    kind: Literal["selecting"] = "selecting"
    side: BattleSide


class WinPhase(BaseModel):
    """Terminal: ``winner`` knocked out the whole opposing roster."""

    kind: Literal["win"] = "win"
    winner: BattleSide


Phase = Annotated[Union[ActivePhase, SelectingPhase, WinPhase], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Supporting models
# ---------------------------------------------------------------------------

class SideState(BaseModel):
    """One side's roster and the battle-only state of its active creature."""

    trainer_name: str
    controller: Controller = Controller.HUMAN

    roster: list[str]  # Creature ids, in roster order
    active_id: str
    active_hp: int
    fainted: list[str] = Field(default_factory=list)

    # Reset whenever the active creature changes
    stat_stages: StatStages = Field(default_factory=StatStages)
    status: StatusEffect = StatusEffect.NONE
    status_turns: int | None = None  # None = lasts until switched out

    @property
    def reserves(self) -> list[str]:
        """Roster members that could be sent out, in roster order."""
        return [cid for cid in self.roster if cid != self.active_id and cid not in self.fainted]

    @property
    def active_fainted(self) -> bool:
        return self.active_hp <= 0

    @property
    def is_defeated(self) -> bool:
        return all(cid in self.fainted for cid in self.roster)

    def clear_status(self) -> None:
        self.status = StatusEffect.NONE
        self.status_turns = None

    def send_out(self, creature_id: str, max_hp: int) -> None:
        """Make ``creature_id`` the active creature with a clean slate."""
        self.active_id = creature_id
        self.active_hp = max_hp
        self.stat_stages.reset()
        self.clear_status()


class LevelUpEvent(BaseModel):
    """A level gained during the battle, kept for the UI to show later."""

    creature_id: str
    creature_name: str
    old_level: int
    new_level: int
    xp_gained: int


# ---------------------------------------------------------------------------
# Main battle state
# ---------------------------------------------------------------------------

class BattleState(BaseModel):
    """The complete state of a battle between two sides.

    This object is persisted (as JSON) between actions so it can be
    loaded, advanced, and saved by the storage layer.
    """

    # Identity
    battle_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    side1: SideState
    side2: SideState
    phase: Phase

    turn_number: int = 0
    log: list[str] = Field(default_factory=list)
    level_up_events: list[LevelUpEvent] = Field(default_factory=list)

    def side(self, which: BattleSide) -> SideState:
        return self.side1 if which is BattleSide.SIDE1 else self.side2

    @property
    def whose_turn(self) -> BattleSide | None:
        if isinstance(self.phase, ActivePhase):
            return self.phase.whose_turn
        return None

    @property
    def is_finished(self) -> bool:
        return isinstance(self.phase, WinPhase)

    @property
    def winner(self) -> BattleSide | None:
        if isinstance(self.phase, WinPhase):
            return self.phase.winner
        return None

    @property
    def status(self) -> str:
        """Flat status label: active, side1_selecting, side2_wins, ..."""
        if isinstance(self.phase, SelectingPhase):
            return f"{self.phase.side.value}_selecting"
        if isinstance(self.phase, WinPhase):
            return f"{self.phase.winner.value}_wins"
        return "active"

    def creature_ids(self) -> list[str]:
        """Every creature id referenced by either roster."""
        return list(dict.fromkeys(self.side1.roster + self.side2.roster))
