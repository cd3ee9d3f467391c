"""Turn-based battle state machine.

One call resolves one action:
    create -> (move | switch)* -> win

Every entry point is pure over a snapshot: it validates the action, copies
the incoming ``BattleState``, advances the copy, and returns it together
with the XP awards the caller must hand to the experience awarder. A
rejected action raises before anything is copied, so the input state is
never modified.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from pokebattle.core.creature import Creature
from pokebattle.core.errors import InvalidAction, NotFound, TerminalBattle
from pokebattle.core.moves import (
    EffectTarget,
    Move,
    StatBoost,
    StatReduction,
    StatusInflict,
    calculate_damage,
    effectiveness_message,
    get_type_effectiveness,
)
from pokebattle.core.random_source import RandomSource
from pokebattle.core.stages import apply_stage_change
from pokebattle.core.state import (
    ActivePhase,
    BattleSide,
    BattleState,
    Controller,
    SelectingPhase,
    SideState,
    WinPhase,
)
from pokebattle.core.status import check_can_move, end_of_turn, inflict_status
from pokebattle.utils.config import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class XpAward(BaseModel):
    """XP the experience awarder should give one creature."""

    creature_id: str
    amount: int
    reason: str  # "knockout" or "battle_end"


class TurnOutcome(BaseModel):
    """The new state after one accepted action."""

    state: BattleState
    xp_awards: list[XpAward] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Turn resolution
# ---------------------------------------------------------------------------

class _Turn:
    """Mutable working set for resolving one action on a copied state."""

    def __init__(self, state: BattleState, creatures: dict[str, Creature], rng: RandomSource | None):
        self.state = state
        self.creatures = creatures
        self.rng = rng
        self.awards: list[XpAward] = []
        self.next_turn: BattleSide | None = None

    def creature(self, creature_id: str) -> Creature:
        try:
            return self.creatures[creature_id]
        except KeyError:
            raise NotFound(f"Creature {creature_id} not found") from None

    def log(self, message: str) -> None:
        self.state.log.append(message)

    # -- moves --------------------------------------------------------------

    def run_move(self, side: BattleSide, move_index: int) -> None:
        state = self.state
        state.turn_number += 1
        self.next_turn = side.opponent

        atk_side = state.side(side)
        attacker = self.creature(atk_side.active_id)
        move = attacker.moves[move_index]

        can_move, messages = check_can_move(atk_side, attacker.name, self.rng)
        for message in messages:
            self.log(message)
        if can_move:
            self._execute_move(side, attacker, move)

        if not state.is_finished:
            self._end_of_turn()
        self._route()

    def _execute_move(self, side: BattleSide, attacker: Creature, move: Move) -> None:
        atk_side = self.state.side(side)
        def_side = self.state.side(side.opponent)
        defender = self.creature(def_side.active_id)

        # Accuracy: a miss skips damage and effects alike
        if self.rng.random() * 100 > move.accuracy:
            self.log(f"{attacker.name} used {move.name}, but it missed!")
            return

        if move.is_damaging:
            effectiveness = get_type_effectiveness(move.type, defender.types)
            if effectiveness == 0:
                self.log(f"{attacker.name} used {move.name}!{effectiveness_message(0)}")
            else:
                damage = calculate_damage(
                    move=move,
                    attack_stat=attacker.attack,
                    defense_stat=defender.defense,
                    defender_types=defender.types,
                    attacker_stages=atk_side.stat_stages,
                    defender_stages=def_side.stat_stages,
                    attacker_status=atk_side.status,
                    rng=self.rng,
                )
                def_side.active_hp = max(0, def_side.active_hp - damage)
                self.log(
                    f"{attacker.name} used {move.name}! It dealt {damage} damage."
                    f"{effectiveness_message(effectiveness)}"
                )
        else:
            self.log(f"{attacker.name} used {move.name}!")

        if move.effect is not None:
            self._apply_effect(side, attacker, defender, move)

        if def_side.active_fainted:
            self._faint(side.opponent)

    def _apply_effect(self, side: BattleSide, attacker: Creature, defender: Creature, move: Move) -> None:
        effect = move.effect
        if effect.target == EffectTarget.SELF:
            target_state, target_name = self.state.side(side), attacker.name
        else:
            target_state, target_name = self.state.side(side.opponent), defender.name

        # Nothing lands on a creature that is already down
        if target_state.active_fainted:
            return

        if isinstance(effect, (StatBoost, StatReduction)):
            _, message = apply_stage_change(target_state.stat_stages, effect.stat, effect.delta, target_name)
            self.log(message)
        elif isinstance(effect, StatusInflict):
            message = inflict_status(target_state, effect.status, effect.chance, target_name, self.rng)
            if message:
                self.log(message)

    def _end_of_turn(self) -> None:
        for which in (BattleSide.SIDE1, BattleSide.SIDE2):
            side_state = self.state.side(which)
            if side_state.active_fainted:
                continue
            creature = self.creature(side_state.active_id)
            for message in end_of_turn(side_state, creature.name, creature.hp):
                self.log(message)

        # Side 1 is resolved first when both go down together
        for which in (BattleSide.SIDE1, BattleSide.SIDE2):
            side_state = self.state.side(which)
            if self.state.is_finished:
                break
            if side_state.active_fainted and side_state.active_id not in side_state.fainted:
                self._faint(which)

    # -- fainting -----------------------------------------------------------

    def _faint(self, which: BattleSide) -> None:
        side_state = self.state.side(which)
        creature = self.creature(side_state.active_id)
        self.log(f"{creature.name} fainted!")
        if side_state.active_id not in side_state.fainted:
            side_state.fainted.append(side_state.active_id)

        opponent = self.state.side(which.opponent)
        if not opponent.active_fainted:
            self.awards.append(
                XpAward(creature_id=opponent.active_id, amount=config.xp_knockout, reason="knockout")
            )

        if side_state.is_defeated:
            self._finish(which.opponent)
        elif side_state.controller == Controller.AI:
            self._send_out(which, side_state.reserves[0])
            self.next_turn = which

    def _finish(self, winner: BattleSide) -> None:
        self.state.phase = WinPhase(winner=winner)
        self.log(f"{self.state.side(winner).trainer_name} wins the battle!")

        for which in (BattleSide.SIDE1, BattleSide.SIDE2):
            side_state = self.state.side(which)
            for creature_id in side_state.roster:
                amount = config.xp_participation
                if which is winner:
                    amount += config.xp_victory
                if creature_id not in side_state.fainted:
                    amount += config.xp_survival
                self.awards.append(XpAward(creature_id=creature_id, amount=amount, reason="battle_end"))

    # -- switching ----------------------------------------------------------

    def _send_out(self, which: BattleSide, creature_id: str) -> None:
        side_state = self.state.side(which)
        creature = self.creature(creature_id)
        side_state.send_out(creature_id, creature.hp)
        self.log(f"{side_state.trainer_name} sent out {creature.name}!")

    def run_switch(self, side: BattleSide, creature_id: str, voluntary: bool) -> None:
        if voluntary:
            self.state.turn_number += 1
            self.next_turn = side.opponent
        else:
            self.next_turn = side
        self._send_out(side, creature_id)
        self._route()

    def _route(self) -> None:
        """Pick the next phase once the action has fully resolved."""
        if self.state.is_finished:
            return
        for which in (BattleSide.SIDE1, BattleSide.SIDE2):
            if self.state.side(which).active_fainted:
                self.state.phase = SelectingPhase(side=which)
                return
        self.state.phase = ActivePhase(whose_turn=self.next_turn)


# ---------------------------------------------------------------------------
# Public engine
# ---------------------------------------------------------------------------

def _ensure_not_finished(state: BattleState) -> None:
    if state.is_finished:
        raise TerminalBattle(f"Battle {state.battle_id} is over: {state.status}")


class BattleEngine:
    """Resolves actions against a battle.

    Stateless -- every method takes a BattleState plus the creature records
    it references and returns a new state.
    """

    @staticmethod
    def create_battle(
        side1_roster: list[Creature],
        side2_roster: list[Creature],
        side1_active: str | None = None,
        side2_active: str | None = None,
        side1_name: str = "Player",
        side2_name: str = "Opponent",
        side1_controller: Controller = Controller.HUMAN,
        side2_controller: Controller = Controller.AI,
    ) -> BattleState:
        """Start a battle. The faster active creature moves first, ties go to side 1."""
        if not side1_roster or not side2_roster:
            raise InvalidAction("Both sides need at least one creature")

        ids1 = [c.id for c in side1_roster]
        ids2 = [c.id for c in side2_roster]
        for ids in (ids1, ids2):
            if len(set(ids)) != len(ids):
                raise InvalidAction("A roster cannot list the same creature twice")
        shared = set(ids1) & set(ids2)
        if shared:
            raise InvalidAction(f"Creature {sorted(shared)[0]} cannot fight on both sides")

        def _pick(roster: list[Creature], active_id: str | None) -> Creature:
            if active_id is None:
                return roster[0]
            for creature in roster:
                if creature.id == active_id:
                    return creature
            raise InvalidAction(f"Creature {active_id} is not on the roster")

        active1 = _pick(side1_roster, side1_active)
        active2 = _pick(side2_roster, side2_active)
        first = BattleSide.SIDE1 if active1.speed >= active2.speed else BattleSide.SIDE2

        state = BattleState(
            side1=SideState(
                trainer_name=side1_name,
                controller=side1_controller,
                roster=ids1,
                active_id=active1.id,
                active_hp=active1.hp,
            ),
            side2=SideState(
                trainer_name=side2_name,
                controller=side2_controller,
                roster=ids2,
                active_id=active2.id,
                active_hp=active2.hp,
            ),
            phase=ActivePhase(whose_turn=first),
            log=[f"Battle begins! {active1.name} vs {active2.name}"],
        )
        logger.debug("Created battle %s, %s moves first", state.battle_id, first.value)
        return state

    @staticmethod
    def submit_move(
        state: BattleState,
        creatures: dict[str, Creature],
        move_index: int,
        rng: RandomSource,
        side: BattleSide | None = None,
    ) -> TurnOutcome:
        """Resolve one move by the side whose turn it is."""
        _ensure_not_finished(state)
        if not isinstance(state.phase, ActivePhase):
            raise InvalidAction(f"Waiting for {state.phase.side.value} to send out a creature")
        acting = state.phase.whose_turn
        if side is not None and side != acting:
            raise InvalidAction(f"It is not {side.value}'s turn")

        attacker_id = state.side(acting).active_id
        if attacker_id not in creatures:
            raise NotFound(f"Creature {attacker_id} not found")
        moves = creatures[attacker_id].moves
        if not 0 <= move_index < len(moves):
            raise InvalidAction(f"Invalid move index {move_index}")

        turn = _Turn(state.model_copy(deep=True), creatures, rng)
        turn.run_move(acting, move_index)
        return TurnOutcome(state=turn.state, xp_awards=turn.awards)

    @staticmethod
    def submit_switch(
        state: BattleState,
        creatures: dict[str, Creature],
        creature_id: str,
        side: BattleSide | None = None,
    ) -> TurnOutcome:
        """Send out a reserve.

        Forced when the side is selecting a replacement (it then moves next);
        voluntary when it is that side's turn (the turn passes).
        """
        _ensure_not_finished(state)
        if isinstance(state.phase, SelectingPhase):
            acting, voluntary = state.phase.side, False
        else:
            acting, voluntary = state.phase.whose_turn, True
        if side is not None and side != acting:
            raise InvalidAction(f"{side.value} cannot switch right now")

        side_state = state.side(acting)
        if creature_id not in side_state.roster:
            raise InvalidAction(f"Creature {creature_id} is not on {side_state.trainer_name}'s roster")
        if creature_id in side_state.fainted:
            raise InvalidAction(f"Creature {creature_id} has fainted")
        if creature_id == side_state.active_id:
            raise InvalidAction(f"Creature {creature_id} is already in battle")

        turn = _Turn(state.model_copy(deep=True), creatures, None)
        turn.run_switch(acting, creature_id, voluntary)
        return TurnOutcome(state=turn.state, xp_awards=turn.awards)

    @staticmethod
    def perform_ai_move(
        state: BattleState,
        creatures: dict[str, Creature],
        rng: RandomSource,
    ) -> TurnOutcome:
        """Pick a uniformly random move for the AI side whose turn it is.

        Does nothing when it is not an AI-controlled side's turn.
        """
        _ensure_not_finished(state)
        acting = state.whose_turn
        if acting is None or state.side(acting).controller != Controller.AI:
            return TurnOutcome(state=state)

        attacker_id = state.side(acting).active_id
        if attacker_id not in creatures:
            raise NotFound(f"Creature {attacker_id} not found")
        move_index = rng.randrange(len(creatures[attacker_id].moves))
        return BattleEngine.submit_move(state, creatures, move_index, rng, side=acting)
