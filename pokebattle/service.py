"""Battle service: the boundary between the pure engine and storage.

Each operation fetches the battle and every creature it references up
front, runs the engine once, hands the resulting XP awards to the
experience awarder, and writes everything back in a single commit while
holding the battle's lock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ValidationError
from sqlmodel import Session

from pokebattle.core.battle import BattleEngine, TurnOutcome
from pokebattle.core.creature import Creature, generate_team
from pokebattle.core.errors import NotFound
from pokebattle.core.leveling import LevelUpResult, apply_experience
from pokebattle.core.random_source import RandomSource, default_random
from pokebattle.core.state import BattleSide, BattleState, Controller, LevelUpEvent
from pokebattle.data import storage as repo
from pokebattle.data.storage import Storage

logger = logging.getLogger(__name__)


class BattleView(BaseModel):
    """Read-only projection of a battle with its creatures resolved."""

    state: BattleState
    creatures: dict[str, Creature]

    @property
    def side1_active(self) -> Creature:
        return self.creatures[self.state.side1.active_id]

    @property
    def side2_active(self) -> Creature:
        return self.creatures[self.state.side2.active_id]


class ExperienceAwarder:
    """Gives XP to stored creatures and reports level changes."""

    def __init__(self, session: Session):
        self.session = session

    def award(self, creature_id: str, amount: int) -> LevelUpResult:
        creature = repo.get_creature(self.session, creature_id)
        result = apply_experience(creature, amount)
        repo.save_creature(self.session, creature)
        return result


class BattleService:
    """Operations on stored creatures and battles."""

    def __init__(self, storage: Storage | None = None, rng: RandomSource | None = None):
        self.storage = storage or Storage()
        self.rng = rng or default_random()

    # -- creatures ----------------------------------------------------------

    def create_creature(self, creature: Creature) -> Creature:
        with self.storage.session() as session:
            repo.save_creature(session, creature)
            session.commit()
        return creature

    def generate_creatures(self, count: int = 1) -> list[Creature]:
        """Roll and store ``count`` random creatures."""
        team = generate_team(count, self.rng)
        with self.storage.session() as session:
            for creature in team:
                repo.save_creature(session, creature)
            session.commit()
        logger.info("Generated %d creatures", len(team))
        return team

    def get_creature(self, creature_id: str) -> Creature:
        with self.storage.session() as session:
            return repo.get_creature(session, creature_id)

    def list_creatures(self, limit: int = 100, offset: int = 0) -> list[Creature]:
        with self.storage.session() as session:
            return repo.list_creatures(session, limit=limit, offset=offset)

    # -- battles ------------------------------------------------------------

    def create_battle(
        self,
        side1_roster: list[str],
        side2_roster: list[str],
        side1_active: str | None = None,
        side2_active: str | None = None,
        side1_name: str = "Player",
        side2_name: str = "Opponent",
        side1_controller: Controller = Controller.HUMAN,
        side2_controller: Controller = Controller.AI,
    ) -> BattleState:
        with self.storage.session() as session:
            creatures = repo.get_creatures(session, side1_roster + side2_roster)
            state = BattleEngine.create_battle(
                [creatures[cid] for cid in side1_roster],
                [creatures[cid] for cid in side2_roster],
                side1_active=side1_active,
                side2_active=side2_active,
                side1_name=side1_name,
                side2_name=side2_name,
                side1_controller=side1_controller,
                side2_controller=side2_controller,
            )
            repo.save_battle(session, state)
            session.commit()
        logger.info("Battle %s created: %s", state.battle_id, state.log[0])
        return state

    def submit_move(self, battle_id: str, move_index: int, side: BattleSide | None = None) -> BattleState:
        return self._transition(
            battle_id,
            lambda state, creatures: BattleEngine.submit_move(state, creatures, move_index, self.rng, side=side),
        )

    def submit_switch(self, battle_id: str, creature_id: str, side: BattleSide | None = None) -> BattleState:
        return self._transition(
            battle_id,
            lambda state, creatures: BattleEngine.submit_switch(state, creatures, creature_id, side=side),
        )

    def perform_ai_move(self, battle_id: str) -> BattleState:
        return self._transition(
            battle_id,
            lambda state, creatures: BattleEngine.perform_ai_move(state, creatures, self.rng),
        )

    def get_battle(self, battle_id: str) -> BattleState:
        with self.storage.session() as session:
            return repo.get_battle(session, battle_id)

    def get_battle_view(self, battle_id: str) -> BattleView:
        with self.storage.session() as session:
            state = repo.get_battle(session, battle_id)
            creatures = repo.get_creatures(session, state.creature_ids())
        return BattleView(state=state, creatures=creatures)

    # -- internals ----------------------------------------------------------

    def _transition(
        self,
        battle_id: str,
        action: Callable[[BattleState, dict[str, Creature]], TurnOutcome],
    ) -> BattleState:
        with self.storage.lock_battle(battle_id), self.storage.session() as session:
            state = repo.get_battle(session, battle_id)
            creatures = repo.get_creatures(session, state.creature_ids())

            outcome = action(state, creatures)
            if outcome.state is state:
                return state

            self._award_xp(session, outcome, creatures)
            repo.save_battle(session, outcome.state)
            session.commit()

        logger.debug("Battle %s now %s (turn %d)", battle_id, outcome.state.status, outcome.state.turn_number)
        return outcome.state

    def _award_xp(self, session: Session, outcome: TurnOutcome, creatures: dict[str, Creature]) -> None:
        """Apply XP awards; a failed award is logged and skipped."""
        awarder = ExperienceAwarder(session)
        for award in outcome.xp_awards:
            try:
                result = awarder.award(award.creature_id, award.amount)
            except (NotFound, ValidationError) as exc:
                logger.warning("Skipping %s XP award for %s: %s", award.reason, award.creature_id, exc)
                continue

            if result.leveled_up:
                creature = creatures.get(award.creature_id)
                name = creature.name if creature else award.creature_id
                outcome.state.level_up_events.append(
                    LevelUpEvent(
                        creature_id=award.creature_id,
                        creature_name=name,
                        old_level=result.old_level,
                        new_level=result.new_level,
                        xp_gained=award.amount,
                    )
                )
                outcome.state.log.append(f"{name} grew to level {result.new_level}!")
