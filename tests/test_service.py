"""Tests for storage and the battle service."""

import logging
import random
import threading

import pytest

from pokebattle.core.battle import TurnOutcome, XpAward
from pokebattle.core.errors import BattleError, InvalidAction, NotFound, TerminalBattle
from pokebattle.core.state import BattleSide
from pokebattle.data import storage as repo
from pokebattle.service import BattleService, ExperienceAwarder
from tests.factories import make_creature


def _store(service, *creatures):
    for creature in creatures:
        service.create_creature(creature)
    return creatures


def _start(service, defender_hp=100, attacker_attack=50):
    """Store one creature per side and start a battle where side 1 moves first."""
    _store(
        service,
        make_creature("Alpha", attack=attacker_attack, speed=60, creature_id="a1"),
        make_creature("Delta", hp=defender_hp, speed=40, creature_id="d1"),
    )
    return service.create_battle(["a1"], ["d1"])


class TestStorage:
    def test_creature_round_trip(self, storage):
        creature = make_creature(types=("fire", "flying"))
        with storage.session() as session:
            repo.save_creature(session, creature)
            session.commit()
        with storage.session() as session:
            assert repo.get_creature(session, creature.id) == creature

    def test_save_creature_updates(self, storage):
        creature = make_creature()
        with storage.session() as session:
            repo.save_creature(session, creature)
            session.commit()
        creature.xp = 80
        with storage.session() as session:
            repo.save_creature(session, creature)
            session.commit()
        with storage.session() as session:
            assert repo.get_creature(session, creature.id).xp == 80

    def test_missing_creature(self, storage):
        with storage.session() as session:
            with pytest.raises(NotFound):
                repo.get_creature(session, "nope")

    def test_list_battles_by_status(self, service):
        _start(service)
        with service.storage.session() as session:
            assert len(repo.list_battles(session)) == 1
            assert len(repo.list_battles(session, status="active")) == 1
            assert repo.list_battles(session, status="side1_wins") == []


class TestCreatures:
    def test_create_and_get(self, service):
        creature = make_creature("Pip")
        service.create_creature(creature)
        assert service.get_creature(creature.id).name == "Pip"

    def test_get_unknown(self, service):
        with pytest.raises(NotFound):
            service.get_creature("missing")

    def test_generate(self, storage):
        service = BattleService(storage=storage, rng=random.Random(4))
        team = service.generate_creatures(3)
        assert len(team) == 3
        assert {c.id for c in service.list_creatures()} == {c.id for c in team}


class TestBattles:
    def test_create_persists(self, service):
        state = _start(service)
        stored = service.get_battle(state.battle_id)
        assert stored.battle_id == state.battle_id
        assert stored.whose_turn == BattleSide.SIDE1
        assert stored.log == state.log

    def test_create_with_unknown_creature(self, service):
        _store(service, make_creature(creature_id="a1"))
        with pytest.raises(NotFound):
            service.create_battle(["a1"], ["ghost"])

    def test_move_persists(self, service):
        state = _start(service)
        new = service.submit_move(state.battle_id, 0)
        stored = service.get_battle(state.battle_id)
        assert stored.turn_number == new.turn_number == 1
        assert stored.side2.active_hp == 88

    def test_rejected_move_leaves_battle_unchanged(self, service):
        state = _start(service)
        with pytest.raises(InvalidAction):
            service.submit_move(state.battle_id, 7)
        stored = service.get_battle(state.battle_id)
        assert stored.turn_number == 0
        assert stored.log == state.log

    def test_unknown_battle(self, service):
        with pytest.raises(NotFound):
            service.submit_move("missing", 0)

    def test_ai_move_on_human_turn_is_noop(self, service):
        state = _start(service)
        result = service.perform_ai_move(state.battle_id)
        assert result.turn_number == 0
        assert service.get_battle(state.battle_id).updated_at == result.updated_at

    def test_ai_answers(self, service):
        state = _start(service)
        service.submit_move(state.battle_id, 0)
        result = service.perform_ai_move(state.battle_id)
        assert result.turn_number == 2
        assert result.whose_turn == BattleSide.SIDE1
        assert result.side1.active_hp == 88

    def test_battle_view(self, service):
        state = _start(service)
        view = service.get_battle_view(state.battle_id)
        assert set(view.creatures) == {"a1", "d1"}
        assert view.side1_active.name == "Alpha"
        assert view.side2_active.name == "Delta"


class TestExperience:
    def test_win_awards_xp_and_levels(self, service):
        state = _start(service, defender_hp=10, attacker_attack=200)
        result = service.submit_move(state.battle_id, 0)

        assert result.is_finished
        winner = service.get_creature("a1")
        loser = service.get_creature("d1")
        assert winner.xp == 250
        assert winner.level == 3
        assert winner.hp > 100
        assert loser.xp == 50
        assert loser.level == 1

        assert len(result.level_up_events) == 1
        event = result.level_up_events[0]
        assert (event.creature_id, event.old_level, event.new_level, event.xp_gained) == ("a1", 1, 3, 175)
        assert result.log[-1] == "Alpha grew to level 3!"
        assert service.get_battle(state.battle_id).level_up_events == result.level_up_events

    def test_finished_battle_rejects_actions(self, service):
        state = _start(service, defender_hp=10, attacker_attack=200)
        service.submit_move(state.battle_id, 0)
        with pytest.raises(TerminalBattle):
            service.submit_move(state.battle_id, 0)

    def test_awarder(self, service):
        _store(service, make_creature(creature_id="a1"))
        with service.storage.session() as session:
            result = ExperienceAwarder(session).award("a1", 120)
            session.commit()
        assert result.leveled_up
        assert service.get_creature("a1").level == 2

    def test_failed_award_is_skipped(self, service, caplog):
        state = _start(service)
        outcome = TurnOutcome(
            state=state,
            xp_awards=[
                XpAward(creature_id="ghost", amount=75, reason="knockout"),
                XpAward(creature_id="a1", amount=75, reason="knockout"),
            ],
        )
        with caplog.at_level(logging.WARNING, logger="pokebattle.service"):
            with service.storage.session() as session:
                service._award_xp(session, outcome, {})
                session.commit()

        assert "ghost" in caplog.text
        assert service.get_creature("a1").xp == 75


class TestLocking:
    def test_concurrent_moves_are_serialized(self, service):
        state = _start(service)
        errors = []

        def _move():
            try:
                service.submit_move(state.battle_id, 0)
            except BattleError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_move) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        stored = service.get_battle(state.battle_id)
        assert stored.turn_number == 2
        assert stored.side1.active_hp == 88
        assert stored.side2.active_hp == 88

    def test_move_waits_for_held_lock(self, service):
        state = _start(service)
        worker = threading.Thread(target=service.submit_move, args=(state.battle_id, 0))

        with service.storage.lock_battle(state.battle_id):
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
            assert service.get_battle(state.battle_id).turn_number == 0

        worker.join(timeout=10)
        assert service.get_battle(state.battle_id).turn_number == 1

    def test_lock_released_after_use(self, service):
        state = _start(service)
        service.submit_move(state.battle_id, 0)
        service.perform_ai_move(state.battle_id)
        assert service.storage._locks == {}
        assert service.storage._lock_users == {}
