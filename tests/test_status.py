"""Tests for status conditions."""

from pokebattle.core.moves import StatusEffect
from pokebattle.core.state import SideState
from pokebattle.core.status import check_can_move, end_of_turn, inflict_status
from tests.factories import FakeRandom


def _make_side(hp=100, status=StatusEffect.NONE, turns=None) -> SideState:
    return SideState(
        trainer_name="Tester",
        roster=["c1", "c2"],
        active_id="c1",
        active_hp=hp,
        status=status,
        status_turns=turns,
    )


class TestInflict:
    def test_certain_infliction_draws_nothing(self):
        side = _make_side()
        rng = FakeRandom(randoms=[0.99])
        msg = inflict_status(side, StatusEffect.POISON, 100, "Pip", rng)
        assert msg == "Pip was poisoned!"
        assert side.status == StatusEffect.POISON
        assert side.status_turns is None
        assert rng.randoms == [0.99]

    def test_never_overwrites(self):
        side = _make_side(status=StatusEffect.BURN)
        msg = inflict_status(side, StatusEffect.POISON, 100, "Pip", FakeRandom())
        assert msg == "But Pip is already afflicted..."
        assert side.status == StatusEffect.BURN

    def test_failed_roll(self):
        side = _make_side()
        assert inflict_status(side, StatusEffect.BURN, 30, "Pip", FakeRandom(randoms=[0.5])) is None
        assert side.status == StatusEffect.NONE

    def test_successful_roll(self):
        side = _make_side()
        msg = inflict_status(side, StatusEffect.PARALYZE, 30, "Pip", FakeRandom(randoms=[0.1]))
        assert msg == "Pip is paralyzed! It may be unable to move!"
        assert side.status == StatusEffect.PARALYZE

    def test_freeze_and_sleep_get_durations(self):
        side = _make_side()
        inflict_status(side, StatusEffect.FREEZE, 100, "Pip", FakeRandom(randints=[3]))
        assert side.status_turns == 3

        side = _make_side()
        msg = inflict_status(side, StatusEffect.SLEEP, 100, "Pip", FakeRandom(randints=[2]))
        assert msg == "Pip fell asleep!"
        assert side.status_turns == 2


class TestCanMove:
    def test_healthy(self):
        assert check_can_move(_make_side(), "Pip", FakeRandom()) == (True, [])

    def test_frozen_stays_frozen(self):
        side = _make_side(status=StatusEffect.FREEZE, turns=3)
        assert check_can_move(side, "Pip", FakeRandom(randoms=[0.5])) == (False, ["Pip is frozen solid!"])
        assert side.status == StatusEffect.FREEZE

    def test_frozen_thaws(self):
        side = _make_side(status=StatusEffect.FREEZE, turns=3)
        assert check_can_move(side, "Pip", FakeRandom(randoms=[0.1])) == (True, ["Pip thawed out!"])
        assert side.status == StatusEffect.NONE

    def test_asleep(self):
        side = _make_side(status=StatusEffect.SLEEP, turns=2)
        assert check_can_move(side, "Pip", FakeRandom()) == (False, ["Pip is fast asleep!"])

    def test_wakes_on_last_turn(self):
        side = _make_side(status=StatusEffect.SLEEP, turns=1)
        assert check_can_move(side, "Pip", FakeRandom()) == (True, ["Pip woke up!"])
        assert side.status == StatusEffect.NONE
        assert side.status_turns is None

    def test_full_paralysis(self):
        side = _make_side(status=StatusEffect.PARALYZE)
        assert check_can_move(side, "Pip", FakeRandom(randoms=[0.1])) == (
            False,
            ["Pip is paralyzed and can't move!"],
        )

    def test_paralysis_can_still_move(self):
        side = _make_side(status=StatusEffect.PARALYZE)
        assert check_can_move(side, "Pip", FakeRandom(randoms=[0.9])) == (True, [])
        assert side.status == StatusEffect.PARALYZE


class TestEndOfTurn:
    def test_poison_ticks(self):
        side = _make_side(status=StatusEffect.POISON)
        for _ in range(3):
            assert end_of_turn(side, "Pip", 100) == ["Pip was hurt by poison! (-6 HP)"]
        assert side.active_hp == 82

    def test_burn_ticks(self):
        side = _make_side(hp=50, status=StatusEffect.BURN)
        assert end_of_turn(side, "Pip", 160) == ["Pip was hurt by its burn! (-10 HP)"]
        assert side.active_hp == 40

    def test_minimum_one_damage(self):
        side = _make_side(hp=10, status=StatusEffect.POISON)
        end_of_turn(side, "Pip", 10)
        assert side.active_hp == 9

    def test_hp_floors_at_zero(self):
        side = _make_side(hp=3, status=StatusEffect.POISON)
        end_of_turn(side, "Pip", 100)
        assert side.active_hp == 0

    def test_sleep_counts_down(self):
        side = _make_side(status=StatusEffect.SLEEP, turns=2)
        assert end_of_turn(side, "Pip", 100) == []
        assert side.status_turns == 1
        assert end_of_turn(side, "Pip", 100) == ["Pip woke up!"]
        assert side.status == StatusEffect.NONE

    def test_freeze_thaws_when_counter_expires(self):
        side = _make_side(status=StatusEffect.FREEZE, turns=1)
        assert end_of_turn(side, "Pip", 100) == ["Pip thawed out!"]

    def test_fainted_skipped(self):
        side = _make_side(hp=0, status=StatusEffect.POISON)
        assert end_of_turn(side, "Pip", 100) == []

    def test_paralysis_does_not_tick(self):
        side = _make_side(status=StatusEffect.PARALYZE)
        assert end_of_turn(side, "Pip", 100) == []
        assert side.active_hp == 100
