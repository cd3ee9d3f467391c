"""Tests for the Typer CLI."""

import random

import pytest
from typer.testing import CliRunner

from pokebattle.cli import app as app_module
from pokebattle.cli.commands import battle as battle_cmd
from pokebattle.data import storage as repo
from pokebattle.service import BattleService
from tests.factories import make_creature

runner = CliRunner()


@pytest.fixture
def cli_service(monkeypatch, service):
    """Point the CLI at the in-memory test service."""
    monkeypatch.setattr(battle_cmd, "_service", service)
    return service


@pytest.fixture
def seeded_service(monkeypatch, storage):
    """A test service with a real seeded generator, for commands that roll creatures."""
    service = BattleService(storage=storage, rng=random.Random(21))
    monkeypatch.setattr(battle_cmd, "_service", service)
    return service


def _start(service):
    service.create_creature(make_creature("Alpha", speed=60, creature_id="a1"))
    service.create_creature(make_creature("Beta", speed=55, creature_id="a2"))
    service.create_creature(make_creature("Delta", speed=40, creature_id="d1"))
    return service.create_battle(["a1", "a2"], ["d1"])


class TestCreatureCommands:
    def test_version(self):
        result = runner.invoke(app_module.app, ["version"])
        assert result.exit_code == 0
        assert "PokeBattle" in result.output

    def test_empty_roster(self, cli_service):
        result = runner.invoke(app_module.app, ["roster"])
        assert result.exit_code == 0
        assert "No creatures found." in result.output

    def test_generate(self, seeded_service):
        result = runner.invoke(app_module.app, ["generate", "--count", "2"])
        assert result.exit_code == 0
        assert "New Creatures" in result.output
        assert len(seeded_service.list_creatures()) == 2

    def test_show(self, cli_service):
        cli_service.create_creature(make_creature("Pip", creature_id="pip"))
        result = runner.invoke(app_module.app, ["show", "pip"])
        assert result.exit_code == 0
        assert "Pip" in result.output
        assert "Tackle" in result.output

    def test_show_missing(self, cli_service):
        result = runner.invoke(app_module.app, ["show", "nobody"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestBattleCommands:
    def test_start_random(self, seeded_service):
        result = runner.invoke(app_module.app, ["battle", "start", "--size", "1"])
        assert result.exit_code == 0
        assert "Battle started" in result.output
        with seeded_service.storage.session() as session:
            assert len(repo.list_battles(session)) == 1

    def test_show(self, cli_service):
        state = _start(cli_service)
        result = runner.invoke(app_module.app, ["battle", "show", state.battle_id])
        assert result.exit_code == 0
        assert "Alpha" in result.output
        assert "Delta" in result.output

    def test_show_missing(self, cli_service):
        result = runner.invoke(app_module.app, ["battle", "show", "missing"])
        assert result.exit_code == 1

    def test_move_and_ai_reply(self, cli_service):
        state = _start(cli_service)
        result = runner.invoke(app_module.app, ["battle", "move", state.battle_id, "0"])
        assert result.exit_code == 0
        stored = cli_service.get_battle(state.battle_id)
        assert stored.turn_number == 2
        assert "Delta used Tackle! It dealt 12 damage." in stored.log

    def test_bad_move_index(self, cli_service):
        state = _start(cli_service)
        result = runner.invoke(app_module.app, ["battle", "move", state.battle_id, "9"])
        assert result.exit_code == 1
        assert "Invalid move index 9" in result.output

    def test_switch(self, cli_service):
        state = _start(cli_service)
        result = runner.invoke(app_module.app, ["battle", "switch", state.battle_id, "a2"])
        assert result.exit_code == 0
        stored = cli_service.get_battle(state.battle_id)
        assert stored.side1.active_id == "a2"
        assert stored.turn_number == 2

    def test_switch_to_unknown(self, cli_service):
        state = _start(cli_service)
        result = runner.invoke(app_module.app, ["battle", "switch", state.battle_id, "zzz"])
        assert result.exit_code == 1
