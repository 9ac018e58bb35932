"""Integration tests for the statecraft command line.

Tests cover:
- new-game, submit, attack, defend, plan, advance, prices, show, list
- Error exits for missing games, bad JSON and bad profile overrides
"""

import json

import pytest

from statecraft.cli import main
from statecraft.storage import FileGameStore


@pytest.fixture
def games_path(tmp_path, monkeypatch):
    path = tmp_path / "games"
    monkeypatch.delenv("STATECRAFT_STORAGE_BACKEND", raising=False)
    monkeypatch.setenv("STATECRAFT_GAMES_PATH", str(path))
    return path


@pytest.fixture
def game(games_path, capsys):
    """A game created through the CLI; returns its id."""
    assert main([
        "new-game", "--id", "cli-game", "--name", "Border Wars",
        "--player", "Avalon", "--country", "Brant", "--seed", "fixed",
    ]) == 0
    capsys.readouterr()
    return "cli-game"


class TestNewGame:
    """Tests for game creation."""

    def test_creates_game(self, games_path, capsys):
        code = main(["new-game", "--id", "g1", "--player", "Avalon", "--country", "Brant", "--cities", "2"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Created game g1" in out
        assert "[player]" in out
        assert "[AI]" in out
        store = FileGameStore(games_path)
        assert store.load_game("g1").seed == "g1"
        assert len(store.load_cities("g1")) == 4

    def test_needs_two_countries(self, games_path, capsys):
        assert main(["new-game", "--player", "Avalon"]) == 1
        assert "at least two countries" in capsys.readouterr().err

    def test_profile_override(self, games_path):
        code = main([
            "new-game", "--id", "g1", "--player", "Avalon", "--country", "Brant",
            "--profile", "Brant=Oil Kingdom",
        ])
        assert code == 0
        stats = FileGameStore(games_path).load_stats("g1", 1)
        assert stats["g1-c2"].resource_profile.name == "Oil Kingdom"

    def test_bad_profile_override(self, games_path, capsys):
        code = main(["new-game", "--player", "Avalon", "--country", "Brant", "--profile", "Brant"])
        assert code == 1
        assert "COUNTRY=PROFILE" in capsys.readouterr().err


class TestTurnCommands:
    """Tests for submitting, planning and advancing."""

    def test_submit_queues_action(self, game, games_path, capsys):
        code = main(["submit", game, "cli-game-c1", "military", "--data", '{"subType": "recruit", "amount": 5}'])

        assert code == 0
        assert "Queued recruit action" in capsys.readouterr().out
        pending = FileGameStore(games_path).load_pending_actions(game, 1)
        assert len(pending) == 1
        assert pending[0].country_id == "cli-game-c1"

    def test_submit_bad_json(self, game, capsys):
        assert main(["submit", game, "cli-game-c1", "research", "--data", "{nope"]) == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_submit_invalid_action_data(self, game, capsys):
        code = main(["submit", game, "cli-game-c1", "military", "--data", '{"subType": "parade"}'])
        assert code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_submit_missing_game(self, games_path, capsys):
        assert main(["submit", "nope", "c1", "research"]) == 1
        assert "game not found" in capsys.readouterr().err

    def test_submit_cannot_claim_payment(self, game, capsys):
        data = '{"subType": "attack", "targetCityId": "x", "allocatedStrength": 5, "immediate": true}'
        assert main(["submit", game, "cli-game-c1", "military", "--data", data]) == 1
        assert "may not set immediate" in capsys.readouterr().err

    def test_attack_then_defend(self, game, games_path, capsys):
        store = FileGameStore(games_path)
        city = next(c for c in store.load_cities(game) if c.country_id == "cli-game-c2")
        budget = store.load_stats(game, 1)["cli-game-c1"].budget

        assert main(["attack", game, "cli-game-c1", city.id, "10"]) == 0
        out = capsys.readouterr().out
        assert f"on {city.id} queued for turn 1" in out
        assert "defender cli-game-c2" in out
        assert store.load_stats(game, 1)["cli-game-c1"].budget == budget - 200
        (pending,) = store.load_pending_actions(game, 1)

        assert main(["defend", game, "cli-game-c2", pending.id, "3"]) == 0
        assert "commits 3 strength" in capsys.readouterr().out
        assert store.load_action(game, pending.id).payload.defense_allocation == 3

    def test_attack_own_city(self, game, games_path, capsys):
        city = next(c for c in FileGameStore(games_path).load_cities(game) if c.country_id == "cli-game-c1")
        assert main(["attack", game, "cli-game-c1", city.id, "10"]) == 1
        assert "already controls" in capsys.readouterr().err

    def test_defend_unknown_attack(self, game, capsys):
        assert main(["defend", game, "cli-game-c2", "nope", "3"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_plan_from_file(self, game, games_path, tmp_path, capsys):
        plan_path = tmp_path / "plan.json"
        plan_path.write_text(json.dumps([
            {"id": "s1", "execution": {"actionType": "research", "actionData": {}}},
            {"id": "c1", "prohibit": ["attack"]},
        ]))

        assert main(["plan", game, "cli-game-c2", str(plan_path)]) == 0
        assert "Saved plan with 2 items" in capsys.readouterr().out
        assert len(FileGameStore(games_path).load_plans(game)["cli-game-c2"]) == 2

    def test_plan_file_missing(self, game, tmp_path, capsys):
        assert main(["plan", game, "cli-game-c2", str(tmp_path / "missing.json")]) == 1
        assert "plan file not found" in capsys.readouterr().err

    def test_advance(self, game, games_path, capsys):
        assert main(["advance", game, "--turns", "2"]) == 0
        out = capsys.readouterr().out
        assert "Turn 1 resolved" in out
        assert "Turn 2 resolved" in out
        assert FileGameStore(games_path).load_game(game).turn == 3

    def test_advance_missing_game(self, games_path, capsys):
        assert main(["advance", "nope"]) == 1
        assert "Game not found" in capsys.readouterr().err


class TestInspection:
    """Tests for read-only commands."""

    def test_show(self, game, capsys):
        assert main(["advance", game]) == 0
        capsys.readouterr()

        assert main(["show", game, "--events"]) == 0
        out = capsys.readouterr().out
        assert "Border Wars - turn 2 (active)" in out
        assert "Avalon (cli-game-c1) [player]" in out
        assert "History:" in out
        assert "[turn.completed] Turn 1 completed" in out

    def test_prices_json(self, game, capsys):
        assert main(["prices", game, "--json"]) == 0
        prices = json.loads(capsys.readouterr().out)
        assert prices["turn"] == 1

    def test_list(self, game, capsys):
        assert main(["list"]) == 0
        assert "cli-game  Border Wars  turn 1  active" in capsys.readouterr().out

    def test_list_empty(self, games_path, capsys):
        assert main(["list"]) == 0
        assert "No games" in capsys.readouterr().out
