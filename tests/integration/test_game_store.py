"""Integration tests for the game stores.

Tests cover:
- Parametrized tests that run identically against the File and SQLite backends
- Game lifecycle: create, load, list, status, delete
- Between-turn writes: actions, deals, plans
- Atomic turn commits and the turn-mismatch guard
- Paid attack writes and action lookup
- Timezone-aware UTC timestamps
- Storage configuration factory
"""

from datetime import datetime, timedelta

import pytest

from statecraft.engine.setup import CountrySpec, setup_game
from statecraft.errors import StateInconsistencyError
from statecraft.models import (
    Action,
    ActionType,
    Deal,
    DealStatus,
    TurnCommit,
    TurnEvent,
    parse_plan,
)
from statecraft.models.game import GameStatus
from statecraft.storage import (
    FileGameStore,
    SQLiteGameStore,
    StorageBackend,
    StorageSettings,
    get_game_store,
    get_storage_backend,
)


@pytest.fixture
def new_game():
    """A seeded two-country game: a player and one AI."""
    return setup_game("g1", "Test Game", [CountrySpec("Avalon", is_player=True), CountrySpec("Brant")], seed="fixed")


@pytest.fixture
def file_store(tmp_path):
    return FileGameStore(tmp_path / "games")


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteGameStore(str(tmp_path / "statecraft.db"))


@pytest.fixture(params=["file", "sqlite"])
def store(request, file_store, sqlite_store):
    """Parametrized fixture that provides both store implementations."""
    if request.param == "file":
        return file_store
    return sqlite_store


@pytest.fixture
def created(store, new_game):
    """A store holding the new game."""
    store.create_game(new_game.game, new_game.countries, new_game.stats, new_game.cities)
    return store


def make_action(action_id, turn=1, country_id="g1-c2"):
    return Action(
        id=action_id,
        game_id="g1",
        country_id=country_id,
        turn=turn,
        action_type=ActionType.RESEARCH,
        payload={},
    )


def make_deal(deal_id, status=DealStatus.PROPOSED):
    return Deal(
        id=deal_id,
        game_id="g1",
        proposing_country_id="g1-c2",
        receiving_country_id="g1-c1",
        status=status,
        turn_created=1,
        turn_expires=4,
    )


def make_commit(new_game, turn=1, **overrides):
    data = {
        "game_id": "g1",
        "turn": turn,
        "next_turn": turn + 1,
        "stats": new_game.stats,
        "next_stats": [s.model_copy(update={"turn": turn + 1}) for s in new_game.stats],
        "events": [TurnEvent(type="turn.completed", message=f"Turn {turn} completed")],
    }
    data.update(overrides)
    return TurnCommit(**data)


# ============================================================================
# Game lifecycle
# ============================================================================


class TestGameLifecycle:
    """Both backends create, list and delete games identically."""

    def test_empty_list(self, store):
        assert store.list_games() == []

    def test_create_load_roundtrip(self, created, new_game):
        game = created.load_game("g1")
        assert game.name == "Test Game"
        assert game.turn == 1
        assert game.status == GameStatus.ACTIVE
        assert game.created_at is not None

        assert [c.id for c in created.load_countries("g1")] == ["g1-c1", "g1-c2"]
        assert created.load_stats("g1", 1) == {s.country_id: s for s in new_game.stats}
        assert [c.id for c in created.load_cities("g1")] == [c.id for c in new_game.cities]

    def test_duplicate_game_raises(self, created, new_game):
        with pytest.raises(ValueError):
            created.create_game(new_game.game, new_game.countries, new_game.stats, new_game.cities)

    def test_missing_game(self, store):
        assert store.load_game("nope") is None

    def test_list_games(self, created):
        assert [g.id for g in created.list_games()] == ["g1"]

    def test_set_status(self, created):
        created.set_status("g1", GameStatus.FINISHED)
        assert created.load_game("g1").status == GameStatus.FINISHED

    def test_delete_game(self, created):
        assert created.delete_game("g1") is True
        assert created.load_game("g1") is None
        assert created.delete_game("g1") is False

    def test_initial_tables_are_empty(self, created):
        assert created.load_pending_actions("g1", 1) == []
        assert created.load_deals("g1") == []
        assert created.load_plans("g1") == {}
        assert created.load_executed_steps("g1") == {}
        assert created.load_cooldowns("g1") == {}
        assert created.load_events("g1") == []


# ============================================================================
# Between-turn writes
# ============================================================================


class TestBetweenTurnWrites:
    """Actions, deals and plans written between turns."""

    def test_pending_actions_in_submission_order(self, created):
        created.submit_action(make_action("b-second"))
        created.submit_action(make_action("a-first"))
        created.submit_action(make_action("later", turn=2))

        assert [a.id for a in created.load_pending_actions("g1", 1)] == ["b-second", "a-first"]
        assert [a.id for a in created.load_pending_actions("g1", 2)] == ["later"]

    def test_submit_to_missing_game(self, store):
        with pytest.raises(ValueError):
            store.submit_action(make_action("x"))

    def test_only_open_deals_are_loaded(self, created):
        created.save_deal(make_deal("d1"))
        created.save_deal(make_deal("d2", DealStatus.EXPIRED))
        created.save_deal(make_deal("d3", DealStatus.ACTIVE))
        assert [d.id for d in created.load_deals("g1")] == ["d1", "d3"]

    def test_save_deal_replaces(self, created):
        """Accepting an offer rewrites the same deal."""
        created.save_deal(make_deal("d1"))
        created.save_deal(make_deal("d1").with_status(DealStatus.ACCEPTED))
        deals = created.load_deals("g1")
        assert len(deals) == 1
        assert deals[0].status == DealStatus.ACCEPTED

    def test_save_plan_roundtrip(self, created):
        plan = parse_plan([
            {
                "id": "s1",
                "execution": {"actionType": "research", "actionData": {"targetLevel": 3}},
                "stop_when": {"tech_level_gte": 3},
            },
            {"id": "c1", "prohibit": ["attack"]},
        ])
        created.save_plan("g1", "g1-c2", plan)
        assert created.load_plans("g1") == {"g1-c2": plan}

    def test_save_plan_resets_executed_steps(self, created, new_game):
        plan = parse_plan([{"id": "s1", "execution": {"actionType": "research", "actionData": {}}}])
        created.save_plan("g1", "g1-c2", plan)
        created.commit_turn(make_commit(new_game, executed_step_ids={"g1-c2": ["s1"]}))
        assert created.load_executed_steps("g1") == {"g1-c2": ["s1"]}

        created.save_plan("g1", "g1-c2", plan)
        assert created.load_executed_steps("g1") == {}


# ============================================================================
# Turn commit
# ============================================================================


class TestCommitTurn:
    """Atomic turn commits."""

    def test_commit_advances_game(self, created, new_game):
        created.submit_action(make_action("a1"))
        executed = make_action("a1").executed()
        created.commit_turn(make_commit(
            new_game,
            actions=[executed],
            deals=[make_deal("offer-1")],
            cooldowns={"g1-c2:g1-c1": 1},
            executed_step_ids={"g1-c2": ["s1"]},
        ))

        assert created.load_game("g1").turn == 2
        assert set(created.load_stats("g1", 2)) == {"g1-c1", "g1-c2"}
        assert all(s.turn == 2 for s in created.load_stats("g1", 2).values())
        assert created.load_pending_actions("g1", 1) == []
        assert [d.id for d in created.load_deals("g1")] == ["offer-1"]
        assert created.load_cooldowns("g1") == {"g1-c2:g1-c1": 1}
        assert created.load_executed_steps("g1") == {"g1-c2": ["s1"]}
        assert [e.type for e in created.load_events("g1", 1)] == ["turn.completed"]

    def test_commit_moves_cities(self, created, new_game):
        city = new_game.cities[0].model_copy(update={"country_id": "g1-c2"})
        created.commit_turn(make_commit(new_game, cities=[city]))
        owners = {c.id: c.country_id for c in created.load_cities("g1")}
        assert owners[city.id] == "g1-c2"
        assert len(owners) == len(new_game.cities)

    def test_events_by_turn(self, created, new_game):
        created.commit_turn(make_commit(new_game, turn=1))
        created.commit_turn(make_commit(new_game, turn=2))
        assert len(created.load_events("g1", 2)) == 1
        assert [e.message for e in created.load_events("g1")] == ["Turn 1 completed", "Turn 2 completed"]

    def test_stale_commit_is_refused(self, created, new_game):
        """A second commit of the same turn fails and writes nothing."""
        created.commit_turn(make_commit(new_game))
        with pytest.raises(StateInconsistencyError):
            created.commit_turn(make_commit(new_game, cooldowns={"x:y": 1}))
        assert created.load_game("g1").turn == 2
        assert created.load_cooldowns("g1") == {}

    def test_commit_for_missing_game(self, store, new_game):
        with pytest.raises(StateInconsistencyError):
            store.commit_turn(make_commit(new_game))

    def test_timestamps_are_utc(self, created, new_game):
        created.commit_turn(make_commit(new_game))
        game = created.load_game("g1")
        for stamp in (game.created_at, game.updated_at):
            assert datetime.fromisoformat(stamp).utcoffset() == timedelta(0)


# ============================================================================
# Paid attacks
# ============================================================================


class TestRecordAttack:
    """Attack, attacker stats and target city written together."""

    @pytest.fixture
    def paid(self, new_game):
        city = next(c for c in new_game.cities if c.country_id == "g1-c2")
        action = Action(
            id="atk-1",
            game_id="g1",
            country_id="g1-c1",
            turn=1,
            action_type=ActionType.MILITARY,
            payload={
                "kind": "attack",
                "target_city_id": city.id,
                "allocated_strength": 10,
                "defender_id": "g1-c2",
                "immediate": True,
                "cost": 200,
            },
        )
        stats = next(s for s in new_game.stats if s.country_id == "g1-c1")
        stats = stats.model_copy(update={"budget": stats.budget - 200})
        return action, stats, city.model_copy(update={"is_under_attack": True})

    def test_writes_action_stats_and_city(self, created, paid):
        action, stats, city = paid
        created.record_attack(action, stats, city)

        assert created.load_action("g1", "atk-1") == action
        assert [a.id for a in created.load_pending_actions("g1", 1)] == ["atk-1"]
        assert created.load_stats("g1", 1)["g1-c1"].budget == stats.budget
        assert next(c for c in created.load_cities("g1") if c.id == city.id).is_under_attack

    def test_load_missing_action(self, created):
        assert created.load_action("g1", "nope") is None

    def test_wrong_turn_writes_nothing(self, created, new_game, paid):
        action, stats, city = paid
        created.commit_turn(make_commit(new_game))
        with pytest.raises(StateInconsistencyError):
            created.record_attack(action, stats, city)
        assert created.load_action("g1", "atk-1") is None
        assert not next(c for c in created.load_cities("g1") if c.id == city.id).is_under_attack

    def test_missing_game(self, store, paid):
        with pytest.raises(ValueError):
            store.record_attack(*paid)


# ============================================================================
# Configuration
# ============================================================================


class TestStorageConfig:
    """Tests for the backend factory."""

    def test_file_backend_by_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("STATECRAFT_STORAGE_BACKEND", raising=False)
        monkeypatch.setenv("STATECRAFT_GAMES_PATH", str(tmp_path / "games"))
        assert isinstance(get_game_store(), FileGameStore)

    def test_sqlite_backend_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STATECRAFT_STORAGE_BACKEND", "SQLite")
        monkeypatch.setenv("STATECRAFT_DATABASE_URI", str(tmp_path / "db" / "games.db"))
        store = get_game_store()
        assert isinstance(store, SQLiteGameStore)
        assert (tmp_path / "db" / "games.db").exists()

    def test_explicit_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STATECRAFT_GAMES_PATH", str(tmp_path / "games"))
        assert isinstance(get_game_store(StorageBackend.FILE), FileGameStore)

    def test_unknown_backend_falls_back_to_file(self, monkeypatch):
        monkeypatch.setenv("STATECRAFT_STORAGE_BACKEND", "postgres")
        assert get_storage_backend() == StorageBackend.FILE

    def test_explicit_settings(self, tmp_path):
        settings = StorageSettings(backend=StorageBackend.SQLITE, database_uri=str(tmp_path / "x.db"))
        assert settings.location() == str(tmp_path / "x.db")
        store = get_game_store(settings=settings)
        assert isinstance(store, SQLiteGameStore)

    def test_backend_argument_overrides_settings(self, tmp_path):
        settings = StorageSettings(backend=StorageBackend.SQLITE, games_path=str(tmp_path / "games"))
        assert isinstance(get_game_store(StorageBackend.FILE, settings), FileGameStore)
