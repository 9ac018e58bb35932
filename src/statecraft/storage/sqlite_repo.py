"""SQLite-based game store.

Records are stored as JSON in a ``data`` column next to the columns the
engine filters on. commit_turn() writes everything for a turn inside a
single transaction; any failure rolls the whole turn back.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from statecraft.errors import StateInconsistencyError
from statecraft.models import (
    Action,
    ActionStatus,
    City,
    Country,
    CountryStats,
    Deal,
    Game,
    PlanItem,
    TurnCommit,
    TurnEvent,
    parse_plan,
)
from statecraft.models.game import GameStatus

from .repository import OPEN_DEAL_STATUSES, GameStore

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS games (
        id TEXT PRIMARY KEY,
        name TEXT,
        status TEXT DEFAULT 'active',
        turn INTEGER DEFAULT 1,
        data TEXT NOT NULL,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS countries (
        id TEXT NOT NULL,
        game_id TEXT NOT NULL,
        seq INTEGER NOT NULL,
        data TEXT NOT NULL,
        PRIMARY KEY (game_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS country_stats (
        game_id TEXT NOT NULL,
        country_id TEXT NOT NULL,
        turn INTEGER NOT NULL,
        data TEXT NOT NULL,
        PRIMARY KEY (game_id, country_id, turn)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cities (
        id TEXT NOT NULL,
        game_id TEXT NOT NULL,
        country_id TEXT NOT NULL,
        seq INTEGER NOT NULL,
        data TEXT NOT NULL,
        PRIMARY KEY (game_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS actions (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL,
        game_id TEXT NOT NULL,
        turn INTEGER NOT NULL,
        status TEXT NOT NULL,
        data TEXT NOT NULL,
        UNIQUE (game_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS deals (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL,
        game_id TEXT NOT NULL,
        status TEXT NOT NULL,
        data TEXT NOT NULL,
        UNIQUE (game_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plans (
        game_id TEXT NOT NULL,
        country_id TEXT NOT NULL,
        data TEXT NOT NULL,
        executed TEXT NOT NULL DEFAULT '[]',
        PRIMARY KEY (game_id, country_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cooldowns (
        game_id TEXT NOT NULL,
        pair TEXT NOT NULL,
        turn INTEGER NOT NULL,
        PRIMARY KEY (game_id, pair)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        game_id TEXT NOT NULL,
        turn INTEGER NOT NULL,
        data TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_actions_turn ON actions(game_id, turn, status)",
    "CREATE INDEX IF NOT EXISTS idx_deals_status ON deals(game_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_events_turn ON events(game_id, turn)",
)

GAME_TABLES = ("countries", "country_stats", "cities", "actions", "deals", "plans", "cooldowns", "events")


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict:
    """Convert sqlite3 row to dict."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class SQLiteGameStore(GameStore):
    """SQLite-based game store."""

    def __init__(self, database_uri: str = "instance/statecraft.db"):
        """Initialize store.

        Args:
            database_uri: Path to SQLite database file
        """
        self.database_path = Path(database_uri)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = dict_factory
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        conn.commit()
        conn.close()

    def _fetch(self, query: str, params: tuple) -> list[dict]:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()
        return rows

    def _require_game(self, cursor: sqlite3.Cursor, game_id: str) -> dict:
        cursor.execute("SELECT id, turn, data FROM games WHERE id = ?", (game_id,))
        row = cursor.fetchone()
        if row is None:
            raise ValueError(f"Game not found: {game_id}")
        return row

    # -------------------------------------------------------------------------
    # Row writers shared by create_game and commit_turn
    # -------------------------------------------------------------------------

    @staticmethod
    def _put_stats(cursor: sqlite3.Cursor, game_id: str, rows: list[CountryStats]) -> None:
        for stats in rows:
            cursor.execute("""
                INSERT INTO country_stats (game_id, country_id, turn, data)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(game_id, country_id, turn) DO UPDATE SET data = excluded.data
            """, (game_id, stats.country_id, stats.turn, json.dumps(stats.to_dict())))

    @staticmethod
    def _put_city(cursor: sqlite3.Cursor, game_id: str, city: City, seq: int = 0) -> None:
        cursor.execute("""
            INSERT INTO cities (id, game_id, country_id, seq, data)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(game_id, id) DO UPDATE SET
                country_id = excluded.country_id,
                data = excluded.data
        """, (city.id, game_id, city.country_id, seq, json.dumps(city.to_dict())))

    @staticmethod
    def _put_action(cursor: sqlite3.Cursor, action: Action) -> None:
        cursor.execute("""
            INSERT INTO actions (id, game_id, turn, status, data)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(game_id, id) DO UPDATE SET
                turn = excluded.turn,
                status = excluded.status,
                data = excluded.data
        """, (action.id, action.game_id, action.turn, action.status.value, json.dumps(action.to_dict())))

    @staticmethod
    def _put_deal(cursor: sqlite3.Cursor, game_id: str, deal: Deal) -> None:
        cursor.execute("""
            INSERT INTO deals (id, game_id, status, data)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(game_id, id) DO UPDATE SET
                status = excluded.status,
                data = excluded.data
        """, (deal.id, game_id, deal.status.value, json.dumps(deal.to_dict())))

    # =========================================================================
    # Game lifecycle
    # =========================================================================

    def create_game(
        self,
        game: Game,
        countries: list[Country],
        stats: list[CountryStats],
        cities: list[City],
    ) -> None:
        now = datetime.now(timezone.utc).isoformat()
        header = game.model_copy(update={"created_at": game.created_at or now, "updated_at": now})

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                    INSERT INTO games (id, name, status, turn, data, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    header.id,
                    header.name,
                    header.status.value,
                    header.turn,
                    json.dumps(header.to_dict()),
                    header.created_at,
                    header.updated_at,
                ))
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Game already exists: {game.id}") from e
            for seq, country in enumerate(countries):
                cursor.execute(
                    "INSERT INTO countries (id, game_id, seq, data) VALUES (?, ?, ?, ?)",
                    (country.id, game.id, seq, json.dumps(country.to_dict())),
                )
            self._put_stats(cursor, game.id, stats)
            for seq, city in enumerate(cities):
                self._put_city(cursor, game.id, city, seq)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def load_game(self, game_id: str) -> Game | None:
        rows = self._fetch("SELECT data FROM games WHERE id = ?", (game_id,))
        if not rows:
            return None
        return Game.from_dict(json.loads(rows[0]["data"]))

    def list_games(self) -> list[Game]:
        rows = self._fetch("SELECT data FROM games ORDER BY updated_at DESC", ())
        return [Game.from_dict(json.loads(row["data"])) for row in rows]

    def delete_game(self, game_id: str) -> bool:
        conn = self._get_connection()
        cursor = conn.cursor()
        for table in GAME_TABLES:
            cursor.execute(f"DELETE FROM {table} WHERE game_id = ?", (game_id,))
        cursor.execute("DELETE FROM games WHERE id = ?", (game_id,))
        deleted = cursor.rowcount > 0
        conn.commit()
        conn.close()
        return deleted

    # =========================================================================
    # Snapshot reads
    # =========================================================================

    def load_countries(self, game_id: str) -> list[Country]:
        rows = self._fetch("SELECT data FROM countries WHERE game_id = ? ORDER BY seq", (game_id,))
        return [Country.from_dict(json.loads(row["data"])) for row in rows]

    def load_stats(self, game_id: str, turn: int) -> dict[str, CountryStats]:
        rows = self._fetch(
            "SELECT country_id, data FROM country_stats WHERE game_id = ? AND turn = ?",
            (game_id, turn),
        )
        return {row["country_id"]: CountryStats.from_dict(json.loads(row["data"])) for row in rows}

    def load_pending_actions(self, game_id: str, turn: int) -> list[Action]:
        rows = self._fetch(
            "SELECT data FROM actions WHERE game_id = ? AND turn = ? AND status = ? ORDER BY seq",
            (game_id, turn, ActionStatus.PENDING.value),
        )
        return [Action.from_dict(json.loads(row["data"])) for row in rows]

    def load_action(self, game_id: str, action_id: str) -> Action | None:
        rows = self._fetch("SELECT data FROM actions WHERE game_id = ? AND id = ?", (game_id, action_id))
        if not rows:
            return None
        return Action.from_dict(json.loads(rows[0]["data"]))

    def load_deals(self, game_id: str) -> list[Deal]:
        statuses = sorted(s.value for s in OPEN_DEAL_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        rows = self._fetch(
            f"SELECT data FROM deals WHERE game_id = ? AND status IN ({placeholders}) ORDER BY seq",
            (game_id, *statuses),
        )
        return [Deal.from_dict(json.loads(row["data"])) for row in rows]

    def load_cities(self, game_id: str) -> list[City]:
        rows = self._fetch("SELECT data FROM cities WHERE game_id = ? ORDER BY seq", (game_id,))
        return [City.from_dict(json.loads(row["data"])) for row in rows]

    def load_plans(self, game_id: str) -> dict[str, list[PlanItem]]:
        rows = self._fetch("SELECT country_id, data FROM plans WHERE game_id = ? AND data != '[]'", (game_id,))
        return {row["country_id"]: parse_plan(json.loads(row["data"])) for row in rows}

    def load_executed_steps(self, game_id: str) -> dict[str, list[str]]:
        rows = self._fetch("SELECT country_id, executed FROM plans WHERE game_id = ?", (game_id,))
        return {row["country_id"]: json.loads(row["executed"]) for row in rows if row["executed"] != "[]"}

    def load_cooldowns(self, game_id: str) -> dict[str, int]:
        rows = self._fetch("SELECT pair, turn FROM cooldowns WHERE game_id = ?", (game_id,))
        return {row["pair"]: row["turn"] for row in rows}

    def load_events(self, game_id: str, turn: int | None = None) -> list[TurnEvent]:
        if turn is None:
            rows = self._fetch("SELECT data FROM events WHERE game_id = ? ORDER BY seq", (game_id,))
        else:
            rows = self._fetch(
                "SELECT data FROM events WHERE game_id = ? AND turn = ? ORDER BY seq",
                (game_id, turn),
            )
        return [TurnEvent.from_dict(json.loads(row["data"])) for row in rows]

    # =========================================================================
    # Writes between turns
    # =========================================================================

    def submit_action(self, action: Action) -> None:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            self._require_game(cursor, action.game_id)
            self._put_action(cursor, action)
            conn.commit()
        finally:
            conn.close()

    def record_attack(self, action: Action, stats: CountryStats, city: City) -> None:
        game_id = action.game_id
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            row = self._require_game(cursor, game_id)
            if row["turn"] != action.turn:
                raise StateInconsistencyError(
                    f"Game {game_id} is on turn {row['turn']}, cannot queue an attack for turn {action.turn}"
                )
            self._put_action(cursor, action)
            self._put_stats(cursor, game_id, [stats])
            self._put_city(cursor, game_id, city)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def save_deal(self, deal: Deal) -> None:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            self._require_game(cursor, deal.game_id)
            self._put_deal(cursor, deal.game_id, deal)
            conn.commit()
        finally:
            conn.close()

    def save_plan(self, game_id: str, country_id: str, items: list[PlanItem]) -> None:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            self._require_game(cursor, game_id)
            cursor.execute("""
                INSERT INTO plans (game_id, country_id, data, executed)
                VALUES (?, ?, ?, '[]')
                ON CONFLICT(game_id, country_id) DO UPDATE SET
                    data = excluded.data,
                    executed = '[]'
            """, (game_id, country_id, json.dumps([item.to_dict() for item in items])))
            conn.commit()
        finally:
            conn.close()

    def set_status(self, game_id: str, status: GameStatus) -> None:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            row = self._require_game(cursor, game_id)
            now = datetime.now(timezone.utc).isoformat()
            data = json.loads(row["data"])
            data["status"] = status.value
            data["updatedAt"] = now
            cursor.execute(
                "UPDATE games SET status = ?, data = ?, updated_at = ? WHERE id = ?",
                (status.value, json.dumps(data), now, game_id),
            )
            conn.commit()
        finally:
            conn.close()

    # =========================================================================
    # Turn commit
    # =========================================================================

    def commit_turn(self, commit: TurnCommit) -> None:
        game_id = commit.game_id
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute("SELECT turn, data FROM games WHERE id = ?", (game_id,))
            row = cursor.fetchone()
            if row is None:
                raise StateInconsistencyError(f"Game not found: {game_id}")
            if row["turn"] != commit.turn:
                raise StateInconsistencyError(
                    f"Game {game_id} is on turn {row['turn']}, cannot commit turn {commit.turn}"
                )

            self._put_stats(cursor, game_id, commit.stats)
            self._put_stats(cursor, game_id, commit.next_stats)
            for action in commit.actions:
                self._put_action(cursor, action)
            for deal in commit.deals:
                self._put_deal(cursor, game_id, deal)
            for city in commit.cities:
                self._put_city(cursor, game_id, city)

            cursor.execute("DELETE FROM events WHERE game_id = ? AND turn = ?", (game_id, commit.turn))
            for event in commit.events:
                cursor.execute(
                    "INSERT INTO events (game_id, turn, data) VALUES (?, ?, ?)",
                    (game_id, commit.turn, json.dumps(event.to_dict())),
                )

            cursor.execute("UPDATE plans SET executed = '[]' WHERE game_id = ?", (game_id,))
            for country_id, step_ids in commit.executed_step_ids.items():
                cursor.execute("""
                    INSERT INTO plans (game_id, country_id, data, executed)
                    VALUES (?, ?, '[]', ?)
                    ON CONFLICT(game_id, country_id) DO UPDATE SET executed = excluded.executed
                """, (game_id, country_id, json.dumps(list(step_ids))))

            cursor.execute("DELETE FROM cooldowns WHERE game_id = ?", (game_id,))
            for pair, turn in commit.cooldowns.items():
                cursor.execute(
                    "INSERT INTO cooldowns (game_id, pair, turn) VALUES (?, ?, ?)",
                    (game_id, pair, turn),
                )

            now = datetime.now(timezone.utc).isoformat()
            data = json.loads(row["data"])
            data["turn"] = commit.next_turn
            data["updatedAt"] = now
            cursor.execute(
                "UPDATE games SET turn = ?, data = ?, updated_at = ? WHERE id = ?",
                (commit.next_turn, json.dumps(data), now, game_id),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
