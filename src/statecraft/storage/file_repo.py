"""File-based game store using JSON documents.

Each game lives in one JSON file in the games directory. Every write
produces a complete new document in a temporary file and swaps it into
place with os.replace(), so a turn commit is all-or-nothing on disk.
"""

from __future__ import annotations

import json
import os
import re
import threading
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


def slugify(text: str) -> str:
    """Convert text to a filename-friendly slug.

    Examples:
        >>> slugify("Northern Front")
        'northern-front'
        >>> slugify("Game #7: Rematch")
        'game-7-rematch'
    """
    text = text.lower()
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def _upsert(rows: list[dict], row: dict) -> None:
    """Replace the row with the same id, or append it."""
    for index, existing in enumerate(rows):
        if existing.get("id") == row["id"]:
            rows[index] = row
            return
    rows.append(row)


class FileGameStore(GameStore):
    """JSON file-based game store.

    Document layout::

        {
          "game": {...},
          "countries": [...],
          "stats": {"<turn>": {"<country id>": {...}}},
          "cities": [...],
          "actions": [...],          # submission order
          "deals": [...],            # creation order
          "plans": {"<country id>": [...]},
          "executedSteps": {"<country id>": [...]},
          "cooldowns": {"<ai id>:<player id>": <turn>},
          "events": {"<turn>": [...]}
        }
    """

    def __init__(self, games_path: str | Path = "games"):
        """Initialize store.

        Args:
            games_path: Path to games directory
        """
        self.games_path = Path(games_path)
        self.games_path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _get_game_path(self, game_id: str) -> Path:
        """Get path to game file."""
        return self.games_path / f"{slugify(game_id) or 'game'}.json"

    def _read(self, game_id: str) -> dict | None:
        path = self._get_game_path(game_id)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, game_id: str, document: dict) -> None:
        path = self._get_game_path(game_id)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
        os.replace(tmp_path, path)

    def _require(self, game_id: str) -> dict:
        document = self._read(game_id)
        if document is None:
            raise ValueError(f"Game not found: {game_id}")
        return document

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
        with self._lock:
            if self._get_game_path(game.id).exists():
                raise ValueError(f"Game already exists: {game.id}")
            now = datetime.now(timezone.utc).isoformat()
            header = game.model_copy(update={
                "created_at": game.created_at or now,
                "updated_at": now,
            })
            document = {
                "game": header.to_dict(),
                "countries": [c.to_dict() for c in countries],
                "stats": {str(game.turn): {s.country_id: s.to_dict() for s in stats}},
                "cities": [c.to_dict() for c in cities],
                "actions": [],
                "deals": [],
                "plans": {},
                "executedSteps": {},
                "cooldowns": {},
                "events": {},
            }
            self._write(game.id, document)

    def load_game(self, game_id: str) -> Game | None:
        document = self._read(game_id)
        if document is None:
            return None
        return Game.from_dict(document["game"])

    def list_games(self) -> list[Game]:
        games = []
        for path in self.games_path.glob("*.json"):
            with open(path, encoding="utf-8") as f:
                games.append(Game.from_dict(json.load(f)["game"]))
        return sorted(games, key=lambda g: g.updated_at or "", reverse=True)

    def delete_game(self, game_id: str) -> bool:
        with self._lock:
            path = self._get_game_path(game_id)
            if path.exists():
                path.unlink()
                return True
            return False

    # =========================================================================
    # Snapshot reads
    # =========================================================================

    def load_countries(self, game_id: str) -> list[Country]:
        document = self._require(game_id)
        return [Country.from_dict(row) for row in document["countries"]]

    def load_stats(self, game_id: str, turn: int) -> dict[str, CountryStats]:
        document = self._require(game_id)
        rows = document["stats"].get(str(turn), {})
        return {country_id: CountryStats.from_dict(row) for country_id, row in rows.items()}

    def load_pending_actions(self, game_id: str, turn: int) -> list[Action]:
        document = self._require(game_id)
        actions = [Action.from_dict(row) for row in document["actions"]]
        return [a for a in actions if a.turn == turn and a.status == ActionStatus.PENDING]

    def load_action(self, game_id: str, action_id: str) -> Action | None:
        document = self._require(game_id)
        for row in document["actions"]:
            if row.get("id") == action_id:
                return Action.from_dict(row)
        return None

    def load_deals(self, game_id: str) -> list[Deal]:
        document = self._require(game_id)
        deals = [Deal.from_dict(row) for row in document["deals"]]
        return [d for d in deals if d.status in OPEN_DEAL_STATUSES]

    def load_cities(self, game_id: str) -> list[City]:
        document = self._require(game_id)
        return [City.from_dict(row) for row in document["cities"]]

    def load_plans(self, game_id: str) -> dict[str, list[PlanItem]]:
        document = self._require(game_id)
        return {country_id: parse_plan(items) for country_id, items in document["plans"].items()}

    def load_executed_steps(self, game_id: str) -> dict[str, list[str]]:
        document = self._require(game_id)
        return {k: list(v) for k, v in document["executedSteps"].items()}

    def load_cooldowns(self, game_id: str) -> dict[str, int]:
        return dict(self._require(game_id)["cooldowns"])

    def load_events(self, game_id: str, turn: int | None = None) -> list[TurnEvent]:
        document = self._require(game_id)
        if turn is not None:
            rows = document["events"].get(str(turn), [])
        else:
            rows = [row for key in sorted(document["events"], key=int) for row in document["events"][key]]
        return [TurnEvent.from_dict(row) for row in rows]

    # =========================================================================
    # Writes between turns
    # =========================================================================

    def submit_action(self, action: Action) -> None:
        with self._lock:
            document = self._require(action.game_id)
            _upsert(document["actions"], action.to_dict())
            self._write(action.game_id, document)

    def record_attack(self, action: Action, stats: CountryStats, city: City) -> None:
        with self._lock:
            document = self._require(action.game_id)
            current_turn = document["game"]["turn"]
            if current_turn != action.turn:
                raise StateInconsistencyError(
                    f"Game {action.game_id} is on turn {current_turn}, cannot queue an attack for turn {action.turn}"
                )
            _upsert(document["actions"], action.to_dict())
            document["stats"].setdefault(str(action.turn), {})[stats.country_id] = stats.to_dict()
            _upsert(document["cities"], city.to_dict())
            self._write(action.game_id, document)

    def save_deal(self, deal: Deal) -> None:
        with self._lock:
            document = self._require(deal.game_id)
            _upsert(document["deals"], deal.to_dict())
            self._write(deal.game_id, document)

    def save_plan(self, game_id: str, country_id: str, items: list[PlanItem]) -> None:
        with self._lock:
            document = self._require(game_id)
            document["plans"][country_id] = [item.to_dict() for item in items]
            document["executedSteps"].pop(country_id, None)
            self._write(game_id, document)

    def set_status(self, game_id: str, status: GameStatus) -> None:
        with self._lock:
            document = self._require(game_id)
            document["game"]["status"] = status.value
            document["game"]["updatedAt"] = datetime.now(timezone.utc).isoformat()
            self._write(game_id, document)

    # =========================================================================
    # Turn commit
    # =========================================================================

    def commit_turn(self, commit: TurnCommit) -> None:
        with self._lock:
            document = self._read(commit.game_id)
            if document is None:
                raise StateInconsistencyError(f"Game not found: {commit.game_id}")
            current_turn = document["game"]["turn"]
            if current_turn != commit.turn:
                raise StateInconsistencyError(
                    f"Game {commit.game_id} is on turn {current_turn}, cannot commit turn {commit.turn}"
                )

            document["stats"][str(commit.turn)] = {s.country_id: s.to_dict() for s in commit.stats}
            document["stats"][str(commit.next_turn)] = {s.country_id: s.to_dict() for s in commit.next_stats}
            for action in commit.actions:
                _upsert(document["actions"], action.to_dict())
            for deal in commit.deals:
                _upsert(document["deals"], deal.to_dict())
            for city in commit.cities:
                _upsert(document["cities"], city.to_dict())
            document["events"][str(commit.turn)] = [e.to_dict() for e in commit.events]
            document["executedSteps"] = {k: list(v) for k, v in commit.executed_step_ids.items()}
            document["cooldowns"] = dict(commit.cooldowns)
            document["game"]["turn"] = commit.next_turn
            document["game"]["updatedAt"] = datetime.now(timezone.utc).isoformat()

            self._write(commit.game_id, document)
