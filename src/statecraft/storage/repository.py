"""Abstract game store interface for Statecraft.

The turn engine reads a full snapshot through these load methods and writes
a whole turn back with commit_turn(). Both the JSON file backend and the
SQLite backend implement this interface, so the CLI and the engine never
need to know which backend is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from statecraft.models import (
    Action,
    City,
    Country,
    CountryStats,
    Deal,
    DealStatus,
    Game,
    PlanItem,
    TurnCommit,
    TurnEvent,
)
from statecraft.models.game import GameStatus

OPEN_DEAL_STATUSES = frozenset({DealStatus.PROPOSED, DealStatus.ACCEPTED, DealStatus.ACTIVE})
"""Deals the engine still has to look at; the rest are history."""


class GameStore(ABC):
    """Abstract base class for game state storage."""

    # =========================================================================
    # Game lifecycle
    # =========================================================================

    @abstractmethod
    def create_game(
        self,
        game: Game,
        countries: list[Country],
        stats: list[CountryStats],
        cities: list[City],
    ) -> None:
        """Persist a brand new game.

        Raises:
            ValueError: If a game with the same id already exists
        """
        pass

    @abstractmethod
    def load_game(self, game_id: str) -> Game | None:
        """Load the game header, or None if not found."""
        pass

    @abstractmethod
    def list_games(self) -> list[Game]:
        """List all games, most recently updated first."""
        pass

    @abstractmethod
    def delete_game(self, game_id: str) -> bool:
        """Delete a game and everything recorded for it.

        Returns:
            True if deleted, False if not found
        """
        pass

    # =========================================================================
    # Snapshot reads
    # =========================================================================

    @abstractmethod
    def load_countries(self, game_id: str) -> list[Country]:
        pass

    @abstractmethod
    def load_stats(self, game_id: str, turn: int) -> dict[str, CountryStats]:
        """Load the stats rows for one turn, keyed by country id."""
        pass

    @abstractmethod
    def load_pending_actions(self, game_id: str, turn: int) -> list[Action]:
        """Load pending actions for a turn in submission order."""
        pass

    @abstractmethod
    def load_action(self, game_id: str, action_id: str) -> Action | None:
        """Load one action by id whatever its status, or None if not found."""
        pass

    @abstractmethod
    def load_deals(self, game_id: str) -> list[Deal]:
        """Load open deals (proposed, accepted or active) in creation order."""
        pass

    @abstractmethod
    def load_cities(self, game_id: str) -> list[City]:
        pass

    @abstractmethod
    def load_plans(self, game_id: str) -> dict[str, list[PlanItem]]:
        """Load each country's current plan, keyed by country id."""
        pass

    @abstractmethod
    def load_executed_steps(self, game_id: str) -> dict[str, list[str]]:
        """Load the ids of plan steps each country has already executed."""
        pass

    @abstractmethod
    def load_cooldowns(self, game_id: str) -> dict[str, int]:
        """Load the offer cooldown table ("ai_id:player_id" -> turn)."""
        pass

    @abstractmethod
    def load_events(self, game_id: str, turn: int | None = None) -> list[TurnEvent]:
        """Load the turn history, for one turn or for the whole game."""
        pass

    # =========================================================================
    # Writes between turns
    # =========================================================================

    @abstractmethod
    def submit_action(self, action: Action) -> None:
        """Queue an action for its turn.

        Raises:
            ValueError: If the game does not exist
        """
        pass

    @abstractmethod
    def record_attack(self, action: Action, stats: CountryStats, city: City) -> None:
        """Queue a paid attack in one write.

        Stores the attack, the attacker's charged stats row and the flagged
        target city together, or nothing.

        Raises:
            ValueError: If the game does not exist
            StateInconsistencyError: If the game is no longer on ``action.turn``
        """
        pass

    @abstractmethod
    def save_deal(self, deal: Deal) -> None:
        """Insert or replace a deal (e.g. a player accepting an offer)."""
        pass

    @abstractmethod
    def save_plan(self, game_id: str, country_id: str, items: list[PlanItem]) -> None:
        """Replace a country's plan and reset its executed step tracking."""
        pass

    @abstractmethod
    def set_status(self, game_id: str, status: GameStatus) -> None:
        pass

    # =========================================================================
    # Turn commit
    # =========================================================================

    @abstractmethod
    def commit_turn(self, commit: TurnCommit) -> None:
        """Write a resolved turn atomically.

        Either every part of the commit is stored and the game moves to
        ``commit.next_turn``, or nothing changes.

        Raises:
            StateInconsistencyError: If the game is missing or no longer on
                ``commit.turn``
        """
        pass
