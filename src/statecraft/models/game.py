"""Game-level records: the game row, turn events, snapshots and commits.

GameSnapshot is everything the turn processor reads; TurnCommit is
everything the game store writes back after a turn, in one step.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from statecraft.models.actions import Action
from statecraft.models.base import StatecraftModel
from statecraft.models.country import City, Country, CountryStats
from statecraft.models.deals import Deal
from statecraft.models.plans import PlanItem


class GameStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class Game(StatecraftModel):
    """A game record.

    Attributes:
        id: Unique game identifier
        name: Display name
        turn: Current (unresolved) turn
        seed: Seed used for profile assignment
        status: active or finished
        created_at: ISO timestamp
        updated_at: ISO timestamp
    """

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    turn: int = Field(default=1, ge=1)
    seed: str = Field(default="")
    status: GameStatus = Field(default=GameStatus.ACTIVE)
    created_at: str | None = Field(default=None)
    updated_at: str | None = Field(default=None)


class TurnEvent(StatecraftModel):
    """One entry in a turn's history log."""

    type: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


class Rejection(StatecraftModel):
    """An action or trade that was skipped, with the reason."""

    id: str
    kind: str
    reason: str


class GameSnapshot(StatecraftModel):
    """Full game state for one turn, as read before processing.

    Attributes:
        game_id: Game being processed
        turn: Turn being resolved
        countries: All countries in the game
        stats: Country id -> stats row for ``turn``
        cities: All cities in the game
        pending_actions: Pending actions for ``turn``, in submission order
        deals: Proposed, accepted and active deals
        plans: Country id -> ordered plan items
        executed_step_ids: Country id -> ids of plan steps already executed
        cooldowns: "ai_id:player_id" -> last turn an offer was made
    """

    game_id: str
    turn: int = Field(..., ge=1)
    countries: list[Country] = Field(default_factory=list)
    stats: dict[str, CountryStats] = Field(default_factory=dict)
    cities: list[City] = Field(default_factory=list)
    pending_actions: list[Action] = Field(default_factory=list)
    deals: list[Deal] = Field(default_factory=list)
    plans: dict[str, list[PlanItem]] = Field(default_factory=dict)
    executed_step_ids: dict[str, list[str]] = Field(default_factory=dict)
    cooldowns: dict[str, int] = Field(default_factory=dict)

    def country(self, country_id: str) -> Country | None:
        for country in self.countries:
            if country.id == country_id:
                return country
        return None

    def is_player(self, country_id: str) -> bool:
        """True when the country is controlled by a human player."""
        country = self.country(country_id)
        return country is not None and country.is_player_controlled


class TurnCommit(StatecraftModel):
    """Everything written back to the store after a turn.

    Attributes:
        game_id: Game being advanced
        turn: Turn that was resolved
        next_turn: Turn the game moves to
        stats: Final stats rows for ``turn``
        next_stats: New stats rows for ``next_turn``
        actions: Actions with terminal statuses
        deals: Deals with updated statuses, plus newly created deals
        cities: Cities after ownership changes
        events: Ordered turn history
        executed_step_ids: Updated plan execution tracking
        cooldowns: Updated offer cooldown table
    """

    game_id: str
    turn: int = Field(..., ge=1)
    next_turn: int = Field(..., ge=2)
    stats: list[CountryStats] = Field(default_factory=list)
    next_stats: list[CountryStats] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    deals: list[Deal] = Field(default_factory=list)
    cities: list[City] = Field(default_factory=list)
    events: list[TurnEvent] = Field(default_factory=list)
    executed_step_ids: dict[str, list[str]] = Field(default_factory=dict)
    cooldowns: dict[str, int] = Field(default_factory=dict)
