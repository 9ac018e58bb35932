"""Country, per-turn statistics, resource profile and city models.

A Country is identity only. Everything that changes from turn to turn lives
in CountryStats, of which exactly one row exists per (country, turn). Turn
N+1's row is derived from turn N's after economics, trades and actions.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator

from statecraft.models.base import StatecraftModel
from statecraft.parameters import DIPLOMACY_SCORE_MAX, DIPLOMACY_SCORE_MIN, DIPLOMACY_SCORE_NEUTRAL


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value to the specified range."""
    return max(min_val, min(max_val, value))


class Country(StatecraftModel):
    """A nation taking part in a game.

    Attributes:
        id: Unique country identifier
        game_id: Game the country belongs to
        name: Display name
        is_player_controlled: True for the human player, False for AI nations
        color: Optional map color
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    game_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    is_player_controlled: bool = Field(default=False)
    color: str | None = Field(default=None)


class ResourceModifier(StatecraftModel):
    """Production modifier for one resource.

    Attributes:
        resource_id: Resource this modifier applies to
        multiplier: Production multiplier (2.0 = double output)
        starting_bonus: One-time stock adjustment at game start (may be negative)
    """

    model_config = ConfigDict(frozen=True)

    resource_id: str
    multiplier: float = Field(default=1.0, ge=0.0)
    starting_bonus: int = Field(default=0)


class ResourceProfile(StatecraftModel):
    """A country's fixed production and cost specialization.

    Cost modifiers multiply the base cost of the matching action (0.75 means
    25% cheaper). tax, trade and military_effectiveness multiply revenue or
    strength instead.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = Field(default="")
    modifiers: tuple[ResourceModifier, ...] = Field(default=())
    tech_cost: float = Field(default=1.0, gt=0.0)
    infra_cost: float = Field(default=1.0, gt=0.0)
    military_cost: float = Field(default=1.0, gt=0.0)
    tax: float = Field(default=1.0, gt=0.0)
    trade: float = Field(default=1.0, gt=0.0)
    military_effectiveness: float = Field(default=1.0, gt=0.0)

    def modifier_for(self, resource_id: str) -> ResourceModifier | None:
        """Return the modifier for a resource, or None when unmodified."""
        for modifier in self.modifiers:
            if modifier.resource_id == resource_id:
                return modifier
        return None


class CountryStats(StatecraftModel):
    """Snapshot of one country's state for one turn.

    Attributes:
        country_id: Owning country
        turn: Turn this row describes
        population: Citizens
        budget: Treasury
        technology_level: Research level (0+)
        infrastructure_level: Infrastructure level (0+)
        military_strength: Base (untrained-for-tech) strength points
        military_equipment: Equipment stock, carried forward unchanged
        resources: Resource id -> quantity held
        diplomatic_relations: Other country id -> affinity score (0-100)
        resource_profile: Specialization, fixed for the game
    """

    country_id: str = Field(..., min_length=1)
    turn: int = Field(..., ge=1)
    population: int = Field(default=0)
    budget: float = Field(default=0.0)
    technology_level: int = Field(default=0, ge=0)
    infrastructure_level: int = Field(default=0, ge=0)
    military_strength: int = Field(default=0)
    military_equipment: int = Field(default=0)
    resources: dict[str, int] = Field(default_factory=dict)
    diplomatic_relations: dict[str, int] = Field(default_factory=dict)
    resource_profile: ResourceProfile | None = Field(default=None)

    @field_validator("diplomatic_relations", mode="before")
    @classmethod
    def clamp_relations(cls, v: dict | None) -> dict:
        """Clamp relation scores to [0, 100]."""
        if not v:
            return {}
        return {
            k: int(clamp(int(score), DIPLOMACY_SCORE_MIN, DIPLOMACY_SCORE_MAX))
            for k, score in v.items()
        }

    def resource(self, resource_id: str) -> int:
        """Quantity held of a resource (0 when absent)."""
        return self.resources.get(resource_id, 0)

    def relation(self, other_id: str) -> int:
        """Affinity toward another country (neutral when unknown)."""
        return self.diplomatic_relations.get(other_id, DIPLOMACY_SCORE_NEUTRAL)

    def copy_stats(self) -> CountryStats:
        """Deep copy, so mutations never leak into the source row."""
        return self.model_copy(deep=True)

    def clamped(self) -> CountryStats:
        """Return a copy with budget, resources and counts floored to zero."""
        return self.model_copy(
            update={
                "population": max(0, self.population),
                "budget": max(0.0, self.budget),
                "military_strength": max(0, self.military_strength),
                "military_equipment": max(0, self.military_equipment),
                "resources": {k: max(0, v) for k, v in self.resources.items()},
                "diplomatic_relations": dict(self.diplomatic_relations),
            }
        )


class City(StatecraftModel):
    """A city owned by a country.

    Attributes:
        id: Unique city identifier
        game_id: Game the city belongs to
        country_id: Current owner
        name: Display name
        population: Citizens living in the city
        per_turn_resources: Resource id -> amount the city contributes per turn
        is_under_attack: Set when an attack is submitted, cleared on resolution
    """

    id: str = Field(..., min_length=1)
    game_id: str = Field(default="")
    country_id: str = Field(..., min_length=1)
    name: str = Field(default="")
    population: int = Field(default=0, ge=0)
    per_turn_resources: dict[str, int] = Field(default_factory=dict)
    is_under_attack: bool = Field(default=False)
