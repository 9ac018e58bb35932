"""Combat resolution.

Both sides' committed strength is converted to effective strength with the
same technology and profile multipliers used for recruitment display, the
defender gets a 20% terrain bonus, and the attacker's win chance follows a
logistic curve of the strength ratio:

    ratio = attacker_effective / (defender_effective * 1.2)
    ratio >= 3.0  -> 0.95
    ratio <= 0.33 -> 0.05
    otherwise     -> 1 / (1 + exp(-2.5 * (ratio - 1)))

Both sides take losses; the loser loses more. A captured city changes owner
together with its population and per-turn yields.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from statecraft.economy.military import effective_strength
from statecraft.models.country import City, CountryStats
from statecraft.parameters import (
    ATTACKER_FAIL_LOSSES,
    ATTACKER_WIN_LOSSES,
    DEFENDER_HOLD_LOSSES,
    DEFENDER_LOSS_ON_CAPTURE,
    DEFENSE_BASE_ALLOCATION,
    DEFENSE_BONUS,
    DEFENSE_MAX_ALLOCATION,
    DEFENSE_MILITARISATION_SWING,
    DEFENSE_MIN_ALLOCATION,
    DEFENSE_PER_CITY_VALUE,
    MAX_WIN_CHANCE,
    MIN_WIN_CHANCE,
    POPULATION_UNIT,
    SIGMOID_STEEPNESS,
    WIN_CHANCE_HIGH_RATIO,
    WIN_CHANCE_LOW_RATIO,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Defense
# =============================================================================


def city_value(city: City) -> int:
    """Strategic value of a city on a 1-10 scale.

    Resources count double relative to population (in 10k units).
    """
    resource_value = sum(city.per_turn_resources.values())
    total = resource_value * 2 + city.population / POPULATION_UNIT
    return min(10, max(1, math.floor(total / 5)))


def default_defense_percentage(defender: CountryStats, city: City) -> int:
    """Share of strength (20-80%) a defender commits without an explicit choice."""
    percentage = DEFENSE_BASE_ALLOCATION + city_value(city) * DEFENSE_PER_CITY_VALUE
    military_ratio = defender.military_strength / max(defender.population / POPULATION_UNIT, 1)
    if military_ratio > 2:
        percentage += DEFENSE_MILITARISATION_SWING
    elif military_ratio < 0.5:
        percentage -= DEFENSE_MILITARISATION_SWING
    return max(DEFENSE_MIN_ALLOCATION, min(DEFENSE_MAX_ALLOCATION, percentage))


def defense_allocation(defender: CountryStats, city: City, requested: int | None = None) -> int:
    """Strength the defender commits to a battle.

    A requested allocation is honoured when it does not exceed the
    defender's military strength; otherwise the rule-based default is used.
    The allocation is raw strength: resolve_battle() applies technology.
    """
    if requested is not None:
        if 0 <= requested <= defender.military_strength:
            return requested
        logger.warning(
            f"Defense allocation {requested} for {defender.country_id} exceeds "
            f"strength {defender.military_strength}, using default"
        )
    percentage = default_defense_percentage(defender, city)
    return math.floor(defender.military_strength * percentage / 100)


# =============================================================================
# Battle
# =============================================================================


def win_chance(attacker_effective: float, defender_effective: float) -> float:
    """Attacker's probability of taking the city.

    Examples:
        >>> win_chance(100, 0)
        0.95
        >>> round(win_chance(120, 100), 2)
        0.5
    """
    adjusted_defender = defender_effective * DEFENSE_BONUS
    ratio = attacker_effective / adjusted_defender if adjusted_defender > 0 else math.inf
    if ratio >= WIN_CHANCE_HIGH_RATIO:
        return MAX_WIN_CHANCE
    if ratio <= WIN_CHANCE_LOW_RATIO:
        return MIN_WIN_CHANCE
    return 1 / (1 + math.exp(-SIGMOID_STEEPNESS * (ratio - 1)))


@dataclass(frozen=True)
class CombatResult:
    """Outcome of one battle.

    Attributes:
        attacker_id: Attacking country
        defender_id: Defending country
        city_id: City fought over
        attacker_wins: True when the city was captured
        attacker_strength: Strength the attacker committed
        defender_strength: Strength the defender committed
        attacker_effective: Attacker's effective strength
        defender_effective: Defender's effective strength (before terrain bonus)
        attacker_losses: Strength the attacker lost
        defender_losses: Strength the defender lost
        win_chance: Attacker's win probability
    """

    attacker_id: str
    defender_id: str
    city_id: str
    attacker_wins: bool
    attacker_strength: int
    defender_strength: int
    attacker_effective: int
    defender_effective: int
    attacker_losses: int
    defender_losses: int
    win_chance: float


def _loss(strength: int, loss_range: tuple[float, float], rng: Callable[[], float]) -> int:
    low, high = loss_range
    return math.floor(strength * (low + rng() * (high - low)))


def resolve_battle(
    attacker: CountryStats,
    defender: CountryStats,
    city: City,
    attacker_strength: int,
    defender_strength: int,
    rng: Callable[[], float],
) -> CombatResult:
    """Roll one battle. Stats are not modified.

    Args:
        attacker: Attacker's stats
        defender: Defender's stats
        city: Target city
        attacker_strength: Strength the attacker committed
        defender_strength: Strength the defender committed
        rng: Float source in [0, 1); three draws are made

    Returns:
        CombatResult with winner and losses
    """
    attacker_effective = effective_strength(attacker_strength, attacker)
    defender_effective = effective_strength(defender_strength, defender)
    chance = win_chance(attacker_effective, defender_effective)
    attacker_wins = rng() < chance

    if attacker_wins:
        attacker_losses = _loss(attacker_strength, ATTACKER_WIN_LOSSES, rng)
        defender_losses = _loss(defender_strength, DEFENDER_LOSS_ON_CAPTURE, rng)
    else:
        attacker_losses = _loss(attacker_strength, ATTACKER_FAIL_LOSSES, rng)
        defender_losses = _loss(defender_strength, DEFENDER_HOLD_LOSSES, rng)

    return CombatResult(
        attacker_id=attacker.country_id,
        defender_id=defender.country_id,
        city_id=city.id,
        attacker_wins=attacker_wins,
        attacker_strength=attacker_strength,
        defender_strength=defender_strength,
        attacker_effective=attacker_effective,
        defender_effective=defender_effective,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        win_chance=chance,
    )


def apply_losses(stats: CountryStats, losses: int) -> CountryStats:
    updated = stats.copy_stats()
    updated.military_strength = max(0, stats.military_strength - losses)
    return updated


# =============================================================================
# City transfer
# =============================================================================


def transfer_city(
    city: City,
    from_stats: CountryStats,
    to_stats: CountryStats,
) -> tuple[City, CountryStats, CountryStats]:
    """Move a city, its population and its per-turn yields to a new owner.

    Returns:
        (updated city, loser's stats, winner's stats)
    """
    updated_city = city.model_copy(update={"country_id": to_stats.country_id, "is_under_attack": False})

    loser = from_stats.copy_stats()
    loser.population = max(0, from_stats.population - city.population)
    for resource_id, amount in city.per_turn_resources.items():
        loser.resources[resource_id] = max(0, loser.resource(resource_id) - amount)

    winner = to_stats.copy_stats()
    winner.population = to_stats.population + city.population
    for resource_id, amount in city.per_turn_resources.items():
        winner.resources[resource_id] = winner.resource(resource_id) + amount

    return updated_city, loser, winner
