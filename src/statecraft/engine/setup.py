"""New game setup.

Every country starts with the same total credit value, distributed
differently: population, technology, infrastructure, military and food are
rolled within fixed ranges and priced, and whatever value is left becomes
budget and a spread of other resources. Resource profiles are assigned
without replacement and their starting bonuses applied on top.

Everything is drawn from SeededRandom streams derived from the game seed,
so the same seed always produces the same game.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from statecraft.economy.production import compute_production
from statecraft.economy.profiles import apply_starting_bonuses, assign_profiles, get_profile
from statecraft.economy.resources import round_half_up
from statecraft.engine.rng import SeededRandom
from statecraft.models.country import City, Country, CountryStats, ResourceProfile
from statecraft.models.game import Game
from statecraft.parameters import (
    CITIES_PER_COUNTRY,
    DIPLOMACY_SCORE_NEUTRAL,
    STARTING_BUDGET,
    STARTING_BUDGET_SHARE,
    STARTING_FOOD,
    STARTING_INFRASTRUCTURE,
    STARTING_MAX_ATTEMPTS,
    STARTING_MILITARY,
    STARTING_POPULATION,
    STARTING_RESOURCE_WEIGHTS,
    STARTING_STAT_VALUES,
    STARTING_TECHNOLOGY,
    STARTING_TOTAL_VALUE,
)

logger = logging.getLogger(__name__)

CITY_NAME_PARTS = (
    ("North", "South", "East", "West", "New", "Old", "High", "Low"),
    ("haven", "ford", "gate", "port", "field", "mere", "crest", "wick"),
)


@dataclass(frozen=True)
class CountrySpec:
    """A country to create in a new game."""

    name: str
    is_player: bool = False
    color: str | None = None


@dataclass
class NewGame:
    """Everything a new game needs written to the store."""

    game: Game
    countries: list[Country] = field(default_factory=list)
    stats: list[CountryStats] = field(default_factory=list)
    cities: list[City] = field(default_factory=list)


def random_int(rng: Callable[[], float], low: int, high: int, round_to: int = 1) -> int:
    """Integer in [low, high], rounded to the nearest multiple of ``round_to``."""
    value = math.floor(rng() * (high - low + 1)) + low
    return round_half_up(value / round_to) * round_to


def _distribute_resources(rng: Callable[[], float], total_value: float) -> dict[str, int]:
    resources: dict[str, int] = {}
    remaining = total_value
    for resource_id, (unit_value, weight) in STARTING_RESOURCE_WEIGHTS.items():
        if remaining <= 0:
            break
        allocation = rng() * weight * (remaining / 10)
        amount = max(0, math.floor(allocation / unit_value))
        resources[resource_id] = amount
        remaining -= amount * unit_value
    return resources


def generate_starting_stats(
    country_id: str,
    profile: ResourceProfile | None,
    rng: Callable[[], float],
    turn: int = 1,
) -> CountryStats:
    """Roll value-balanced starting stats for one country.

    Falls back to a balanced default when no roll lands in the budget range.
    """
    values = STARTING_STAT_VALUES
    for _ in range(STARTING_MAX_ATTEMPTS):
        population = random_int(rng, *STARTING_POPULATION)
        technology = random_int(rng, *STARTING_TECHNOLOGY)
        infrastructure = random_int(rng, *STARTING_INFRASTRUCTURE)
        military = random_int(rng, *STARTING_MILITARY)
        food = random_int(rng, *STARTING_FOOD)

        consumed = (
            population / 10000 * values["population_per_10k"]
            + technology * values["technology_level"]
            + infrastructure * values["infrastructure_level"]
            + military / 10 * values["military_per_10"]
            + food / 100 * values["food_per_100"]
        )
        remaining = STARTING_TOTAL_VALUE - consumed
        min_budget, max_budget = STARTING_BUDGET
        if min_budget <= remaining <= max_budget * 2:
            budget = min(remaining * STARTING_BUDGET_SHARE, max_budget)
            resources = {"food": food, **_distribute_resources(rng, remaining - budget)}
            break
    else:
        logger.warning(f"No balanced start found for {country_id}, using default")
        population, technology, infrastructure, military = 100000, 1, 1, 40
        budget = 5000
        resources = {"food": 300, "timber": 100, "iron": 50, "oil": 30, "gold": 15, "coal": 40, "steel": 25, "copper": 20}

    return CountryStats(
        country_id=country_id,
        turn=turn,
        population=population,
        budget=math.floor(budget),
        technology_level=technology,
        infrastructure_level=infrastructure,
        military_strength=military,
        resources=apply_starting_bonuses(resources, profile),
        resource_profile=profile,
    )


def generate_cities(
    country: Country,
    stats: CountryStats,
    rng: Callable[[], float],
    count: int = CITIES_PER_COUNTRY,
) -> list[City]:
    """Split a country's population and per-turn production across cities.

    Sizes vary between 0.5 and 2.0; the last city takes the rounding
    remainder so the cities always sum to the country totals.
    """
    if count <= 0:
        return []
    sizes = [max(0.5, min(2.0, 0.6 + rng() * 1.2 + (rng() - 0.5) * 0.2)) for _ in range(count)]
    total_size = sum(sizes)
    production = compute_production(stats)

    cities = []
    remaining_population = stats.population
    remaining_resources = dict(production)
    prefixes, suffixes = CITY_NAME_PARTS
    for index, size in enumerate(sizes):
        last = index == count - 1
        if last:
            population = remaining_population
            resources = {k: v for k, v in remaining_resources.items() if v > 0}
        else:
            share = size / total_size
            population = math.floor(stats.population * share)
            resources = {k: math.floor(v * share) for k, v in production.items()}
            remaining_population -= population
            for resource_id, amount in resources.items():
                remaining_resources[resource_id] -= amount
            resources = {k: v for k, v in resources.items() if v > 0}

        name = f"{prefixes[math.floor(rng() * len(prefixes))]}{suffixes[math.floor(rng() * len(suffixes))]}"
        cities.append(City(
            id=f"{country.id}-city-{index + 1}",
            game_id=country.game_id,
            country_id=country.id,
            name=name,
            population=population,
            per_turn_resources=resources,
        ))
    return cities


def setup_game(
    game_id: str,
    name: str,
    countries: Sequence[CountrySpec],
    seed: str | None = None,
    profiles: dict[str, str] | None = None,
    cities_per_country: int = CITIES_PER_COUNTRY,
) -> NewGame:
    """Create a game with countries, starting stats and cities.

    Args:
        game_id: Identifier for the new game
        name: Display name
        countries: Countries to create, in order
        seed: Seed for every random draw (defaults to the game id)
        profiles: Optional country name -> profile name overrides
        cities_per_country: Cities generated for each country

    Returns:
        NewGame ready to be saved
    """
    seed = seed or game_id
    now = datetime.now(timezone.utc).isoformat()
    game = Game(id=game_id, name=name, turn=1, seed=seed, created_at=now, updated_at=now)

    country_rows = [
        Country(
            id=f"{game_id}-c{index + 1}",
            game_id=game_id,
            name=country_spec.name,
            is_player_controlled=country_spec.is_player,
            color=country_spec.color,
        )
        for index, country_spec in enumerate(countries)
    ]
    assigned = assign_profiles([c.id for c in country_rows], SeededRandom(f"{seed}:profiles"))
    for country in country_rows:
        override = (profiles or {}).get(country.name)
        if override:
            profile = get_profile(override)
            if profile is None:
                logger.warning(f"Unknown profile {override!r} for {country.name}, keeping {assigned[country.id].name}")
            else:
                assigned[country.id] = profile

    new_game = NewGame(game=game, countries=country_rows)
    for country in country_rows:
        rng = SeededRandom(f"{seed}:{country.id}")
        stats = generate_starting_stats(country.id, assigned[country.id], rng)
        stats.diplomatic_relations = {
            other.id: DIPLOMACY_SCORE_NEUTRAL for other in country_rows if other.id != country.id
        }
        new_game.stats.append(stats)
        new_game.cities.extend(generate_cities(country, stats, rng, cities_per_country))

    logger.info(f"Set up game {game_id} with {len(country_rows)} countries (seed {seed!r})")
    return new_game
