"""Resource production, consumption and storage decay.

Formulas:
    tech_multiplier(L) = TECH_MULTIPLIERS[L] for L <= 5,
                         3.0 + log2(L - 4) * 0.25 above
    food   = floor(pop / 10k * 6.5 * m)
    timber = floor(10 * m),  iron = floor(10 * m * 0.8),  oil = floor(10 * m * 0.5)
    coal   = floor(5 * m * 0.9),  steel = floor(5 * m * 0.6),  gold = floor(5 * m * 0.4)
    copper = floor(8 * m * 0.4)
    then each amount is multiplied by the profile modifier and floored.

    food consumed = ceil(pop / 10k * 5 * (1.1 if overcrowded))
    decay: floor(stock * (1 - decay_rate)) for perishable resources
"""

from __future__ import annotations

import math

from statecraft.economy.profiles import apply_profile_to_production
from statecraft.economy.resources import RESOURCES
from statecraft.models.country import CountryStats
from statecraft.parameters import (
    BASE_CAPACITY,
    BASE_FOOD_PER_POP,
    BASE_INDUSTRIAL_OUTPUT,
    CAPACITY_PER_INFRASTRUCTURE,
    COPPER_BASE_OUTPUT,
    EXTRACTION_FACTORS,
    FOOD_PER_10K_POPULATION,
    OVERCROWDING_FOOD_PENALTY,
    POPULATION_UNIT,
    RESOURCE_EXTRACTION_RATE,
    TECH_MULTIPLIERS,
    TECH_TAIL_BASE,
    TECH_TAIL_SLOPE,
)


def tech_multiplier(level: int) -> float:
    """Production multiplier for a technology level.

    Examples:
        >>> tech_multiplier(0)
        1.0
        >>> tech_multiplier(3)
        2.0
        >>> tech_multiplier(6)
        3.25
    """
    level = max(0, int(level))
    if level < len(TECH_MULTIPLIERS):
        return TECH_MULTIPLIERS[level]
    return TECH_TAIL_BASE + math.log2(level - 4) * TECH_TAIL_SLOPE


def population_capacity(infrastructure_level: int) -> int:
    """Population a country can hold before it is overcrowded."""
    return BASE_CAPACITY + infrastructure_level * CAPACITY_PER_INFRASTRUCTURE


def is_overcrowded(stats: CountryStats) -> bool:
    return stats.population > population_capacity(stats.infrastructure_level)


def base_production(stats: CountryStats) -> dict[str, int]:
    """Production before profile modifiers."""
    m = tech_multiplier(stats.technology_level)
    population_units = stats.population / POPULATION_UNIT
    return {
        "food": math.floor(population_units * BASE_FOOD_PER_POP * m),
        "timber": math.floor(RESOURCE_EXTRACTION_RATE * m * EXTRACTION_FACTORS["timber"]),
        "iron": math.floor(RESOURCE_EXTRACTION_RATE * m * EXTRACTION_FACTORS["iron"]),
        "oil": math.floor(RESOURCE_EXTRACTION_RATE * m * EXTRACTION_FACTORS["oil"]),
        "coal": math.floor(BASE_INDUSTRIAL_OUTPUT * m * EXTRACTION_FACTORS["coal"]),
        "steel": math.floor(BASE_INDUSTRIAL_OUTPUT * m * EXTRACTION_FACTORS["steel"]),
        "gold": math.floor(BASE_INDUSTRIAL_OUTPUT * m * EXTRACTION_FACTORS["gold"]),
        "copper": math.floor(COPPER_BASE_OUTPUT * m * EXTRACTION_FACTORS["copper"]),
    }


def compute_production(stats: CountryStats) -> dict[str, int]:
    """Resources produced this turn, after technology and profile."""
    return apply_profile_to_production(base_production(stats), stats.resource_profile)


def food_required(stats: CountryStats) -> int:
    """Food the population needs this turn."""
    consumption = stats.population / POPULATION_UNIT * FOOD_PER_10K_POPULATION
    if is_overcrowded(stats):
        consumption *= OVERCROWDING_FOOD_PENALTY
    return math.ceil(consumption)


def compute_consumption(stats: CountryStats) -> dict[str, int]:
    """Resources the country must consume this turn (food only)."""
    return {"food": food_required(stats)}


def apply_decay(resources: dict[str, int]) -> dict[str, int]:
    """Spoil perishable stockpiles."""
    decayed = {}
    for resource_id, amount in resources.items():
        definition = RESOURCES.get(resource_id)
        if definition is not None and definition.decay_rate > 0:
            decayed[resource_id] = math.floor(amount * (1 - definition.decay_rate))
        else:
            decayed[resource_id] = amount
    return decayed
