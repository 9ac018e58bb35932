"""Population growth and decline."""

from __future__ import annotations

import math

from statecraft.economy.production import is_overcrowded
from statecraft.models.country import CountryStats
from statecraft.parameters import (
    FOOD_PER_10K_POPULATION,
    FOOD_SURPLUS_GROWTH_BONUS,
    GROWTH_CAP_MULTIPLIER,
    GROWTH_RATE_BASE,
    OVERCROWDING_GROWTH_PENALTY,
    POPULATION_UNIT,
    STARVATION_DECLINE_RATE,
    STARVATION_THRESHOLD,
)


def compute_population_delta(stats: CountryStats, food_stock_after: int, food_consumed: int) -> int:
    """Population change for one turn.

    Growth = base 2% (halved when overcrowded)
           + 1% of population per full 100 food left after consumption
           - 3% when less than 80% of required food was actually eaten,
    capped at 3% of population and floored.

    Args:
        stats: Stats at the start of the turn
        food_stock_after: Food in stock after production and consumption
        food_consumed: Food actually eaten this turn

    Returns:
        Signed population delta
    """
    population = stats.population
    base_growth = population * GROWTH_RATE_BASE
    if is_overcrowded(stats):
        base_growth *= OVERCROWDING_GROWTH_PENALTY

    food_bonus = 0.0
    if food_stock_after > 0:
        food_bonus = math.floor(food_stock_after / 100) * FOOD_SURPLUS_GROWTH_BONUS * population

    required = population / POPULATION_UNIT * FOOD_PER_10K_POPULATION
    food_ratio = food_consumed / required if required > 0 else 1.0
    starvation = math.floor(population * STARVATION_DECLINE_RATE) if food_ratio < STARVATION_THRESHOLD else 0

    total = base_growth + food_bonus - starvation
    cap = population * GROWTH_CAP_MULTIPLIER * GROWTH_RATE_BASE
    return math.floor(min(total, cap))
