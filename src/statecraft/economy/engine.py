"""Per-country economic turn.

Order of operations:
    1. Production (technology and profile applied)
    2. Budget breakdown on the start-of-turn stats
    3. Consumption: food eaten is capped by what is actually in stock
    4. Stock update, then storage decay
    5. Population change from food left and food eaten
    6. Treasury change

The function is pure: it returns new stats and never touches the input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from statecraft.economy.budget import BudgetBreakdown, compute_budget
from statecraft.economy.population import compute_population_delta
from statecraft.economy.production import apply_decay, compute_consumption, compute_production
from statecraft.models.country import CountryStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EconomicUpdate:
    """Result of one country's economic turn.

    Attributes:
        country_id: Country processed
        stats: Stats after production, consumption, decay, growth and budget
        budget: Revenue and expense breakdown
        produced: Resources produced
        consumed: Resources actually consumed
        population_change: Signed population delta
        messages: Human-readable summaries for the turn log
    """

    country_id: str
    stats: CountryStats
    budget: BudgetBreakdown
    produced: dict[str, int] = field(default_factory=dict)
    consumed: dict[str, int] = field(default_factory=dict)
    population_change: int = 0
    messages: tuple[str, ...] = ()


def process_economic_turn(stats: CountryStats, active_deals_value: float = 0) -> EconomicUpdate:
    """Run production, consumption, growth and budget for one country.

    Args:
        stats: Country stats at the start of the turn
        active_deals_value: Market value of the country's active deals

    Returns:
        EconomicUpdate with the new stats
    """
    produced = compute_production(stats)
    budget = compute_budget(stats, active_deals_value)
    required = compute_consumption(stats)

    resources = dict(stats.resources)
    for resource_id, amount in produced.items():
        resources[resource_id] = resources.get(resource_id, 0) + amount

    consumed: dict[str, int] = {}
    for resource_id, amount in required.items():
        available = max(0, resources.get(resource_id, 0))
        eaten = min(available, amount)
        consumed[resource_id] = eaten
        resources[resource_id] = available - eaten

    food_after = resources.get("food", 0)
    population_change = compute_population_delta(stats, food_after, consumed.get("food", 0))
    resources = apply_decay(resources)

    messages = []
    if population_change > 0:
        messages.append(f"Population grew by {population_change:,}")
    elif population_change < 0:
        messages.append(f"Population declined by {abs(population_change):,} due to food shortage")
    if budget.net > 0:
        messages.append(f"Treasury increased by ${budget.net:,.0f}")
    elif budget.net < 0:
        messages.append(f"Treasury decreased by ${abs(budget.net):,.0f}")

    updated = stats.copy_stats()
    updated.resources = resources
    updated.population = max(0, stats.population + population_change)
    updated.budget = stats.budget + budget.net

    logger.debug(
        f"Economy {stats.country_id}: produced={produced} consumed={consumed} "
        f"population={population_change:+d} budget={budget.net:+.1f}"
    )
    return EconomicUpdate(
        country_id=stats.country_id,
        stats=updated,
        budget=budget,
        produced=produced,
        consumed=consumed,
        population_change=population_change,
        messages=tuple(messages),
    )
