"""Treasury revenue and expenses.

Technology does not affect tax; infrastructure improves collection and
trade efficiency, the resource profile scales both.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from statecraft.economy.production import is_overcrowded, population_capacity
from statecraft.models.country import CountryStats
from statecraft.parameters import (
    BASE_TAX_PER_CITIZEN,
    BASE_TRADE_CAPACITY,
    INFRASTRUCTURE_MAINTENANCE_PER_LEVEL,
    INFRASTRUCTURE_TAX_EFFICIENCY,
    MAINTENANCE_COST_MULTIPLIER,
    MILITARY_UPKEEP_PER_STRENGTH,
    OVERCROWDING_TAX_PENALTY,
    POPULATION_UNIT,
    TRADE_CAPACITY_PER_LEVEL,
    TRADE_EFFICIENCY_PER_LEVEL,
    TRADE_INCOME_MULTIPLIER,
)


@dataclass(frozen=True)
class BudgetBreakdown:
    """One turn's revenue and expenses for a country."""

    tax_revenue: int
    trade_revenue: int
    maintenance_cost: int
    military_upkeep: float
    infrastructure_cost: int
    is_overcrowded: bool
    population_capacity: int

    @property
    def total_revenue(self) -> int:
        return self.tax_revenue + self.trade_revenue

    @property
    def total_expenses(self) -> float:
        return self.maintenance_cost + self.military_upkeep + self.infrastructure_cost

    @property
    def net(self) -> float:
        return self.total_revenue - self.total_expenses


def tax_revenue(stats: CountryStats) -> int:
    """Tax from population, scaled by infrastructure, crowding and profile."""
    population_units = stats.population / POPULATION_UNIT
    infra_efficiency = 1 + stats.infrastructure_level * INFRASTRUCTURE_TAX_EFFICIENCY
    crowding = OVERCROWDING_TAX_PENALTY if is_overcrowded(stats) else 1.0
    profile_tax = stats.resource_profile.tax if stats.resource_profile else 1.0
    return math.floor(
        population_units * BASE_TAX_PER_CITIZEN * infra_efficiency * crowding * profile_tax
    )


def trade_revenue(stats: CountryStats, active_deals_value: float) -> int:
    """Income from the market value of active deals."""
    if not active_deals_value:
        return 0
    efficiency = 1 + stats.infrastructure_level * TRADE_EFFICIENCY_PER_LEVEL
    profile_trade = stats.resource_profile.trade if stats.resource_profile else 1.0
    return math.floor(active_deals_value * efficiency * profile_trade * TRADE_INCOME_MULTIPLIER)


def trade_capacity(infrastructure_level: int) -> int:
    """Number of concurrent trade deals infrastructure supports."""
    return BASE_TRADE_CAPACITY + infrastructure_level * TRADE_CAPACITY_PER_LEVEL


def compute_budget(stats: CountryStats, active_deals_value: float = 0) -> BudgetBreakdown:
    """Compute the country's budget breakdown for this turn.

    Args:
        stats: Country stats at the start of the turn
        active_deals_value: Market value of the country's active deals

    Returns:
        BudgetBreakdown; ``net`` is the treasury change
    """
    return BudgetBreakdown(
        tax_revenue=tax_revenue(stats),
        trade_revenue=trade_revenue(stats, active_deals_value),
        maintenance_cost=math.floor(max(0.0, stats.budget) * MAINTENANCE_COST_MULTIPLIER),
        military_upkeep=max(0, stats.military_strength) * MILITARY_UPKEEP_PER_STRENGTH,
        infrastructure_cost=stats.infrastructure_level * INFRASTRUCTURE_MAINTENANCE_PER_LEVEL,
        is_overcrowded=is_overcrowded(stats),
        population_capacity=population_capacity(stats.infrastructure_level),
    )
