"""Statecraft resource and economic model.

Pure functions computing per-turn production, consumption, tax revenue,
population change, military effectiveness, action prices and market prices.

Usage:
    from statecraft.economy import process_economic_turn, prices_for_turn

    update = process_economic_turn(stats, active_deals_value=120)
    prices = prices_for_turn(turn, all_stats).market
"""

from .budget import BudgetBreakdown, compute_budget, trade_capacity
from .costs import (
    ActionPrice,
    apply_price,
    infrastructure_requirements,
    military_requirements,
    missing_resources,
    price_attack,
    price_infrastructure,
    price_recruitment,
    price_research,
    research_requirements,
    shortage_penalty,
)
from .engine import EconomicUpdate, process_economic_turn
from .market import (
    MarketPrices,
    black_market_buy_price,
    black_market_sell_price,
    compute_market_prices,
    format_prices,
    prices_for_turn,
    total_stocks,
)
from .military import attack_cost, effective_military_strength, effective_strength, recruitment_cost
from .population import compute_population_delta
from .production import (
    apply_decay,
    compute_consumption,
    compute_production,
    is_overcrowded,
    population_capacity,
    tech_multiplier,
)
from .profiles import (
    PROFILE_NAMES,
    PROFILES,
    apply_starting_bonuses,
    assign_profiles,
    get_profile,
)
from .resources import RESOURCE_IDS, RESOURCES, ResourceCategory, ResourceDefinition, base_value, round_half_up

__all__ = [
    # Registry
    "RESOURCES",
    "RESOURCE_IDS",
    "ResourceCategory",
    "ResourceDefinition",
    "base_value",
    "round_half_up",
    # Profiles
    "PROFILES",
    "PROFILE_NAMES",
    "get_profile",
    "assign_profiles",
    "apply_starting_bonuses",
    # Production / consumption
    "tech_multiplier",
    "compute_production",
    "compute_consumption",
    "apply_decay",
    "population_capacity",
    "is_overcrowded",
    # Budget / population / military
    "BudgetBreakdown",
    "compute_budget",
    "trade_capacity",
    "compute_population_delta",
    "effective_military_strength",
    "effective_strength",
    "recruitment_cost",
    "attack_cost",
    # Action pricing
    "ActionPrice",
    "military_requirements",
    "research_requirements",
    "infrastructure_requirements",
    "missing_resources",
    "shortage_penalty",
    "price_research",
    "price_infrastructure",
    "price_recruitment",
    "price_attack",
    "apply_price",
    # Market
    "MarketPrices",
    "total_stocks",
    "compute_market_prices",
    "black_market_buy_price",
    "black_market_sell_price",
    "prices_for_turn",
    "format_prices",
    # Economic turn
    "EconomicUpdate",
    "process_economic_turn",
]
