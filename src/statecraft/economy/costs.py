"""Resource requirements and budget pricing of actions.

This module is the single pricing path for research, infrastructure,
recruitment and attacks. Player requests, AI plans and the trade planner's
shortage detection all call these functions so their numbers agree.

Missing resources do not block an action. Each missing resource type adds
40% to the budget cost (capped at 2.5x); the resources themselves are only
deducted when the full requirement is in stock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from statecraft.economy.military import attack_cost, recruitment_cost
from statecraft.models.country import CountryStats
from statecraft.parameters import (
    INFRA_BASE_COST,
    INFRA_COST_MULTIPLIER,
    MAX_RESEARCH_SPEED_BONUS,
    MAX_RESOURCE_SHORTAGE_PENALTY,
    RECRUIT_RESOURCE_UNIT,
    RESEARCH_SPEED_BONUS_PER_LEVEL,
    RESOURCE_SHORTAGE_PENALTY_PER_TYPE,
    TECH_BASE_COST,
    TECH_COST_MULTIPLIER,
    TECH_LATE_COST_MULTIPLIER,
)


# =============================================================================
# Resource requirements
# =============================================================================


def military_requirements(amount: int, technology_level: int) -> dict[str, int]:
    """Resources needed to recruit ``amount`` strength.

    Requirements scale per 10 strength and shift from iron/timber to
    steel/oil as technology advances.
    """
    base = amount / RECRUIT_RESOURCE_UNIT
    if technology_level <= 1:
        return {"iron": math.ceil(base * 6), "timber": math.ceil(base * 4)}
    if technology_level <= 3:
        return {
            "iron": math.ceil(base * 3),
            "steel": math.ceil(base * 4),
            "oil": math.ceil(base * 2),
        }
    return {
        "steel": math.ceil(base * 4),
        "oil": math.ceil(base * 3),
        "iron": math.ceil(base * 2),
    }


def research_requirements(technology_level: int) -> dict[str, int]:
    """Resources needed to research the next technology level."""
    if technology_level <= 1:
        return {"copper": 10, "coal": 8}
    if technology_level <= 3:
        return {"copper": 8, "coal": 12, "steel": 6}
    return {"steel": 10, "coal": 15, "copper": 5}


def infrastructure_requirements(infrastructure_level: int) -> dict[str, int]:
    """Resources needed to build the next infrastructure level."""
    level = infrastructure_level
    requirements = {"timber": 20 + level * 4, "coal": 15 + level * 3}
    if level >= 2:
        requirements["steel"] = 12 + level * 2
    if level >= 4:
        requirements["oil"] = 5
    return requirements


def missing_resources(required: dict[str, int], stock: dict[str, int]) -> dict[str, int]:
    """Resource id -> shortfall for every requirement not fully in stock."""
    return {
        resource_id: amount - stock.get(resource_id, 0)
        for resource_id, amount in required.items()
        if stock.get(resource_id, 0) < amount
    }


def shortage_penalty(missing_types: int) -> float:
    """Budget multiplier for missing resource types.

    Examples:
        >>> shortage_penalty(0)
        1.0
        >>> shortage_penalty(2)
        1.8
    """
    if missing_types <= 0:
        return 1.0
    return min(1.0 + missing_types * RESOURCE_SHORTAGE_PENALTY_PER_TYPE, MAX_RESOURCE_SHORTAGE_PENALTY)


# =============================================================================
# Pricing
# =============================================================================


@dataclass(frozen=True)
class ActionPrice:
    """Budget and resource cost of one action for one country.

    Attributes:
        cost: Final budget cost (shortage penalty included)
        required: Resources the action consumes when all are in stock
        missing: Shortfall per resource
        penalty: Shortage multiplier that was applied to the base cost
    """

    cost: int
    required: dict[str, int] = field(default_factory=dict)
    missing: dict[str, int] = field(default_factory=dict)
    penalty: float = 1.0

    @property
    def resources_affordable(self) -> bool:
        return not self.missing

    def affordable(self, budget: float) -> bool:
        return budget >= self.cost


def research_base_cost(technology_level: int) -> float:
    """Cost of the next research level before modifiers."""
    if technology_level <= 5:
        return TECH_BASE_COST * TECH_COST_MULTIPLIER**technology_level
    level5 = TECH_BASE_COST * TECH_COST_MULTIPLIER**5
    return level5 * TECH_LATE_COST_MULTIPLIER ** (technology_level - 5)


def price_research(stats: CountryStats) -> ActionPrice:
    level = stats.technology_level
    required = research_requirements(level)
    missing = missing_resources(required, stats.resources)
    penalty = shortage_penalty(len(missing))
    profile_cost = stats.resource_profile.tech_cost if stats.resource_profile else 1.0
    research_bonus = min(MAX_RESEARCH_SPEED_BONUS, level * RESEARCH_SPEED_BONUS_PER_LEVEL)
    cost = math.floor(research_base_cost(level) * profile_cost * (1 - research_bonus) * penalty)
    return ActionPrice(cost=cost, required=required, missing=missing, penalty=penalty)


def price_infrastructure(stats: CountryStats) -> ActionPrice:
    level = stats.infrastructure_level
    required = infrastructure_requirements(level)
    missing = missing_resources(required, stats.resources)
    penalty = shortage_penalty(len(missing))
    profile_cost = stats.resource_profile.infra_cost if stats.resource_profile else 1.0
    cost = math.floor(INFRA_BASE_COST * INFRA_COST_MULTIPLIER**level * profile_cost * penalty)
    return ActionPrice(cost=cost, required=required, missing=missing, penalty=penalty)


def price_recruitment(amount: int, stats: CountryStats) -> ActionPrice:
    required = military_requirements(amount, stats.technology_level)
    missing = missing_resources(required, stats.resources)
    penalty = shortage_penalty(len(missing))
    cost = math.floor(recruitment_cost(amount, stats) * penalty)
    return ActionPrice(cost=cost, required=required, missing=missing, penalty=penalty)


def price_attack(allocated_strength: int) -> ActionPrice:
    """Attacks cost budget only."""
    return ActionPrice(cost=attack_cost(allocated_strength))


def apply_price(stats: CountryStats, price: ActionPrice) -> CountryStats:
    """Charge an action's price, returning updated stats.

    Budget is reduced (never below zero). Resources are deducted only when
    the full requirement was in stock; otherwise the shortage was already
    paid for through the penalty.
    """
    updated = stats.copy_stats()
    updated.budget = max(0.0, stats.budget - price.cost)
    if price.resources_affordable:
        for resource_id, amount in price.required.items():
            updated.resources[resource_id] = max(0, updated.resources.get(resource_id, 0) - amount)
    return updated
