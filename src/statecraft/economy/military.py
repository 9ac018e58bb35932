"""Military strength and recruitment formulas.

effective_strength() is shared by recruitment display and combat so that
both agree on the technology and profile multipliers. Attack and defense
allocations are bounded by raw military strength.
"""

from __future__ import annotations

import math

from statecraft.models.country import CountryStats
from statecraft.parameters import (
    ATTACK_BASE_COST,
    ATTACK_COST_PER_STRENGTH,
    COST_PER_STRENGTH_POINT,
    MAX_MILITARY_COST_REDUCTION,
    MILITARY_COST_REDUCTION_PER_LEVEL,
    MILITARY_EFFECTIVENESS_PER_LEVEL,
)


def effectiveness_multiplier(technology_level: int, military_effectiveness: float = 1.0) -> float:
    """Strength multiplier from technology (+20% per level) and profile."""
    return (1 + technology_level * MILITARY_EFFECTIVENESS_PER_LEVEL) * military_effectiveness


def effective_strength(base_strength: int, stats: CountryStats) -> int:
    """Effective value of ``base_strength`` points fielded by this country."""
    profile_bonus = stats.resource_profile.military_effectiveness if stats.resource_profile else 1.0
    return math.floor(
        max(0, base_strength) * effectiveness_multiplier(stats.technology_level, profile_bonus)
    )


def effective_military_strength(stats: CountryStats) -> int:
    """Effective strength of the country's whole army.

    Examples:
        Strength 100 at technology 2 with no profile is floor(100 * 1.4) = 140.
    """
    return effective_strength(stats.military_strength, stats)


def military_cost_reduction(technology_level: int) -> float:
    """Recruitment discount from technology, capped at 25%."""
    return min(MAX_MILITARY_COST_REDUCTION, technology_level * MILITARY_COST_REDUCTION_PER_LEVEL)


def recruitment_cost(amount: int, stats: CountryStats) -> int:
    """Budget cost of recruiting ``amount`` strength before resource penalties."""
    profile_cost = stats.resource_profile.military_cost if stats.resource_profile else 1.0
    reduction = military_cost_reduction(stats.technology_level)
    return math.floor(amount * COST_PER_STRENGTH_POINT * (1 - reduction) * profile_cost)


def attack_cost(allocated_strength: int) -> int:
    """Submission cost of an attack (paid immediately)."""
    return ATTACK_BASE_COST + ATTACK_COST_PER_STRENGTH * allocated_strength
