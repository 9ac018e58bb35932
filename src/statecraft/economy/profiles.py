"""Built-in resource profiles.

Each country receives one profile when the game is created and keeps it for
the game's lifetime. Profiles multiply production of specific resources,
adjust starting stockpiles once, and scale the cost of research,
infrastructure and recruitment.

Usage:
    from statecraft.economy.profiles import assign_profiles, get_profile

    profile = get_profile("Oil Kingdom")
    profiles = assign_profiles(["a", "b", "c"], rng=SeededRandom("game-1"))
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from statecraft.models.country import ResourceModifier, ResourceProfile


def _profile(name: str, description: str, modifiers: dict[str, tuple[float, int]], **costs) -> ResourceProfile:
    return ResourceProfile(
        name=name,
        description=description,
        modifiers=tuple(
            ResourceModifier(resource_id=rid, multiplier=mult, starting_bonus=bonus)
            for rid, (mult, bonus) in modifiers.items()
        ),
        **costs,
    )


# =============================================================================
# Profile table
# =============================================================================

PROFILES: dict[str, ResourceProfile] = {
    p.name: p
    for p in (
        _profile(
            "Oil Kingdom",
            "Rich in oil deposits, lacks precious metals",
            {"oil": (2.5, 150), "coal": (1.5, 80), "gold": (0.4, -10), "copper": (0.7, -5)},
            tech_cost=1.10, infra_cost=1.15, military_cost=0.95, trade=1.10,
        ),
        _profile(
            "Agricultural Hub",
            "Fertile lands, abundant food and timber",
            {"food": (2.0, 300), "timber": (1.8, 150), "iron": (0.6, -30), "steel": (0.5, -15)},
            tech_cost=1.15, infra_cost=1.05, military_cost=1.05, trade=0.95,
            military_effectiveness=0.95,
        ),
        _profile(
            "Mining Empire",
            "Rich in iron, copper, and steel production",
            {
                "iron": (2.2, 120), "copper": (1.8, 80), "steel": (1.5, 60),
                "food": (0.7, -100), "timber": (0.6, -50),
            },
            tech_cost=1.15, infra_cost=1.15, military_cost=0.90, tax=0.95,
            military_effectiveness=1.05,
        ),
        _profile(
            "Tech Innovator",
            "Advanced industry, rich in copper and steel",
            {
                "copper": (1.8, 60), "steel": (1.6, 50), "coal": (1.5, 40),
                "timber": (0.8, -20), "oil": (0.7, -15),
            },
            tech_cost=0.75, infra_cost=1.10, military_cost=0.90, tax=1.05, trade=1.05,
        ),
        _profile(
            "Trade Hub",
            "Abundant gold and copper for commerce",
            {
                "gold": (2.5, 60), "copper": (2.0, 50), "food": (1.3, 80),
                "iron": (0.7, -25), "oil": (0.6, -20),
            },
            tech_cost=1.10, infra_cost=0.85, military_cost=1.10, tax=1.10, trade=1.25,
            military_effectiveness=0.95,
        ),
        _profile(
            "Balanced Nation",
            "No major resource advantages or disadvantages",
            {"food": (1.1, 50), "iron": (1.1, 10), "gold": (0.9, -5)},
        ),
        _profile(
            "Industrial Powerhouse",
            "Coal and steel production powerhouse",
            {
                "coal": (2.5, 150), "steel": (2.3, 80), "iron": (1.4, 60),
                "food": (0.8, -80), "timber": (0.7, -40),
            },
            tech_cost=1.15, infra_cost=0.80, military_cost=0.95, trade=1.10,
        ),
        _profile(
            "Military State",
            "Strong in iron and oil for military dominance",
            {
                "iron": (2.0, 100), "oil": (1.6, 60), "steel": (1.4, 40),
                "gold": (0.6, -20), "copper": (0.7, -15),
            },
            tech_cost=1.20, infra_cost=1.20, military_cost=0.85, tax=0.95, trade=0.90,
            military_effectiveness=1.10,
        ),
    )
}

PROFILE_NAMES: tuple[str, ...] = tuple(PROFILES)


def get_profile(name: str) -> ResourceProfile | None:
    """Look up a built-in profile by name (case-insensitive)."""
    name_lower = name.lower()
    for profile in PROFILES.values():
        if profile.name.lower() == name_lower:
            return profile
    return None


def production_multiplier(profile: ResourceProfile | None, resource_id: str) -> float:
    """Production multiplier a profile applies to a resource (1.0 if none)."""
    if profile is None:
        return 1.0
    modifier = profile.modifier_for(resource_id)
    return modifier.multiplier if modifier else 1.0


def apply_profile_to_production(production: dict[str, int], profile: ResourceProfile | None) -> dict[str, int]:
    """Multiply produced amounts by the profile's modifiers, flooring each."""
    if profile is None:
        return dict(production)
    return {
        resource_id: math.floor(amount * production_multiplier(profile, resource_id))
        for resource_id, amount in production.items()
    }


def apply_starting_bonuses(resources: dict[str, int], profile: ResourceProfile | None) -> dict[str, int]:
    """Apply one-time starting bonuses, never leaving a stock negative."""
    adjusted = dict(resources)
    if profile is None:
        return adjusted
    for modifier in profile.modifiers:
        current = adjusted.get(modifier.resource_id, 0)
        adjusted[modifier.resource_id] = max(0, current + modifier.starting_bonus)
    return adjusted


def assign_profiles(country_ids: Sequence[str], rng: Callable[[], float]) -> dict[str, ResourceProfile]:
    """Assign profiles without repeats until the table is exhausted.

    Args:
        country_ids: Countries to assign, in a stable order
        rng: Source of floats in [0, 1); pass a seeded generator for
            reproducible games

    Returns:
        Country id -> assigned profile
    """
    assigned: dict[str, ResourceProfile] = {}
    available: list[ResourceProfile] = []
    for country_id in country_ids:
        if not available:
            available = list(PROFILES.values())
        index = math.floor(rng() * len(available))
        assigned[country_id] = available.pop(min(index, len(available) - 1))
    return assigned
