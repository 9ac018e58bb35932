"""Resource registry.

Eight tradeable resources in four categories. Base values are the fallback
prices used when no market price is available; decay is the share of a
stockpile lost each turn to spoilage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class ResourceCategory(str, Enum):
    BASIC = "basic"
    STRATEGIC = "strategic"
    ECONOMIC = "economic"
    INDUSTRIAL = "industrial"


@dataclass(frozen=True)
class ResourceDefinition:
    """Static description of a resource.

    Attributes:
        id: Resource identifier used as stockpile key
        name: Display name
        category: Resource category
        base_value: Fallback unit price
        decay_rate: Fraction of stock lost per turn (0 = durable)
        tradeable: Whether the resource may appear in commitments
    """

    id: str
    name: str
    category: ResourceCategory
    base_value: int
    decay_rate: float = 0.0
    tradeable: bool = True


RESOURCES: dict[str, ResourceDefinition] = {
    r.id: r
    for r in (
        ResourceDefinition("food", "Food", ResourceCategory.BASIC, 2, decay_rate=0.1),
        ResourceDefinition("timber", "Timber", ResourceCategory.BASIC, 3),
        ResourceDefinition("iron", "Iron", ResourceCategory.STRATEGIC, 10),
        ResourceDefinition("oil", "Oil", ResourceCategory.STRATEGIC, 15),
        ResourceDefinition("gold", "Gold", ResourceCategory.ECONOMIC, 20),
        ResourceDefinition("copper", "Copper", ResourceCategory.ECONOMIC, 5),
        ResourceDefinition("steel", "Steel", ResourceCategory.INDUSTRIAL, 12),
        ResourceDefinition("coal", "Coal", ResourceCategory.INDUSTRIAL, 6),
    )
}

RESOURCE_IDS: tuple[str, ...] = tuple(RESOURCES)


def get_resource(resource_id: str) -> ResourceDefinition | None:
    """Look up a resource definition by id."""
    return RESOURCES.get(resource_id)


def base_value(resource_id: str) -> int:
    """Registry fallback price (0 for unknown resources)."""
    resource = get_resource(resource_id)
    return resource.base_value if resource else 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    Python's round() uses banker's rounding (round(2.5) == 2); prices use the
    schoolbook rule instead.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(2.4)
        2
    """
    return math.floor(value + 0.5)
