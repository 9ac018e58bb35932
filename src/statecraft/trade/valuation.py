"""Trade valuation.

Prices commitments at market value and measures how fair an exchange is.

Key formulas:
    value(resource_transfer) = unit_price(resource) * amount
    value(budget_transfer)   = amount
    normalized_net = (received - given) / max(1, given, received)

normalized_net is the proposer's view: positive means the proposer gains.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from statecraft.economy.resources import base_value
from statecraft.models.deals import BudgetTransfer, ResourceTransfer

MAX_SPREAD = 0.9


@dataclass(frozen=True)
class FairnessRange:
    """Allowed band of normalized_net for a proposal."""

    min: float
    max: float

    @property
    def width(self) -> float:
        return self.max - self.min

    def contains(self, normalized_net: float) -> bool:
        return self.min <= normalized_net <= self.max


@dataclass(frozen=True)
class TradeEvaluation:
    """Market valuation of a proposal from the proposer's point of view.

    Attributes:
        value_given: Market value of the proposer's commitments
        value_received: Market value of the receiver's commitments
        net_benefit: value_received - value_given
        notional_value: max(1, value_given, value_received)
        normalized_net: net_benefit / notional_value
    """

    value_given: float
    value_received: float
    net_benefit: float
    notional_value: float
    normalized_net: float


def unit_price(resource_id: str, prices: dict[str, float]) -> float:
    """Market price when known and positive, else the registry base value, else 0."""
    price = prices.get(resource_id)
    if isinstance(price, (int, float)) and price > 0:
        return price
    return base_value(resource_id)


def commitment_value(commitment: ResourceTransfer | BudgetTransfer, prices: dict[str, float]) -> float:
    """Market value of a single commitment."""
    if isinstance(commitment, BudgetTransfer):
        return commitment.amount
    return unit_price(commitment.resource, prices) * commitment.amount


def market_value(commitments: Iterable[ResourceTransfer | BudgetTransfer], prices: dict[str, float]) -> float:
    """Total market value of a commitment list."""
    return sum(commitment_value(c, prices) for c in commitments)


def evaluate_proposal(
    proposer_commitments: Iterable[ResourceTransfer | BudgetTransfer],
    receiver_commitments: Iterable[ResourceTransfer | BudgetTransfer],
    prices: dict[str, float],
) -> TradeEvaluation:
    """Evaluate a proposal's fairness.

    Args:
        proposer_commitments: What the proposer gives
        receiver_commitments: What the proposer receives
        prices: Resource id -> market price

    Returns:
        TradeEvaluation from the proposer's point of view
    """
    given = market_value(proposer_commitments, prices)
    received = market_value(receiver_commitments, prices)
    net = received - given
    notional = max(1, given, received)
    return TradeEvaluation(
        value_given=given,
        value_received=received,
        net_benefit=net,
        notional_value=notional,
        normalized_net=net / notional,
    )


def required_give_amount(
    give_resource: str,
    receive_resource: str,
    receive_amount: int,
    prices: dict[str, float],
    spread: float = 0.0,
) -> int:
    """Units of ``give_resource`` to offer for ``receive_amount`` units.

    The price ratio is discounted by ``spread`` (clamped to 0..0.9) in the
    proposer's favour, then rounded up with a minimum of 1.

    Returns:
        Give amount, or 0 when any price or the receive amount is not positive

    Examples:
        With food at 2 and steel at 15, 8 steel costs ceil(8 * 7.5 * 0.98) = 59
        food at a 0.02 spread.
    """
    give_price = unit_price(give_resource, prices)
    receive_price = unit_price(receive_resource, prices)
    if give_price <= 0 or receive_price <= 0 or receive_amount <= 0:
        return 0
    safe_spread = min(max(spread, 0.0), MAX_SPREAD)
    adjusted_ratio = receive_price / give_price * max(0.0, 1 - safe_spread)
    return max(1, math.ceil(receive_amount * adjusted_ratio))


def receive_amount_for_give(
    receive_resource: str,
    give_resource: str,
    give_amount: int,
    prices: dict[str, float],
) -> int:
    """Units of ``receive_resource`` that ``give_amount`` units can buy (floored)."""
    give_price = unit_price(give_resource, prices)
    receive_price = unit_price(receive_resource, prices)
    if give_price <= 0 or receive_price <= 0 or give_amount <= 0:
        return 0
    return max(0, math.floor(give_price * give_amount / receive_price))


def budget_adjustment(normalized_net: float, fairness_range: FairnessRange, notional_value: float) -> float:
    """Budget top-up that pulls normalized_net down to the range's upper bound.

    Returns:
        Non-negative amount; 0 when already within range
    """
    if normalized_net <= fairness_range.max:
        return 0.0
    return max(0.0, (normalized_net - fairness_range.max) * notional_value)
