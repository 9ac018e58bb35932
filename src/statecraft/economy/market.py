"""Scarcity-based market pricing.

    scarcity = clamp(1 - total_stock / (target_per_country * countries), 0, 1)
    market price = round(base_value * (1 + scarcity))    # 1x .. 2x base

The black market always trades at fixed multiples of the market price:
buying costs 1.8x, selling returns 0.55x.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from statecraft.economy.resources import RESOURCES, round_half_up
from statecraft.models.country import CountryStats
from statecraft.parameters import (
    BLACK_MARKET_BUY_MULTIPLIER,
    BLACK_MARKET_SELL_MULTIPLIER,
    TARGET_STOCKS_PER_COUNTRY,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketPrices:
    """Prices for one turn.

    Attributes:
        turn: Turn the prices were computed for
        market: Resource id -> market price
        black_market_buy: Resource id -> black market purchase price
        black_market_sell: Resource id -> black market sale price
    """

    turn: int
    market: dict[str, int] = field(default_factory=dict)
    black_market_buy: dict[str, int] = field(default_factory=dict)
    black_market_sell: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "turn": self.turn,
            "marketPrices": dict(self.market),
            "blackMarketBuyPrices": dict(self.black_market_buy),
            "blackMarketSellPrices": dict(self.black_market_sell),
        }


def total_stocks(stats: Iterable[CountryStats]) -> dict[str, int]:
    """Sum every resource across countries."""
    totals: dict[str, int] = {}
    for row in stats:
        for resource_id, amount in row.resources.items():
            totals[resource_id] = totals.get(resource_id, 0) + max(0, amount)
    return totals


def compute_market_prices(stocks: dict[str, int], country_count: int) -> dict[str, int]:
    """Market price per tradeable resource given global stocks.

    Args:
        stocks: Resource id -> total stock across all countries
        country_count: Number of countries in the game (min 1)

    Returns:
        Resource id -> integer market price
    """
    country_count = max(1, country_count)
    prices: dict[str, int] = {}
    for resource in RESOURCES.values():
        if not resource.tradeable:
            continue
        target_per_country = TARGET_STOCKS_PER_COUNTRY.get(resource.id)
        if target_per_country is None:
            logger.warning(f"No target stock for {resource.id}, skipping market pricing")
            continue
        target = target_per_country * country_count
        if target == 0:
            prices[resource.id] = resource.base_value
            continue
        scarcity = max(0.0, min(1.0, 1 - stocks.get(resource.id, 0) / target))
        prices[resource.id] = round_half_up(resource.base_value * (1 + scarcity))
    return prices


def black_market_buy_price(market_price: float) -> int:
    return round_half_up(market_price * BLACK_MARKET_BUY_MULTIPLIER)


def black_market_sell_price(market_price: float) -> int:
    return round_half_up(market_price * BLACK_MARKET_SELL_MULTIPLIER)


def prices_for_turn(turn: int, stats: Iterable[CountryStats]) -> MarketPrices:
    """Full price table for a turn from the countries' current stats."""
    rows = list(stats)
    market = compute_market_prices(total_stocks(rows), len(rows))
    return MarketPrices(
        turn=turn,
        market=market,
        black_market_buy={rid: black_market_buy_price(p) for rid, p in market.items()},
        black_market_sell={rid: black_market_sell_price(p) for rid, p in market.items()},
    )


def format_prices(prices: MarketPrices) -> str:
    """Human-readable price table."""
    lines = [f"CURRENT MARKET RATES (Turn {prices.turn}):"]
    for resource in RESOURCES.values():
        if not resource.tradeable:
            continue
        lines.append(
            f"- {resource.name}: Market ${prices.market.get(resource.id, 0)}, "
            f"Black Market Buy ${prices.black_market_buy.get(resource.id, 0)}, "
            f"Sell ${prices.black_market_sell.get(resource.id, 0)}"
        )
    return "\n".join(lines)
