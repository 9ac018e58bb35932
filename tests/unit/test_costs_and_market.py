"""Unit tests for action pricing and market prices.

Tests cover:
1. Resource requirements per technology/infrastructure tier
2. Shortage penalty and its cap
3. Research, infrastructure, recruitment and attack pricing
4. apply_price resource deduction rules
5. Scarcity pricing and black market multipliers
"""

import pytest

from statecraft.economy.costs import (
    apply_price,
    infrastructure_requirements,
    military_requirements,
    price_attack,
    price_infrastructure,
    price_recruitment,
    price_research,
    research_requirements,
    shortage_penalty,
)
from statecraft.economy.market import (
    black_market_buy_price,
    black_market_sell_price,
    compute_market_prices,
    format_prices,
    prices_for_turn,
    total_stocks,
)
from statecraft.economy.profiles import get_profile


class TestRequirements:
    """Tests for resource requirement tables."""

    def test_military_requirements_shift_with_technology(self):
        """Low tech needs iron and timber, high tech needs steel and oil."""
        assert military_requirements(20, 0) == {"iron": 12, "timber": 8}
        assert military_requirements(20, 2) == {"iron": 6, "steel": 8, "oil": 4}
        assert military_requirements(20, 5) == {"steel": 8, "oil": 6, "iron": 4}

    def test_military_requirements_round_up(self):
        """Partial units round up."""
        assert military_requirements(15, 0) == {"iron": 9, "timber": 6}

    def test_research_requirements_by_tier(self):
        assert research_requirements(1) == {"copper": 10, "coal": 8}
        assert research_requirements(3) == {"copper": 8, "coal": 12, "steel": 6}
        assert research_requirements(4) == {"steel": 10, "coal": 15, "copper": 5}

    def test_infrastructure_requirements_grow(self):
        """Steel joins at level 2 and oil at level 4."""
        assert infrastructure_requirements(0) == {"timber": 20, "coal": 15}
        assert infrastructure_requirements(2) == {"timber": 28, "coal": 21, "steel": 16}
        assert infrastructure_requirements(4)["oil"] == 5


class TestShortagePenalty:
    """Tests for the missing-resource budget multiplier."""

    @pytest.mark.parametrize("missing,expected", [(0, 1.0), (1, 1.4), (2, 1.8), (3, 2.2), (4, 2.5), (6, 2.5)])
    def test_penalty_per_missing_type(self, missing, expected):
        assert shortage_penalty(missing) == pytest.approx(expected)


class TestPricing:
    """Tests for action prices."""

    def test_research_with_resources_in_stock(self, stats_factory):
        """Level 0 research costs the base 500 when stocked."""
        stats = stats_factory(technology_level=0, resources={"copper": 10, "coal": 8})
        price = price_research(stats)
        assert price.cost == 500
        assert price.missing == {}

    def test_research_shortage_penalty(self, stats_factory):
        """Two missing resource types add 80%."""
        price = price_research(stats_factory(technology_level=0, resources={}))
        assert price.cost == 900
        assert price.missing == {"copper": 10, "coal": 8}

    def test_profile_discounts_research(self, stats_factory, balanced_profile):
        """Tech Innovator research costs 75%."""
        stocked = {"copper": 10, "coal": 8}
        plain = price_research(stats_factory(technology_level=0, resources=stocked))
        innovator = price_research(
            stats_factory(technology_level=0, resources=stocked, resource_profile=get_profile("Tech Innovator"))
        )
        balanced = price_research(
            stats_factory(technology_level=0, resources=stocked, resource_profile=balanced_profile)
        )
        assert innovator.cost == 375
        assert balanced.cost == plain.cost

    def test_infrastructure_price(self, stats_factory):
        stocked = stats_factory(infrastructure_level=0, resources={"timber": 20, "coal": 15})
        assert price_infrastructure(stocked).cost == 450
        assert price_infrastructure(stats_factory(infrastructure_level=0)).cost == 810

    def test_recruitment_price(self, stats_factory):
        stocked = stats_factory(technology_level=0, resources={"iron": 12, "timber": 8})
        assert price_recruitment(20, stocked).cost == 600
        assert price_recruitment(20, stats_factory(technology_level=0)).cost == 1080

    def test_attack_costs_budget_only(self):
        price = price_attack(50)
        assert price.cost == 600
        assert price.required == {}


class TestApplyPrice:
    """Tests for charging an action's price."""

    def test_deducts_budget_and_resources_when_stocked(self, stats_factory):
        stats = stats_factory(budget=1000, technology_level=0, resources={"copper": 12, "coal": 8})
        updated = apply_price(stats, price_research(stats))
        assert updated.budget == 500
        assert updated.resources == {"copper": 2, "coal": 0}
        assert stats.budget == 1000

    def test_shortage_keeps_partial_stock(self, stats_factory):
        """When anything is missing the penalty replaces resource consumption."""
        stats = stats_factory(budget=1000, technology_level=0, resources={"copper": 10})
        updated = apply_price(stats, price_research(stats))
        assert updated.budget == 1000 - 700
        assert updated.resources == {"copper": 10}


class TestMarket:
    """Tests for scarcity pricing."""

    def test_empty_market_doubles_prices(self):
        prices = compute_market_prices({}, 2)
        assert prices["food"] == 4
        assert prices["iron"] == 20

    def test_target_stock_trades_at_base(self):
        """Stock at or above target gives base value."""
        prices = compute_market_prices({"food": 1200, "gold": 10000}, 2)
        assert prices["food"] == 2
        assert prices["gold"] == 20

    def test_half_target_rounds_half_up(self):
        """Food at half its target is 2 * 1.5 = 3."""
        assert compute_market_prices({"food": 600}, 2)["food"] == 3

    def test_black_market_multipliers(self):
        assert black_market_buy_price(10) == 18
        assert black_market_sell_price(10) == 6

    def test_total_stocks_ignores_negative(self, stats_factory):
        rows = [
            stats_factory("A", resources={"food": 100, "steel": -5}),
            stats_factory("B", resources={"food": 50, "steel": 10}),
        ]
        assert total_stocks(rows) == {"food": 150, "steel": 10}

    def test_prices_for_turn(self, stats_factory):
        rows = [stats_factory("A", resources={"food": 600}), stats_factory("B", resources={"food": 600})]
        prices = prices_for_turn(4, rows)
        assert prices.turn == 4
        assert prices.market["food"] == 2
        assert prices.black_market_buy["food"] == 4
        assert "Turn 4" in format_prices(prices)
        assert prices.to_dict()["marketPrices"]["food"] == 2
