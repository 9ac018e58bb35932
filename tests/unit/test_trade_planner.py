"""Unit tests for trade valuation and the trade planner.

Tests cover:
1. Valuation - unit prices, commitment values, normalized net
2. Barter sizing - price ratio, spread, minimum of one unit, give/receive round trip
3. Budget adjustment toward the fairness range
4. Planner - shortage and surplus detection, partner selection
5. Proposal generation - AI<->AI and AI<->player fairness envelopes
6. Deterministic deal ids
"""

import pytest

from statecraft.config import TradeSettings
from statecraft.models import BudgetTransfer, Country, GameSnapshot, ResourceTransfer
from statecraft.trade.planner import Shortage, Surplus, TradePlanner
from statecraft.trade.valuation import (
    FairnessRange,
    budget_adjustment,
    evaluate_proposal,
    market_value,
    receive_amount_for_give,
    required_give_amount,
    unit_price,
)

PRICES = {"food": 2, "steel": 15}

PRICE_TABLES = [
    {"food": 2, "steel": 15, "copper": 8, "coal": 6, "timber": 3, "iron": 10, "oil": 9},
    {"food": 4, "steel": 12, "copper": 11, "coal": 5, "timber": 7, "iron": 9, "oil": 20},
    {"food": 1.5, "steel": 30, "copper": 2, "coal": 14, "timber": 4.5, "iron": 6, "oil": 9},
]


# ============================================================================
# Valuation
# ============================================================================


class TestValuation:
    """Tests for market valuation of commitments."""

    def test_unit_price_falls_back_to_base_value(self):
        """Missing or non-positive prices use the registry base value."""
        assert unit_price("steel", {"steel": 15}) == 15
        assert unit_price("steel", {"steel": 0}) == 12
        assert unit_price("steel", {}) == 12
        assert unit_price("unobtainium", {}) == 0

    def test_market_value_mixes_resources_and_budget(self):
        commitments = [ResourceTransfer(resource="food", amount=10), BudgetTransfer(amount=7)]
        assert market_value(commitments, PRICES) == 27

    def test_normalized_net_is_proposer_view(self):
        """Receiving more than giving is positive."""
        evaluation = evaluate_proposal(
            [ResourceTransfer(resource="food", amount=59)],
            [ResourceTransfer(resource="steel", amount=8)],
            PRICES,
        )
        assert evaluation.value_given == 118
        assert evaluation.value_received == 120
        assert evaluation.notional_value == 120
        assert evaluation.normalized_net == pytest.approx(2 / 120)

    def test_empty_proposal_has_unit_notional(self):
        """Notional value never drops below one."""
        evaluation = evaluate_proposal([], [], PRICES)
        assert evaluation.notional_value == 1
        assert evaluation.normalized_net == 0


class TestBarterSizing:
    """Tests for give/receive amount calculations."""

    def test_required_give_amount_applies_spread(self):
        """8 steel at a 7.5:1 ratio and 2% spread costs 59 food."""
        assert required_give_amount("food", "steel", 8, PRICES, spread=0.02) == 59

    def test_required_give_amount_minimum_one(self):
        """Cheap receives still cost at least one unit."""
        assert required_give_amount("steel", "food", 1, PRICES) == 1

    def test_required_give_amount_invalid_inputs(self):
        assert required_give_amount("food", "steel", 0, PRICES) == 0
        assert required_give_amount("food", "unobtainium", 5, PRICES) == 0

    def test_spread_is_clamped(self):
        """Spreads above 0.9 behave like 0.9."""
        assert required_give_amount("food", "steel", 8, PRICES, spread=5.0) == required_give_amount(
            "food", "steel", 8, PRICES, spread=0.9
        )

    def test_receive_amount_for_give_floors(self):
        """60 food buys 8 steel at 7.5:1."""
        assert receive_amount_for_give("steel", "food", 60, PRICES) == 8

    @pytest.mark.parametrize("prices", PRICE_TABLES)
    @pytest.mark.parametrize("amount", [1, 7, 40, 123])
    def test_give_receive_round_trip(self, prices, amount):
        """At zero spread, buying back with the required give lands within one unit.

        The give side is the cheaper resource of each pair, as in a barter of
        a bulk surplus for a scarce input.
        """
        pairs = [
            (give, receive)
            for give in prices
            for receive in prices
            if give != receive and prices[give] <= prices[receive]
        ]
        for give, receive in pairs:
            give_amount = required_give_amount(give, receive, amount, prices)
            back = receive_amount_for_give(receive, give, give_amount, prices)
            assert abs(back - amount) <= 1, (give, receive, give_amount, back)


class TestBudgetAdjustment:
    """Tests for fairness top-ups."""

    def test_no_adjustment_inside_range(self):
        assert budget_adjustment(0.1, FairnessRange(-0.15, 0.15), 120) == 0

    def test_adjustment_pulls_to_upper_bound(self):
        amount = budget_adjustment(0.25, FairnessRange(-0.15, 0.15), 200)
        assert amount == pytest.approx(20)


# ============================================================================
# Planner
# ============================================================================


@pytest.fixture
def scenario(stats_factory):
    """Country A short of steel with food to spare, partner B rich in steel."""
    a = stats_factory("A", budget=400, resources={"food": 120, "steel": 5})
    b = stats_factory("B", budget=200, resources={"steel": 80, "food": 50})
    return a, b


class TestDetection:
    """Tests for shortage, surplus and partner detection."""

    def test_shortages_take_the_largest_requirement(self, stats_factory):
        """Tech 1, infra 1 and a 20-strength recruit drive the requirement list."""
        stats = stats_factory(technology_level=1, infrastructure_level=1, resources={})
        shortages = {s.resource_id: s.needed for s in TradePlanner().detect_shortages(stats)}
        assert shortages == {"copper": 10, "coal": 18, "timber": 24, "iron": 12}

    def test_stocked_resources_are_not_shortages(self, stats_factory):
        stats = stats_factory(
            technology_level=1,
            infrastructure_level=1,
            resources={"copper": 10, "coal": 18, "timber": 24, "iron": 12},
        )
        assert TradePlanner().detect_shortages(stats) == []

    def test_surplus_is_half_of_large_stocks(self, stats_factory):
        stats = stats_factory(resources={"food": 250, "steel": 199})
        assert TradePlanner().detect_surpluses(stats) == [Surplus("food", 125)]

    def test_partners_hold_what_we_need(self, stats_factory):
        snapshot = GameSnapshot(
            game_id="g1",
            turn=1,
            countries=[
                Country(id="A", game_id="g1", name="A"),
                Country(id="B", game_id="g1", name="B"),
                Country(id="C", game_id="g1", name="C"),
            ],
            stats={
                "A": stats_factory("A"),
                "B": stats_factory("B", resources={"coal": 100, "food": 100}),
                "C": stats_factory("C", resources={"food": 100}),
            },
        )
        partners = TradePlanner().find_partners(
            "A", snapshot, [Shortage("coal", 18, 0)], [Surplus("food", 100)]
        )
        assert [p.id for p in partners] == ["B"]


class TestProposals:
    """Tests for proposal construction."""

    def test_ai_barter_then_purchase(self, scenario):
        """Barter 59 food for 8 steel, then buy 12 steel for $180."""
        a, b = scenario
        partner = Country(id="B", game_id="g1", name="Brant")
        proposals = TradePlanner().generate_trade_proposals(
            a, partner, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )

        assert len(proposals) == 2
        barter, purchase = proposals
        assert barter.proposer_commitments == [ResourceTransfer(resource="food", amount=59)]
        assert barter.receiver_commitments == [ResourceTransfer(resource="steel", amount=8)]
        assert barter.normalized_net == pytest.approx(2 / 120)

        assert purchase.proposer_commitments == [BudgetTransfer(amount=180)]
        assert purchase.receiver_commitments == [ResourceTransfer(resource="steel", amount=12)]
        assert purchase.normalized_net == 0

    def test_barter_reflects_price_ratio(self, scenario):
        """Amounts differ by roughly the 7.5:1 price ratio."""
        a, b = scenario
        partner = Country(id="B", game_id="g1", name="Brant")
        barter = TradePlanner().generate_trade_proposals(
            a, partner, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )[0]
        ratio = barter.proposer_commitments[0].amount / barter.receiver_commitments[0].amount
        assert 7.0 < ratio < 7.5

    def test_barter_evaluates_as_fair(self, scenario):
        """Re-evaluating the barter gives |normalized net| within 0.06."""
        a, b = scenario
        partner = Country(id="B", game_id="g1", name="Brant")
        barter = TradePlanner().generate_trade_proposals(
            a, partner, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )[0]
        evaluation = evaluate_proposal(barter.proposer_commitments, barter.receiver_commitments, PRICES)
        assert abs(evaluation.normalized_net) <= 0.06

    def test_player_partner_gets_budget_top_up(self, scenario):
        """The wider player spread overshoots the band and is topped up with budget."""
        a, b = scenario
        player = Country(id="B", game_id="g1", name="Brant", is_player_controlled=True)
        barter = TradePlanner().generate_trade_proposals(
            a, player, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )[0]

        food, top_up = barter.proposer_commitments
        assert food == ResourceTransfer(resource="food", amount=50)
        assert isinstance(top_up, BudgetTransfer)
        assert top_up.amount in (2, 3)
        assert -0.15 <= barter.normalized_net <= 0.15

    def test_proposals_respect_budget_reserve(self, scenario):
        """A proposer at its budget reserve cannot buy."""
        a, b = scenario
        broke = a.model_copy(update={"budget": 30})
        partner = Country(id="B", game_id="g1", name="Brant")
        proposals = TradePlanner().generate_trade_proposals(
            broke, partner, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )
        assert all(
            not any(isinstance(c, BudgetTransfer) for c in p.proposer_commitments) for p in proposals
        )

    def test_no_proposals_when_partner_has_nothing_to_spare(self, scenario):
        """Partners keep a reserve of 25 units."""
        a, b = scenario
        poor = b.model_copy(update={"resources": {"steel": 25}})
        partner = Country(id="B", game_id="g1", name="Brant")
        assert TradePlanner().generate_trade_proposals(
            a, partner, poor, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        ) == []

    def test_tighter_tolerance_rejects_uneven_barter(self, scenario):
        """A tolerance below the barter's imbalance leaves only the purchase."""
        a, b = scenario
        planner = TradePlanner(TradeSettings(ai_fairness_tolerance=0.01))
        partner = Country(id="B", game_id="g1", name="Brant")
        proposals = planner.generate_trade_proposals(
            a, partner, b, [Shortage("steel", 40, 10)], [Surplus("food", 60)], PRICES
        )
        assert len(proposals) == 1
        assert isinstance(proposals[0].proposer_commitments[0], BudgetTransfer)


class TestPlanTrades:
    """Tests for the planner entry point."""

    def test_ranked_and_fair(self, two_country_snapshot):
        """Every AI<->AI proposal sits inside the tolerance band, best first."""
        snapshot = two_country_snapshot
        snapshot.stats["B"] = snapshot.stats["B"].model_copy(update={"resources": {"coal": 200}})
        proposals = TradePlanner().plan_trades("A", snapshot, {"food": 2, "coal": 6})

        assert 1 <= len(proposals) <= 3
        assert all(p.receiver_id == "B" for p in proposals)
        assert all(abs(p.normalized_net) <= 0.05 for p in proposals)
        scores = [p.score for p in proposals]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("prices", PRICE_TABLES)
    def test_player_proposals_stay_in_band(self, two_country_snapshot, prices):
        """AI -> player proposals land within +/-0.17 whatever the price table."""
        snapshot = two_country_snapshot
        snapshot.countries[1] = snapshot.countries[1].model_copy(update={"is_player_controlled": True})
        snapshot.stats["B"] = snapshot.stats["B"].model_copy(
            update={"resources": {"copper": 100, "coal": 100, "timber": 100, "iron": 100}}
        )
        proposals = TradePlanner().plan_trades("A", snapshot, prices)

        assert proposals
        for proposal in proposals:
            assert proposal.receiver_id == "B"
            assert -0.17 <= proposal.normalized_net <= 0.17
            evaluation = evaluate_proposal(proposal.proposer_commitments, proposal.receiver_commitments, prices)
            assert -0.17 <= evaluation.normalized_net <= 0.17

    def test_deal_ids_are_stable(self, two_country_snapshot):
        """The same proposal on the same turn always maps to the same deal id."""
        snapshot = two_country_snapshot
        snapshot.stats["B"] = snapshot.stats["B"].model_copy(update={"resources": {"coal": 200}})
        first = TradePlanner().plan_trades("A", snapshot, {"food": 2, "coal": 6})[0]
        again = TradePlanner().plan_trades("A", snapshot, {"food": 2, "coal": 6})[0]

        assert first.deal_id("g1", 3) == again.deal_id("g1", 3)
        assert first.deal_id("g1", 3) != first.deal_id("g1", 4)
        assert first.deal_id("g1", 3) != first.deal_id("g1", 3, "offer")

    def test_unknown_country_plans_nothing(self, two_country_snapshot):
        assert TradePlanner().plan_trades("Z", two_country_snapshot, PRICES) == []

    def test_no_surplus_plans_nothing(self, two_country_snapshot):
        """B has nothing at twice the consumption baseline."""
        assert TradePlanner().plan_trades("B", two_country_snapshot, PRICES) == []
