"""Unit tests for trade execution, the deal lifecycle and player offers.

Tests cover:
1. apply_terms - both sides applied together or not at all
2. execute_trade - planner proposals become active deals
3. process_deals - accepted, active and proposed deal transitions
4. active_deals_value - trade revenue input
5. Black market purchases within the budget share
6. Offer cooldowns and the offer schedule
"""

import pytest

from statecraft.errors import InsufficientResourceError, ValidationError
from statecraft.models import BudgetTransfer, Deal, DealStatus, DealTerms, ResourceTransfer
from statecraft.trade.cooldowns import OfferCooldowns
from statecraft.trade.executor import (
    active_deals_value,
    apply_terms,
    buy_from_black_market,
    execute_trade,
    process_deals,
    validate_commitments,
)
from statecraft.trade.offers import TradeOfferService
from statecraft.trade.planner import Shortage, TradeProposal

FOOD_FOR_STEEL = DealTerms(
    proposer_commitments=[ResourceTransfer(resource="food", amount=59)],
    receiver_commitments=[ResourceTransfer(resource="steel", amount=8)],
)


def make_deal(status, deal_id="d1", turn_expires=None, deal_type="trade", terms=FOOD_FOR_STEEL):
    return Deal(
        id=deal_id,
        game_id="g1",
        proposing_country_id="A",
        receiving_country_id="B",
        deal_type=deal_type,
        terms=terms,
        status=status,
        turn_created=1,
        turn_expires=turn_expires,
    )


@pytest.fixture
def parties(stats_factory):
    return {
        "A": stats_factory("A", budget=400, resources={"food": 120, "steel": 5}),
        "B": stats_factory("B", budget=200, resources={"steel": 80, "food": 50}),
    }


# ============================================================================
# Commitment application
# ============================================================================


class TestApplyTerms:
    """Tests for atomic two-sided application."""

    def test_both_sides_transfer(self, parties):
        new_a, new_b = apply_terms(FOOD_FOR_STEEL, parties["A"], parties["B"])
        assert new_a.resources == {"food": 61, "steel": 13}
        assert new_b.resources == {"steel": 72, "food": 109}

    def test_originals_untouched(self, parties):
        apply_terms(FOOD_FOR_STEEL, parties["A"], parties["B"])
        assert parties["A"].resources == {"food": 120, "steel": 5}
        assert parties["B"].resources == {"steel": 80, "food": 50}

    def test_budget_transfer(self, parties):
        terms = DealTerms(
            proposer_commitments=[BudgetTransfer(amount=180)],
            receiver_commitments=[ResourceTransfer(resource="steel", amount=12)],
        )
        new_a, new_b = apply_terms(terms, parties["A"], parties["B"])
        assert new_a.budget == 220
        assert new_b.budget == 380

    def test_receiver_shortfall_aborts_both_sides(self, parties):
        """If the receiver cannot pay, the proposer's side is not applied either."""
        terms = DealTerms(
            proposer_commitments=[ResourceTransfer(resource="food", amount=10)],
            receiver_commitments=[ResourceTransfer(resource="steel", amount=500)],
        )
        with pytest.raises(InsufficientResourceError) as exc_info:
            apply_terms(terms, parties["A"], parties["B"])
        assert exc_info.value.country_id == "B"
        assert exc_info.value.resource == "steel"
        assert parties["A"].resources["food"] == 120

    def test_repeated_commitments_are_summed(self, parties):
        """Two 70-food commitments need 140 food, more than the 120 held."""
        commitments = [
            ResourceTransfer(resource="food", amount=70),
            ResourceTransfer(resource="food", amount=70),
        ]
        with pytest.raises(InsufficientResourceError):
            validate_commitments(commitments, parties["A"])

    def test_budget_shortfall(self, parties):
        with pytest.raises(InsufficientResourceError) as exc_info:
            validate_commitments([BudgetTransfer(amount=1000)], parties["A"])
        assert exc_info.value.resource == "budget"


# ============================================================================
# Planner trades
# ============================================================================


class TestExecuteTrade:
    """Tests for immediate execution of AI<->AI proposals."""

    def test_creates_active_deal(self, parties):
        proposal = TradeProposal(
            proposer_id="A",
            receiver_id="B",
            proposer_commitments=list(FOOD_FOR_STEEL.proposer_commitments),
            receiver_commitments=list(FOOD_FOR_STEEL.receiver_commitments),
        )
        execution = execute_trade(proposal, parties, "g1", 4, deal_id="trade-1")

        assert execution.deal.id == "trade-1"
        assert execution.deal.status == DealStatus.ACTIVE
        assert execution.deal.turn_created == 4
        assert execution.deal.turn_expires == 5
        assert parties["A"].resource("steel") == 13
        assert parties["B"].resource("food") == 109

    def test_missing_party(self, parties):
        proposal = TradeProposal(proposer_id="A", receiver_id="Z")
        with pytest.raises(ValidationError):
            execute_trade(proposal, parties, "g1", 1)

    def test_failed_trade_leaves_stats(self, parties):
        proposal = TradeProposal(
            proposer_id="A",
            receiver_id="B",
            proposer_commitments=[ResourceTransfer(resource="gold", amount=5)],
            receiver_commitments=[ResourceTransfer(resource="steel", amount=1)],
        )
        before = parties["A"]
        with pytest.raises(InsufficientResourceError):
            execute_trade(proposal, parties, "g1", 1)
        assert parties["A"] is before
        assert parties["B"].resource("steel") == 80


# ============================================================================
# Deal lifecycle
# ============================================================================


class TestProcessDeals:
    """Tests for per-turn deal transitions."""

    def test_accepted_deal_executes(self, parties):
        result = process_deals([make_deal(DealStatus.ACCEPTED)], parties, turn=2)

        assert result.deals[0].status == DealStatus.ACTIVE
        assert parties["A"].resource("steel") == 13
        assert [e.type for e in result.events] == ["deal.executed"]

    def test_unaffordable_accepted_deal_is_rejected(self, parties):
        terms = DealTerms(proposer_commitments=[ResourceTransfer(resource="food", amount=999)])
        result = process_deals([make_deal(DealStatus.ACCEPTED, terms=terms)], parties, turn=2)

        assert result.deals[0].status == DealStatus.REJECTED
        assert parties["A"].resource("food") == 120
        assert result.rejections["A"][0].kind == "deal"
        assert [e.type for e in result.events] == ["deal.rejected"]

    def test_active_trade_ticks_then_expires(self, parties):
        result = process_deals([make_deal(DealStatus.ACTIVE, turn_expires=3)], parties, turn=2)
        assert result.deals[0].status == DealStatus.ACTIVE
        assert [e.type for e in result.events] == ["deal.trade.tick"]

        result = process_deals([make_deal(DealStatus.ACTIVE, turn_expires=3)], parties, turn=3)
        assert result.deals[0].status == DealStatus.EXPIRED
        assert [e.type for e in result.events] == ["deal.trade.tick", "deal.expired"]

    def test_unconfirmed_offer_expires(self, parties):
        """A proposed deal lapses once the turn reaches its expiry."""
        still_open = process_deals([make_deal(DealStatus.PROPOSED, turn_expires=4)], parties, turn=3)
        assert still_open.deals[0].status == DealStatus.PROPOSED

        lapsed = process_deals([make_deal(DealStatus.PROPOSED, turn_expires=4)], parties, turn=4)
        assert lapsed.deals[0].status == DealStatus.EXPIRED

    def test_proposed_deal_does_not_execute(self, parties):
        process_deals([make_deal(DealStatus.PROPOSED)], parties, turn=2)
        assert parties["A"].resource("food") == 120

    def test_non_trade_active_deal_does_not_tick(self, parties):
        result = process_deals([make_deal(DealStatus.ACTIVE, deal_type="alliance")], parties, turn=2)
        assert result.events == []


class TestActiveDealsValue:
    """Tests for the trade revenue input."""

    def test_values_what_each_side_receives(self):
        deals = [make_deal(DealStatus.ACTIVE), make_deal(DealStatus.PROPOSED, deal_id="d2")]
        prices = {"food": 2, "steel": 15}
        assert active_deals_value(deals, "A", prices) == 120
        assert active_deals_value(deals, "B", prices) == 118
        assert active_deals_value(deals, "C", prices) == 0


# ============================================================================
# Black market
# ============================================================================


class TestBlackMarket:
    """Tests for black market purchases."""

    def test_buys_affordable_shortages_only(self, stats_factory):
        """Coal would cost 1100 of a 1000 budget and is skipped; steel costs 270."""
        stats = stats_factory(budget=1000, resources={})
        result = buy_from_black_market(
            stats,
            [Shortage("steel", 10, 0), Shortage("coal", 100, 0)],
            {"steel": 15, "coal": 6},
        )

        assert [(p.resource_id, p.amount, p.cost) for p in result.purchases] == [("steel", 10, 270)]
        assert result.stats.budget == 730
        assert result.stats.resources == {"steel": 10}
        assert stats.budget == 1000

    def test_nothing_to_buy(self, stats_factory):
        result = buy_from_black_market(stats_factory(budget=10), [Shortage("steel", 10, 0)], {"steel": 15})
        assert result.purchases == ()


# ============================================================================
# Offers
# ============================================================================


class TestOfferCooldowns:
    """Tests for the cooldown table."""

    def test_cooling_down_for_three_turns(self):
        cooldowns = OfferCooldowns()
        cooldowns.record("A", "P", 3)
        assert cooldowns.is_cooling_down("A", "P", 4)
        assert cooldowns.is_cooling_down("A", "P", 5)
        assert not cooldowns.is_cooling_down("A", "P", 6)

    def test_pairs_are_independent(self):
        cooldowns = OfferCooldowns({"A:P": 3})
        assert not cooldowns.is_cooling_down("B", "P", 4)

    def test_serialization(self):
        cooldowns = OfferCooldowns.from_dict({"A:P": 3})
        cooldowns.record("B", "P", 4)
        assert cooldowns.to_dict() == {"A:P": 3, "B:P": 4}
        assert len(cooldowns) == 2


class TestTradeOfferService:
    """Tests for AI -> player offers."""

    @pytest.fixture
    def ai_and_player(self, stats_factory):
        return (
            stats_factory("A", resources={"food": 50}),
            stats_factory("P", resources={"food": 10}),
        )

    def test_offer_on_schedule(self, ai_and_player):
        ai, player = ai_and_player
        service = TradeOfferService()
        assert service.should_offer(ai, player, 3, OfferCooldowns())
        assert service.should_offer(ai, player, 4, OfferCooldowns())
        assert not service.should_offer(ai, player, 5, OfferCooldowns())

    def test_no_offer_without_match(self, stats_factory):
        """The player is not short of any staple resource."""
        ai = stats_factory("A", resources={"food": 50})
        player = stats_factory(
            "P", resources={r: 100 for r in ("food", "steel", "coal", "iron", "timber")}
        )
        assert not TradeOfferService().should_offer(ai, player, 3, OfferCooldowns())

    def test_missing_stats(self, ai_and_player):
        ai, _ = ai_and_player
        assert not TradeOfferService().should_offer(ai, None, 3, OfferCooldowns())

    def test_create_offer_starts_cooldown(self, ai_and_player):
        ai, player = ai_and_player
        service = TradeOfferService()
        cooldowns = OfferCooldowns()
        proposal = TradeProposal(
            proposer_id="A",
            receiver_id="P",
            proposer_commitments=[ResourceTransfer(resource="food", amount=20)],
            receiver_commitments=[BudgetTransfer(amount=40)],
        )
        deal = service.create_offer(proposal, "g1", 3, cooldowns, deal_id="offer-1")

        assert deal.status == DealStatus.PROPOSED
        assert deal.requires_confirmation
        assert deal.deal_type == "trade"
        assert deal.turn_expires == 6
        assert not service.should_offer(ai, player, 4, cooldowns)
        assert service.should_offer(ai, player, 6, cooldowns)
