"""Trade and deal execution.

Commitments are applied atomically to both parties: both sides are validated
against their current stats, the deltas are applied to copies, and the copies
replace the originals only when both sides succeed. A failed validation
leaves both parties untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from statecraft.economy.market import black_market_buy_price
from statecraft.errors import InsufficientResourceError, ValidationError
from statecraft.models.country import CountryStats
from statecraft.models.deals import BudgetTransfer, Deal, DealStatus, DealTerms, ResourceTransfer
from statecraft.models.game import Rejection, TurnEvent
from statecraft.parameters import BLACK_MARKET_BUDGET_SHARE, TRADE_DEAL_LIFETIME
from statecraft.trade.planner import Shortage, TradeProposal
from statecraft.trade.valuation import market_value, unit_price

logger = logging.getLogger(__name__)

Commitments = Iterable[ResourceTransfer | BudgetTransfer]


# =============================================================================
# Commitment application
# =============================================================================


def validate_commitments(commitments: Commitments, stats: CountryStats) -> None:
    """Check that a party can honour all of its commitments.

    Raises:
        InsufficientResourceError: On the first commitment it cannot pay
    """
    needed_resources: dict[str, int] = {}
    needed_budget = 0
    for commitment in commitments:
        if isinstance(commitment, ResourceTransfer):
            needed_resources[commitment.resource] = needed_resources.get(commitment.resource, 0) + commitment.amount
        else:
            needed_budget += commitment.amount

    for resource_id, amount in needed_resources.items():
        available = stats.resource(resource_id)
        if available < amount:
            raise InsufficientResourceError(stats.country_id, resource_id, amount, available)
    if stats.budget < needed_budget:
        raise InsufficientResourceError(stats.country_id, "budget", needed_budget, int(stats.budget))


def _transfer(commitments: Commitments, giver: CountryStats, taker: CountryStats) -> None:
    for commitment in commitments:
        if isinstance(commitment, ResourceTransfer):
            giver.resources[commitment.resource] = giver.resource(commitment.resource) - commitment.amount
            taker.resources[commitment.resource] = taker.resource(commitment.resource) + commitment.amount
        else:
            giver.budget -= commitment.amount
            taker.budget += commitment.amount


def apply_terms(
    terms: DealTerms,
    proposer: CountryStats,
    receiver: CountryStats,
) -> tuple[CountryStats, CountryStats]:
    """Apply both sides of a deal to copies of the parties' stats.

    Args:
        terms: Commitments of both sides
        proposer: Proposer's current stats
        receiver: Receiver's current stats

    Returns:
        (new proposer stats, new receiver stats)

    Raises:
        InsufficientResourceError: If either side cannot pay; nothing is applied
    """
    validate_commitments(terms.proposer_commitments, proposer)
    validate_commitments(terms.receiver_commitments, receiver)

    new_proposer = proposer.copy_stats()
    new_receiver = receiver.copy_stats()
    _transfer(terms.proposer_commitments, new_proposer, new_receiver)
    _transfer(terms.receiver_commitments, new_receiver, new_proposer)
    return new_proposer, new_receiver


# =============================================================================
# Planner trades
# =============================================================================


@dataclass(frozen=True)
class TradeExecution:
    """An executed planner trade and the deal recording it."""

    deal: Deal
    proposer_stats: CountryStats
    receiver_stats: CountryStats


def execute_trade(
    proposal: TradeProposal,
    stats_by_country: dict[str, CountryStats],
    game_id: str,
    turn: int,
    deal_id: str | None = None,
) -> TradeExecution:
    """Execute a proposal immediately, swapping both parties' stats in place.

    Args:
        proposal: Proposal produced by TradePlanner
        stats_by_country: Working stats, updated only on success
        game_id: Game the deal belongs to
        turn: Current turn
        deal_id: Identifier for the created deal (derived from the proposal when omitted)

    Returns:
        TradeExecution with an active deal expiring next turn

    Raises:
        ValidationError: If either party has no stats
        InsufficientResourceError: If either party cannot pay
    """
    proposer = stats_by_country.get(proposal.proposer_id)
    receiver = stats_by_country.get(proposal.receiver_id)
    if proposer is None or receiver is None:
        raise ValidationError(
            f"Missing stats for trade {proposal.proposer_id} <-> {proposal.receiver_id}"
        )

    terms = DealTerms(
        proposer_commitments=list(proposal.proposer_commitments),
        receiver_commitments=list(proposal.receiver_commitments),
    )
    new_proposer, new_receiver = apply_terms(terms, proposer, receiver)
    stats_by_country[proposal.proposer_id] = new_proposer
    stats_by_country[proposal.receiver_id] = new_receiver

    deal = Deal(
        id=deal_id or proposal.deal_id(game_id, turn),
        game_id=game_id,
        proposing_country_id=proposal.proposer_id,
        receiving_country_id=proposal.receiver_id,
        deal_type="trade",
        terms=terms,
        status=DealStatus.ACTIVE,
        turn_created=turn,
        turn_expires=turn + TRADE_DEAL_LIFETIME,
    )
    logger.info(f"Trade executed: {proposal.describe()} (deal {deal.id})")
    return TradeExecution(deal=deal, proposer_stats=new_proposer, receiver_stats=new_receiver)


# =============================================================================
# Deal lifecycle
# =============================================================================


@dataclass
class DealProcessing:
    """Outcome of processing a turn's deals."""

    deals: list[Deal] = field(default_factory=list)
    events: list[TurnEvent] = field(default_factory=list)
    rejections: dict[str, list[Rejection]] = field(default_factory=dict)


def process_deals(deals: list[Deal], stats_by_country: dict[str, CountryStats], turn: int) -> DealProcessing:
    """Advance every deal's lifecycle for one turn.

    - accepted deals execute atomically and become active, or are rejected
      when a party cannot pay
    - active trade deals tick, and expire once ``turn`` reaches turn_expires
    - proposed deals expire once ``turn`` reaches turn_expires

    ``stats_by_country`` is updated in place for executed deals.
    """
    result = DealProcessing()
    for deal in deals:
        if deal.status == DealStatus.ACCEPTED:
            deal = _execute_accepted(deal, stats_by_country, turn, result)
        elif deal.status == DealStatus.ACTIVE:
            if deal.deal_type == "trade":
                result.events.append(TurnEvent(
                    type="deal.trade.tick",
                    message=f"Trade deal active between {deal.proposing_country_id} "
                    f"and {deal.receiving_country_id}",
                    data={"dealId": deal.id},
                ))
            if deal.is_expired_at(turn):
                deal = _expire(deal, result)
        elif deal.status == DealStatus.PROPOSED and deal.is_expired_at(turn):
            deal = _expire(deal, result)
        result.deals.append(deal)
    return result


def _expire(deal: Deal, result: DealProcessing) -> Deal:
    result.events.append(TurnEvent(
        type="deal.expired",
        message=f"Deal expired: {deal.id}",
        data={"dealId": deal.id},
    ))
    return deal.with_status(DealStatus.EXPIRED)


def _execute_accepted(
    deal: Deal,
    stats_by_country: dict[str, CountryStats],
    turn: int,
    result: DealProcessing,
) -> Deal:
    proposer = stats_by_country.get(deal.proposing_country_id)
    receiver = stats_by_country.get(deal.receiving_country_id)
    if proposer is None or receiver is None:
        reason = "party has no stats this turn"
    else:
        try:
            new_proposer, new_receiver = apply_terms(deal.terms, proposer, receiver)
        except InsufficientResourceError as e:
            reason = str(e)
        else:
            stats_by_country[deal.proposing_country_id] = new_proposer
            stats_by_country[deal.receiving_country_id] = new_receiver
            result.events.append(TurnEvent(
                type="deal.executed",
                message=f"Deal executed between {deal.proposing_country_id} "
                f"and {deal.receiving_country_id}",
                data={"dealId": deal.id, "turn": turn},
            ))
            return deal.with_status(DealStatus.ACTIVE)

    logger.warning(f"Deal {deal.id} rejected: {reason}")
    result.events.append(TurnEvent(
        type="deal.rejected",
        message=f"Deal {deal.id} could not be executed: {reason}",
        data={"dealId": deal.id},
    ))
    result.rejections.setdefault(deal.proposing_country_id, []).append(
        Rejection(id=deal.id, kind="deal", reason=reason)
    )
    return deal.with_status(DealStatus.REJECTED)


def active_deals_value(deals: Iterable[Deal], country_id: str, prices: dict[str, float]) -> float:
    """Market value a country receives from its active deals."""
    total = 0.0
    for deal in deals:
        if deal.status != DealStatus.ACTIVE:
            continue
        if deal.proposing_country_id == country_id:
            total += market_value(deal.terms.receiver_commitments, prices)
        elif deal.receiving_country_id == country_id:
            total += market_value(deal.terms.proposer_commitments, prices)
    return total


# =============================================================================
# Black market
# =============================================================================


@dataclass(frozen=True)
class Purchase:
    resource_id: str
    amount: int
    cost: int


@dataclass(frozen=True)
class BlackMarketResult:
    """Stats after black market purchases, and what was bought."""

    stats: CountryStats
    purchases: tuple[Purchase, ...] = ()


def buy_from_black_market(
    stats: CountryStats,
    shortages: list[Shortage],
    prices: dict[str, float],
) -> BlackMarketResult:
    """Cover shortages at black market prices, most critical first.

    A shortage is bought in full when its cost stays within 80% of the
    remaining budget; otherwise it is skipped.
    """
    updated = stats.copy_stats()
    purchases = []
    for shortage in sorted(shortages, key=lambda s: s.gap, reverse=True):
        price = black_market_buy_price(unit_price(shortage.resource_id, prices))
        amount = shortage.gap
        cost = amount * price
        if cost > 0 and cost <= updated.budget * BLACK_MARKET_BUDGET_SHARE:
            updated.resources[shortage.resource_id] = updated.resource(shortage.resource_id) + amount
            updated.budget -= cost
            purchases.append(Purchase(shortage.resource_id, amount, cost))
    if purchases:
        logger.info(
            f"{stats.country_id} bought on the black market: "
            + ", ".join(f"{p.amount}x {p.resource_id} for ${p.cost}" for p in purchases)
        )
    return BlackMarketResult(stats=updated, purchases=tuple(purchases))
