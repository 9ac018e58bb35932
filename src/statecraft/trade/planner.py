"""Autonomous trade planner for AI countries.

The planner is stateless per call: it reads a full game snapshot and returns
ranked proposals. It never mutates stats; execution lives in
statecraft.trade.executor.

Algorithm:
    1. Shortages: the largest requirement for each resource across the next
       research, infrastructure and a 20-strength recruitment, compared to stock
    2. Surpluses: stocks at twice the assumed per-turn consumption; half trades
    3. Partners: countries holding a shortage resource in the needed amount,
       or holding little of one of our surplus resources
    4. For each (partner, shortage): one barter proposal per surplus resource,
       then one budget purchase
    5. Fairness gating per counterpart type, with a budget top-up when a
       proposal is too generous to the proposer

Fairness envelopes (normalized_net, proposer's view):
    AI <-> AI:      [-0.05, +0.05], target 0.00, spread 0.02
    AI -> player:   [-0.15, +0.15], target 0.09, spread 0.18
"""

from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass, field

from statecraft.config import TradeSettings
from statecraft.economy.costs import (
    infrastructure_requirements,
    military_requirements,
    research_requirements,
)
from statecraft.models.country import Country, CountryStats
from statecraft.models.deals import BudgetTransfer, ResourceTransfer
from statecraft.models.game import GameSnapshot
from statecraft.parameters import (
    AI_PLAYER_TARGET_SHARE,
    CONFIDENCE_FAIRNESS_WEIGHT,
    CONFIDENCE_URGENCY_WEIGHT,
    LOW_PARTNER_STOCK,
    MAX_PROPOSALS,
    SHORTAGE_RECRUIT_ESTIMATE,
    SURPLUS_CONSUMPTION_BASELINE,
    VALUE_BOOST_NOTIONAL,
)
from statecraft.trade.valuation import (
    FairnessRange,
    TradeEvaluation,
    budget_adjustment,
    evaluate_proposal,
    receive_amount_for_give,
    required_give_amount,
    unit_price,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Shortage:
    """A resource the country needs more of than it holds."""

    resource_id: str
    needed: int
    available: int

    @property
    def gap(self) -> int:
        return max(0, self.needed - self.available)


@dataclass(frozen=True)
class Surplus:
    """A resource the country can spare, and how much of it."""

    resource_id: str
    amount: int


@dataclass(frozen=True)
class FairnessProfile:
    """Fairness envelope for one counterpart type."""

    range: FairnessRange
    target: float
    spread: float


@dataclass
class TradeProposal:
    """A priced, fairness-checked trade proposal.

    Attributes:
        proposer_id: Country proposing (and evaluating) the trade
        receiver_id: Partner country
        proposer_commitments: What the proposer gives
        receiver_commitments: What the proposer receives
        evaluation: Market valuation after any budget top-up
        urgency: Fraction of the shortage's need that is unmet
        confidence: Blend of urgency and closeness to the fairness target
        score: Ranking score
    """

    proposer_id: str
    receiver_id: str
    proposer_commitments: list[ResourceTransfer | BudgetTransfer] = field(default_factory=list)
    receiver_commitments: list[ResourceTransfer | BudgetTransfer] = field(default_factory=list)
    evaluation: TradeEvaluation | None = None
    urgency: float = 0.0
    confidence: float = 0.0
    score: float = 0.0

    @property
    def net_benefit(self) -> float:
        return self.evaluation.net_benefit if self.evaluation else 0.0

    @property
    def normalized_net(self) -> float:
        return self.evaluation.normalized_net if self.evaluation else 0.0

    def describe(self) -> str:
        """Compact commitment summary for logs."""

        def fmt(commitments):
            parts = []
            for c in commitments:
                if isinstance(c, ResourceTransfer):
                    parts.append(f"{c.amount}x {c.resource}")
                else:
                    parts.append(f"${c.amount}")
            return " and ".join(parts) or "nothing"

        return (
            f"{self.proposer_id} gives {fmt(self.proposer_commitments)} "
            f"for {fmt(self.receiver_commitments)} from {self.receiver_id}"
        )

    def deal_id(self, game_id: str, turn: int, kind: str = "trade") -> str:
        """Stable id for the deal created from this proposal on a turn."""
        digest = hashlib.sha1(self.describe().encode("utf-8")).hexdigest()[:10]
        return f"{game_id}:{turn}:{kind}:{self.proposer_id}:{self.receiver_id}:{digest}"


class TradePlanner:
    """Builds trade proposals for one AI country at a time.

    Args:
        settings: Limits and fairness envelopes (defaults from parameters)
    """

    def __init__(self, settings: TradeSettings | None = None):
        self.settings = settings or TradeSettings()

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def plan_trades(
        self,
        country_id: str,
        snapshot: GameSnapshot,
        prices: dict[str, float],
    ) -> list[TradeProposal]:
        """Rank trade proposals for a country.

        Args:
            country_id: Proposing country
            snapshot: Game state with current (possibly mid-turn) stats
            prices: Resource id -> market price

        Returns:
            Up to three proposals, best first
        """
        stats = snapshot.stats.get(country_id)
        if snapshot.country(country_id) is None or stats is None:
            logger.warning(f"Country {country_id} not found in snapshot, no trades planned")
            return []

        shortages = self.detect_shortages(stats)
        surpluses = self.detect_surpluses(stats)
        if not shortages or not surpluses:
            return []

        proposals: list[TradeProposal] = []
        for partner in self.find_partners(country_id, snapshot, shortages, surpluses):
            proposals.extend(
                self.generate_trade_proposals(
                    stats,
                    partner,
                    snapshot.stats[partner.id],
                    shortages,
                    surpluses,
                    prices,
                )
            )

        proposals.sort(key=lambda p: p.score, reverse=True)
        logger.debug(f"Planned {len(proposals)} proposals for {country_id}")
        return proposals[:MAX_PROPOSALS]

    # -------------------------------------------------------------------------
    # Needs and offers
    # -------------------------------------------------------------------------

    def detect_shortages(self, stats: CountryStats) -> list[Shortage]:
        """Resources that would block the country's likely next actions."""
        requirements: dict[str, int] = {}
        for required in (
            research_requirements(stats.technology_level),
            infrastructure_requirements(stats.infrastructure_level),
            military_requirements(SHORTAGE_RECRUIT_ESTIMATE, stats.technology_level),
        ):
            for resource_id, amount in required.items():
                requirements[resource_id] = max(requirements.get(resource_id, 0), amount)

        shortages = []
        for resource_id, needed in requirements.items():
            available = stats.resource(resource_id)
            if available < needed:
                shortages.append(Shortage(resource_id, needed, available))
        return shortages

    def detect_surpluses(self, stats: CountryStats) -> list[Surplus]:
        """Resources held at twice the assumed consumption; half is tradeable."""
        return [
            Surplus(resource_id, amount // 2)
            for resource_id, amount in stats.resources.items()
            if amount >= SURPLUS_CONSUMPTION_BASELINE * 2
        ]

    def find_partners(
        self,
        country_id: str,
        snapshot: GameSnapshot,
        shortages: list[Shortage],
        surpluses: list[Surplus],
    ) -> list[Country]:
        """Countries that hold what we need or lack what we can spare."""
        partners = []
        for other in snapshot.countries:
            if other.id == country_id:
                continue
            other_stats = snapshot.stats.get(other.id)
            if other_stats is None:
                continue
            has_what_we_need = any(other_stats.resource(s.resource_id) >= s.needed for s in shortages)
            lacks_what_we_have = any(
                other_stats.resource(s.resource_id) < LOW_PARTNER_STOCK for s in surpluses
            )
            if has_what_we_need or lacks_what_we_have:
                partners.append(other)
        return partners

    # -------------------------------------------------------------------------
    # Proposal construction
    # -------------------------------------------------------------------------

    def fairness_profile(self, partner: Country) -> FairnessProfile:
        """Fairness envelope for trading with ``partner``."""
        s = self.settings
        if partner.is_player_controlled:
            return FairnessProfile(
                range=FairnessRange(min=-s.player_max_loss, max=s.ai_advantage_cap),
                target=min(s.ai_advantage_cap, s.ai_advantage_cap * AI_PLAYER_TARGET_SHARE),
                spread=s.player_spread,
            )
        return FairnessProfile(
            range=FairnessRange(min=-s.ai_fairness_tolerance, max=s.ai_fairness_tolerance),
            target=0.0,
            spread=s.ai_spread,
        )

    def generate_trade_proposals(
        self,
        stats: CountryStats,
        partner: Country,
        partner_stats: CountryStats,
        shortages: list[Shortage],
        surpluses: list[Surplus],
        prices: dict[str, float],
    ) -> list[TradeProposal]:
        """All viable proposals toward one partner, in construction order.

        For each shortage: one barter per surplus resource, then a purchase.
        """
        profile = self.fairness_profile(partner)
        proposals = []
        for shortage in shortages:
            if shortage.gap <= 0:
                continue
            partner_available = self._partner_available(partner_stats, shortage.resource_id)
            if partner_available <= 0:
                continue

            for surplus in surpluses:
                if surplus.resource_id == shortage.resource_id:
                    continue
                barter = self.build_barter_proposal(
                    stats, partner, surplus, shortage, partner_available, profile, prices
                )
                if barter is not None:
                    proposals.append(barter)

            purchase = self.build_buy_proposal(stats, partner, partner_stats, shortage, profile, prices)
            if purchase is not None:
                proposals.append(purchase)
        return proposals

    def build_barter_proposal(
        self,
        stats: CountryStats,
        partner: Country,
        surplus: Surplus,
        shortage: Shortage,
        partner_available: int,
        profile: FairnessProfile,
        prices: dict[str, float],
    ) -> TradeProposal | None:
        """Trade a surplus resource for a shortage resource."""
        available_give = max(
            0,
            min(
                surplus.amount,
                stats.resource(surplus.resource_id) - self.settings.proposer_resource_reserve,
            ),
        )
        if available_give <= 0:
            return None

        receive_limit = receive_amount_for_give(
            shortage.resource_id, surplus.resource_id, available_give, prices
        )
        if receive_limit <= 0:
            return None

        receive_target = min(shortage.gap, partner_available, receive_limit)
        if receive_target <= 0:
            return None

        give_target = required_give_amount(
            surplus.resource_id, shortage.resource_id, receive_target, prices, profile.spread
        )
        if give_target <= 0 or give_target > available_give:
            return None

        return self.build_proposal(
            stats,
            partner,
            [ResourceTransfer(resource=surplus.resource_id, amount=give_target)],
            [ResourceTransfer(resource=shortage.resource_id, amount=receive_target)],
            profile,
            prices,
            shortage,
        )

    def build_buy_proposal(
        self,
        stats: CountryStats,
        partner: Country,
        partner_stats: CountryStats,
        shortage: Shortage,
        profile: FairnessProfile,
        prices: dict[str, float],
    ) -> TradeProposal | None:
        """Pay budget for a shortage resource."""
        if shortage.gap <= 0:
            return None
        partner_available = self._partner_available(partner_stats, shortage.resource_id)
        if partner_available <= 0:
            return None

        price = unit_price(shortage.resource_id, prices)
        if price <= 0:
            return None
        spend_cap = self.budget_spend_cap(stats)
        if spend_cap < price:
            return None

        max_by_budget = math.floor(spend_cap / price)
        receive_target = min(shortage.gap, partner_available, max_by_budget)
        if receive_target <= 0:
            return None

        cost = math.ceil(receive_target * price)
        if not self.can_afford_budget(stats, cost):
            return None

        return self.build_proposal(
            stats,
            partner,
            [BudgetTransfer(amount=cost)],
            [ResourceTransfer(resource=shortage.resource_id, amount=receive_target)],
            profile,
            prices,
            shortage,
        )

    def build_proposal(
        self,
        stats: CountryStats,
        partner: Country,
        proposer_commitments: list[ResourceTransfer | BudgetTransfer],
        receiver_commitments: list[ResourceTransfer | BudgetTransfer],
        profile: FairnessProfile,
        prices: dict[str, float],
        shortage: Shortage,
    ) -> TradeProposal | None:
        """Gate a raw proposal on fairness, topping it up with budget if needed.

        Returns:
            The scored proposal, or None when it cannot be made fair
        """
        evaluation = evaluate_proposal(proposer_commitments, receiver_commitments, prices)
        if evaluation.normalized_net < profile.range.min:
            return None

        if evaluation.normalized_net > profile.range.max:
            adjustment = budget_adjustment(evaluation.normalized_net, profile.range, evaluation.notional_value)
            if adjustment >= self.settings.min_budget_adjustment:
                amount = math.ceil(adjustment)
                if not self.can_afford_budget(stats, amount) or amount > self.budget_spend_cap(stats):
                    return None
                proposer_commitments = [*proposer_commitments, BudgetTransfer(amount=amount)]
                evaluation = evaluate_proposal(proposer_commitments, receiver_commitments, prices)

        if not profile.range.contains(evaluation.normalized_net):
            return None
        if evaluation.notional_value < self.settings.min_deal_notional:
            return None

        urgency = self.shortage_urgency(shortage)
        confidence = self.confidence(evaluation.normalized_net, profile, urgency)
        return TradeProposal(
            proposer_id=stats.country_id,
            receiver_id=partner.id,
            proposer_commitments=list(proposer_commitments),
            receiver_commitments=list(receiver_commitments),
            evaluation=evaluation,
            urgency=urgency,
            confidence=confidence,
            score=self.score(evaluation.normalized_net, urgency, evaluation.notional_value, confidence),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _partner_available(self, partner_stats: CountryStats, resource_id: str) -> int:
        return max(0, partner_stats.resource(resource_id) - self.settings.partner_resource_reserve)

    def budget_spend_cap(self, stats: CountryStats) -> float:
        """Most budget one proposal may spend."""
        available = max(0.0, stats.budget - self.settings.budget_reserve)
        return available * self.settings.max_budget_spend_ratio

    def can_afford_budget(self, stats: CountryStats, amount: float) -> bool:
        """True when paying ``amount`` still leaves the budget reserve."""
        if amount <= 0:
            return False
        return stats.budget - amount >= self.settings.budget_reserve

    @staticmethod
    def shortage_urgency(shortage: Shortage | None) -> float:
        """Fraction of the need that is unmet (0.5 when unknown)."""
        if shortage is None or not shortage.needed:
            return 0.5
        return min(1.0, shortage.gap / shortage.needed)

    @staticmethod
    def confidence(normalized_net: float, profile: FairnessProfile, urgency: float) -> float:
        width = max(0.01, profile.range.width)
        closeness = max(0.0, 1 - abs(normalized_net - profile.target) / width)
        blended = CONFIDENCE_URGENCY_WEIGHT * urgency + CONFIDENCE_FAIRNESS_WEIGHT * closeness
        return max(0.0, min(1.0, blended))

    @staticmethod
    def score(normalized_net: float, urgency: float, notional_value: float, confidence: float) -> float:
        return normalized_net + urgency + confidence + min(1.0, notional_value / VALUE_BOOST_NOTIONAL)
