"""Trade valuation, planning and execution.

Usage:
    from statecraft.trade import TradePlanner, execute_trade

    planner = TradePlanner()
    proposals = planner.plan_trades(country_id, snapshot, prices)
    if proposals:
        execution = execute_trade(proposals[0], stats_by_country, game_id, turn)
"""

from .cooldowns import OfferCooldowns
from .executor import (
    BlackMarketResult,
    DealProcessing,
    Purchase,
    TradeExecution,
    active_deals_value,
    apply_terms,
    buy_from_black_market,
    execute_trade,
    process_deals,
    validate_commitments,
)
from .offers import TradeOfferService
from .planner import FairnessProfile, Shortage, Surplus, TradePlanner, TradeProposal
from .valuation import (
    FairnessRange,
    TradeEvaluation,
    budget_adjustment,
    commitment_value,
    evaluate_proposal,
    market_value,
    receive_amount_for_give,
    required_give_amount,
    unit_price,
)

__all__ = [
    # Valuation
    "FairnessRange",
    "TradeEvaluation",
    "unit_price",
    "commitment_value",
    "market_value",
    "evaluate_proposal",
    "required_give_amount",
    "receive_amount_for_give",
    "budget_adjustment",
    # Planning
    "Shortage",
    "Surplus",
    "FairnessProfile",
    "TradeProposal",
    "TradePlanner",
    # Execution
    "TradeExecution",
    "DealProcessing",
    "Purchase",
    "BlackMarketResult",
    "validate_commitments",
    "apply_terms",
    "execute_trade",
    "process_deals",
    "active_deals_value",
    "buy_from_black_market",
    # Offers
    "OfferCooldowns",
    "TradeOfferService",
]
