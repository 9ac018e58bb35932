"""Runtime configuration for Statecraft.

Tunable defaults live in statecraft.parameters. The values that operators
are expected to adjust without a code change are read here from STATECRAFT_*
environment variables, falling back to those defaults.

Configuration via environment variables:
    STATECRAFT_TRADE_AI_SPREAD: Barter spread for AI<->AI trades (default: 0.02)
    STATECRAFT_TRADE_PLAYER_SPREAD: Barter spread for AI<->player trades (default: 0.18)
    STATECRAFT_TRADE_AI_TOLERANCE: AI<->AI normalizedNet band (default: 0.05)
    STATECRAFT_MIN_SELECTION_WEIGHT: Weighted selection floor (default: 0.01)
    STATECRAFT_WORKERS: Economic worker pool size (default: 4)
    STATECRAFT_TASK_DELAY: Seconds between worker submissions (default: 0)
    STATECRAFT_PLAN_ACTION_CAP: Plan actions per country per turn (default: 2)
    STATECRAFT_LOG_LEVEL: Logging level name for the CLI (default: "WARNING")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from statecraft import parameters as p

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
DEFAULT_TASK_DELAY = 0.0
DEFAULT_LOG_LEVEL = "WARNING"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class TradeSettings:
    """Limits and fairness envelopes used by the trade planner.

    Attributes:
        min_deal_notional: Smallest worthwhile proposal (larger side value)
        budget_reserve: Budget the proposer never spends
        max_budget_spend_ratio: Share of spendable budget one proposal may use
        partner_resource_reserve: Stock the partner always keeps back
        proposer_resource_reserve: Stock the proposer always keeps back
        ai_fairness_tolerance: Symmetric band for AI<->AI proposals
        ai_advantage_cap: Ceiling of the AI<->player band
        player_max_loss: Magnitude of the floor of the AI<->player band
        min_budget_adjustment: Smallest budget top-up worth attaching
        player_spread: Barter spread toward a player
        ai_spread: Barter spread toward another AI
    """

    min_deal_notional: int = p.MIN_DEAL_NOTIONAL
    budget_reserve: int = p.BUDGET_RESERVE
    max_budget_spend_ratio: float = p.MAX_BUDGET_SPEND_RATIO
    partner_resource_reserve: int = p.PARTNER_RESOURCE_RESERVE
    proposer_resource_reserve: int = p.PROPOSER_RESOURCE_RESERVE
    ai_fairness_tolerance: float = p.AI_FAIRNESS_TOLERANCE
    ai_advantage_cap: float = p.AI_ADVANTAGE_CAP
    player_max_loss: float = p.PLAYER_MAX_LOSS
    min_budget_adjustment: int = p.MIN_BUDGET_ADJUSTMENT
    player_spread: float = p.PLAYER_SPREAD
    ai_spread: float = p.AI_SPREAD

    @classmethod
    def from_env(cls) -> TradeSettings:
        """Build settings, letting STATECRAFT_TRADE_* variables override defaults."""
        return cls(
            ai_fairness_tolerance=_env_float(
                "STATECRAFT_TRADE_AI_TOLERANCE", p.AI_FAIRNESS_TOLERANCE
            ),
            player_spread=_env_float("STATECRAFT_TRADE_PLAYER_SPREAD", p.PLAYER_SPREAD),
            ai_spread=_env_float("STATECRAFT_TRADE_AI_SPREAD", p.AI_SPREAD),
        )


@dataclass(frozen=True)
class EngineSettings:
    """Settings for one turn-processing run.

    Attributes:
        workers: Maximum concurrent economic computations
        task_delay: Seconds to wait between worker submissions
        plan_action_cap: Plan-derived actions allowed per country per turn
        min_selection_weight: Floor for weighted random selection
        trade: Trade planner settings
    """

    workers: int = DEFAULT_WORKERS
    task_delay: float = DEFAULT_TASK_DELAY
    plan_action_cap: int = p.PLAN_ACTION_CAP
    min_selection_weight: float = p.MIN_SELECTION_WEIGHT
    trade: TradeSettings = TradeSettings()

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Build settings from STATECRAFT_* environment variables."""
        workers = _env_int("STATECRAFT_WORKERS", DEFAULT_WORKERS)
        return cls(
            workers=max(1, workers),
            task_delay=max(0.0, _env_float("STATECRAFT_TASK_DELAY", DEFAULT_TASK_DELAY)),
            plan_action_cap=max(0, _env_int("STATECRAFT_PLAN_ACTION_CAP", p.PLAN_ACTION_CAP)),
            min_selection_weight=_env_float(
                "STATECRAFT_MIN_SELECTION_WEIGHT", p.MIN_SELECTION_WEIGHT
            ),
            trade=TradeSettings.from_env(),
        )


def get_log_level() -> str:
    """Get configured log level name from environment."""
    return os.environ.get("STATECRAFT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
