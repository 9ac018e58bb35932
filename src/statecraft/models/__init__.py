"""Statecraft data models.

This module exports the records exchanged between the engine, the game
store and the other collaborators.
"""

from .actions import (
    Action,
    ActionPayload,
    ActionStatus,
    ActionType,
    AttackPayload,
    DiplomacyPayload,
    InfrastructurePayload,
    RecruitPayload,
    ResearchPayload,
    parse_action_data,
)
from .base import StatecraftModel
from .country import City, Country, CountryStats, ResourceModifier, ResourceProfile, clamp
from .deals import (
    BudgetTransfer,
    Commitment,
    Deal,
    DealStatus,
    DealTerms,
    ResourceTransfer,
    parse_commitments,
)
from .game import Game, GameSnapshot, GameStatus, Rejection, TurnCommit, TurnEvent
from .plans import CONDITION_KEYS, PlanConstraint, PlanExecution, PlanItem, PlanStep, parse_plan

__all__ = [
    # Base
    "StatecraftModel",
    "clamp",
    # Countries
    "Country",
    "CountryStats",
    "ResourceModifier",
    "ResourceProfile",
    "City",
    # Actions
    "ActionType",
    "ActionStatus",
    "Action",
    "ActionPayload",
    "ResearchPayload",
    "InfrastructurePayload",
    "RecruitPayload",
    "AttackPayload",
    "DiplomacyPayload",
    "parse_action_data",
    # Deals
    "DealStatus",
    "Deal",
    "DealTerms",
    "Commitment",
    "ResourceTransfer",
    "BudgetTransfer",
    "parse_commitments",
    # Plans
    "CONDITION_KEYS",
    "PlanItem",
    "PlanStep",
    "PlanConstraint",
    "PlanExecution",
    "parse_plan",
    # Game
    "Game",
    "GameStatus",
    "GameSnapshot",
    "TurnEvent",
    "TurnCommit",
    "Rejection",
]
