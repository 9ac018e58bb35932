"""Plan step selection and plan-driven AI actions.

A plan is an ordered list of steps and constraints authored outside the
engine. For each domain request ("next economic step", "next military
recruit step") the engine picks the first eligible step in list order:

    - the step's action type matches the domain, and its action data fits
      the domain schema (economic: subType "infrastructure" + targetLevel;
      research: targetLevel; military: subType recruit or attack, with a
      targetCityId for attacks)
    - every ``when`` condition holds
    - its ``stop_when`` conditions do not all hold yet
    - it has not been executed, unless it carries an unmet stop_when, in
      which case it repeats turn after turn
    - it was not already taken this turn, and no constraint prohibits it

A malformed step is never an error; it is simply not eligible.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from statecraft.economy.budget import compute_budget
from statecraft.economy.costs import (
    ActionPrice,
    price_attack,
    price_infrastructure,
    price_recruitment,
    price_research,
)
from statecraft.errors import ValidationError
from statecraft.models.actions import Action, ActionType, AttackPayload, parse_action_data
from statecraft.models.country import City, CountryStats
from statecraft.models.plans import PlanConstraint, PlanStep
from statecraft.parameters import MIN_SELECTION_WEIGHT, PLAN_ACTION_CAP, RECRUIT_AMOUNT_STANDARD
from statecraft.engine.rng import weighted_select

logger = logging.getLogger(__name__)

PlanItems = Iterable[PlanStep | PlanConstraint]

CONDITION_FIELDS: dict[str, str] = {
    "tech_level_gte": "technology_level",
    "infrastructure_level_gte": "infrastructure_level",
    "military_strength_gte": "military_strength",
    "budget_gte": "budget",
    "population_gte": "population",
}
"""Condition key -> CountryStats attribute it compares against (>=)."""

DOMAIN_KINDS: dict[ActionType, tuple[str, ...]] = {
    ActionType.ECONOMIC: ("infrastructure",),
    ActionType.RESEARCH: ("research",),
    ActionType.MILITARY: ("recruit", "attack"),
}

# Domain requests made each turn, in order.
PLAN_REQUESTS: tuple[tuple[ActionType, str | None], ...] = (
    (ActionType.ECONOMIC, None),
    (ActionType.RESEARCH, None),
    (ActionType.MILITARY, "recruit"),
    (ActionType.MILITARY, "attack"),
)

BAN_KEYWORDS = ("recruit", "attack", "research", "infrastructure")

_NEGATION = re.compile(r"\b(refrain|avoid|do\s*not|don't|no)\b", re.IGNORECASE)
_BAN_PATTERNS = (
    ("recruit", re.compile(r"\b(recruit\w*|conscript\w*|train\s+military)\b", re.IGNORECASE)),
    ("attack", re.compile(r"\b(attack\w*|invade|invasion|war)\b", re.IGNORECASE)),
    ("research", re.compile(r"\b(research|tech|technology)\b", re.IGNORECASE)),
    ("infrastructure", re.compile(r"\b(infrastructure|infra)\b", re.IGNORECASE)),
)


# =============================================================================
# Conditions and constraints
# =============================================================================


def known_conditions(conditions: dict[str, Any] | None) -> dict[str, Any]:
    """Drop condition keys the engine does not understand."""
    return {k: v for k, v in (conditions or {}).items() if k in CONDITION_FIELDS}


def conditions_hold(conditions: dict[str, Any] | None, stats: CountryStats) -> bool:
    """True when every known condition holds; vacuously true when there are none."""
    for key, threshold in known_conditions(conditions).items():
        if getattr(stats, CONDITION_FIELDS[key]) < threshold:
            return False
    return True


def constraint_bans(constraint: PlanConstraint) -> set[str]:
    """Action categories a constraint forbids.

    An explicit ``prohibit`` list wins. Otherwise a negated instruction such
    as "Avoid any recruitment this turn" is read for category keywords.
    """
    explicit = {p.lower() for p in constraint.prohibit if p.lower() in BAN_KEYWORDS}
    if explicit or constraint.prohibit:
        return explicit
    if not _NEGATION.search(constraint.instruction):
        return set()
    return {name for name, pattern in _BAN_PATTERNS if pattern.search(constraint.instruction)}


def plan_bans(plan: PlanItems) -> set[str]:
    bans: set[str] = set()
    for item in plan:
        if isinstance(item, PlanConstraint):
            bans |= constraint_bans(item)
    return bans


# =============================================================================
# Step selection
# =============================================================================


def step_payload(
    step: PlanStep,
    stats: CountryStats,
    domain: ActionType,
    sub_type: str | None = None,
) -> Any | None:
    """Typed payload for a step in the requested domain, or None if it does not fit.

    Fills the defaults a plan may omit: a recruit without an amount uses the
    standard batch, an attack without allocatedStrength commits half the
    country's strength.
    """
    execution = step.execution
    if execution is None or execution.action_type != domain or domain not in DOMAIN_KINDS:
        return None

    data = dict(execution.action_data)
    raw_sub_type = data.get("subType", data.get("sub_type"))
    if domain == ActionType.MILITARY:
        if raw_sub_type not in DOMAIN_KINDS[domain]:
            return None
        if sub_type is not None and raw_sub_type != sub_type:
            return None
        if raw_sub_type == "recruit":
            data.setdefault("amount", RECRUIT_AMOUNT_STANDARD)
        elif "allocatedStrength" not in data and "allocated_strength" not in data:
            half = stats.military_strength // 2
            if half <= 0:
                return None
            data["allocatedStrength"] = half
    elif "targetLevel" not in data and "target_level" not in data:
        return None

    try:
        payload = parse_action_data(domain, data)
    except ValidationError as e:
        logger.debug(f"Plan step {step.id} is malformed: {e}")
        return None

    if payload.kind == "research" and stats.technology_level >= payload.target_level:
        return None
    if payload.kind == "infrastructure" and stats.infrastructure_level >= payload.target_level:
        return None
    return payload


def is_repeatable(step: PlanStep) -> bool:
    return bool(known_conditions(step.stop_when))


def select_next_step(
    plan: PlanItems,
    stats: CountryStats,
    domain: ActionType,
    executed_ids: Iterable[str] = (),
    taken_ids: Iterable[str] = frozenset(),
    sub_type: str | None = None,
) -> PlanStep | None:
    """First eligible step for a domain request, in plan order.

    Args:
        plan: Ordered plan items for one country
        stats: Country's current stats
        domain: Requested action type
        executed_ids: Ids of steps executed on earlier turns
        taken_ids: Ids of steps already selected this turn
        sub_type: For military requests, "recruit" or "attack"

    Returns:
        The step, or None when nothing is eligible
    """
    items = list(plan)
    executed = set(executed_ids)
    taken = set(taken_ids)
    bans = plan_bans(items)

    for item in items:
        if not isinstance(item, PlanStep) or item.id in taken:
            continue
        payload = step_payload(item, stats, domain, sub_type)
        if payload is None:
            continue
        if payload.kind in bans:
            continue
        if not conditions_hold(item.when, stats):
            continue
        if is_repeatable(item):
            if conditions_hold(item.stop_when, stats):
                continue
        elif item.id in executed:
            continue
        return item
    return None


# =============================================================================
# Plan-driven actions
# =============================================================================


FOCUS_OPTIONS = ("research", "infrastructure", "recruit")

PROFILE_FOCUS_BIAS: dict[str, dict[str, float]] = {
    "Tech Innovator": {"research": 3},
    "Military State": {"recruit": 3},
    "Industrial Powerhouse": {"infrastructure": 2},
    "Trade Hub": {"infrastructure": 2},
    "Mining Empire": {"recruit": 1, "infrastructure": 1},
    "Agricultural Hub": {"infrastructure": 1},
    "Oil Kingdom": {"research": 1},
    "Balanced Nation": {},
}
"""Extra selection weight per focus for countries without a plan."""

SAFETY_BUFFER_MIN = 500
SAFETY_BUFFER_EXPENSE_TURNS = 2


@dataclass
class PlannedActions:
    """Actions drawn from a country's plan for one turn.

    Attributes:
        actions: Pending actions, in request order
        step_ids: Ids of the plan steps that produced them
        stats: Country stats after attack pre-payments
        cities: Cities whose under-attack flag was set
    """

    actions: list[Action] = field(default_factory=list)
    step_ids: list[str] = field(default_factory=list)
    stats: CountryStats | None = None
    cities: dict[str, City] = field(default_factory=dict)


def plan_action_id(game_id: str, turn: int, country_id: str, step_id: str) -> str:
    """Action id for a plan step taken on a turn.

    Ids seed combat, so they are derived from the game state rather than
    generated: re-running a turn reproduces its battles.
    """
    return f"{game_id}:{turn}:{country_id}:{step_id}"


def _price_for(payload: Any, stats: CountryStats) -> ActionPrice:
    if payload.kind == "research":
        return price_research(stats)
    if payload.kind == "infrastructure":
        return price_infrastructure(stats)
    if payload.kind == "recruit":
        return price_recruitment(payload.amount, stats)
    return price_attack(payload.allocated_strength)


def plan_actions(
    stats: CountryStats,
    plan: PlanItems,
    executed_ids: Iterable[str],
    cities: dict[str, City],
    game_id: str,
    turn: int,
    cap: int = PLAN_ACTION_CAP,
) -> PlannedActions:
    """Turn a country's plan into at most ``cap`` pending actions.

    Each domain is requested once, in PLAN_REQUESTS order. A step whose
    price the country cannot afford from what is left of its budget is
    treated as no step for that domain. Attacks are paid for up front:
    the cost leaves the budget now, and the target city is flagged.

    Args:
        stats: Country's current stats
        plan: Ordered plan items
        executed_ids: Step ids executed on earlier turns
        cities: City id -> City for the whole game
        game_id: Game id
        turn: Turn being processed
        cap: Maximum actions to produce

    Returns:
        PlannedActions with updated stats and any flagged cities
    """
    items = list(plan)
    result = PlannedActions(stats=stats.copy_stats())
    budget_left = stats.budget

    for domain, sub_type in PLAN_REQUESTS:
        if len(result.actions) >= cap:
            break
        step = select_next_step(items, result.stats, domain, executed_ids, result.step_ids, sub_type)
        if step is None:
            continue
        payload = step_payload(step, result.stats, domain, sub_type)
        price = _price_for(payload, result.stats)
        if not price.affordable(budget_left):
            logger.debug(f"{stats.country_id} cannot afford plan step {step.id} (${price.cost})")
            continue

        if isinstance(payload, AttackPayload):
            payload = _prepare_attack(payload, result, cities, price)
            if payload is None:
                continue

        budget_left -= price.cost
        result.actions.append(Action(
            id=plan_action_id(game_id, turn, stats.country_id, step.id),
            game_id=game_id,
            country_id=stats.country_id,
            turn=turn,
            action_type=domain,
            payload=payload,
        ))
        result.step_ids.append(step.id)
        logger.debug(f"{stats.country_id} takes plan step {step.id}: {step.instruction}")

    return result


def _prepare_attack(
    payload: AttackPayload,
    result: PlannedActions,
    cities: dict[str, City],
    price: ActionPrice,
) -> AttackPayload | None:
    stats = result.stats
    city = result.cities.get(payload.target_city_id) or cities.get(payload.target_city_id)
    if city is None or city.country_id == stats.country_id or city.is_under_attack:
        return None
    if payload.allocated_strength > stats.military_strength:
        return None

    stats.budget -= price.cost
    result.cities[city.id] = city.model_copy(update={"is_under_attack": True})
    return payload.model_copy(update={
        "defender_id": city.country_id,
        "immediate": True,
        "cost": price.cost,
    })


def choose_focus(
    stats: CountryStats,
    rng: Callable[[], float],
    min_weight: float = MIN_SELECTION_WEIGHT,
) -> str:
    """Pick a development focus for a country without a plan, biased by its profile."""
    profile_name = stats.resource_profile.name if stats.resource_profile else ""
    return weighted_select(FOCUS_OPTIONS, rng, PROFILE_FOCUS_BIAS.get(profile_name, {}), min_weight)


def fallback_action(
    stats: CountryStats,
    rng: Callable[[], float],
    game_id: str,
    turn: int,
    min_weight: float = MIN_SELECTION_WEIGHT,
) -> Action | None:
    """One rule-based action for a country with no plan.

    The action is only taken when the country keeps a safety buffer of
    max(500, two turns of expenses) after paying for it.
    """
    focus = choose_focus(stats, rng, min_weight)
    if focus == "research":
        action_type, payload = ActionType.RESEARCH, {"kind": "research"}
        price = price_research(stats)
    elif focus == "infrastructure":
        action_type, payload = ActionType.ECONOMIC, {"kind": "infrastructure"}
        price = price_infrastructure(stats)
    else:
        action_type, payload = ActionType.MILITARY, {"kind": "recruit", "amount": RECRUIT_AMOUNT_STANDARD}
        price = price_recruitment(RECRUIT_AMOUNT_STANDARD, stats)

    expenses = compute_budget(stats).total_expenses
    buffer = max(SAFETY_BUFFER_MIN, expenses * SAFETY_BUFFER_EXPENSE_TURNS)
    if not price.affordable(stats.budget - buffer):
        logger.debug(f"{stats.country_id} holds off on {focus}: ${price.cost} would break its reserve")
        return None

    return Action(
        id=f"{game_id}:{turn}:{stats.country_id}:{focus}",
        game_id=game_id,
        country_id=stats.country_id,
        turn=turn,
        action_type=action_type,
        payload=payload,
    )
