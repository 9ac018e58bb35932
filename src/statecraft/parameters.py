"""Economic and trade balance parameters for Statecraft.

This module is the SINGLE SOURCE OF TRUTH for all tunable game constants.
Formula modules import from here; nothing else hard-codes a balance number.

Parameter Categories:
- Budget: Tax and trade income
- Production / Consumption: Per-turn resource flows
- Technology: Production multipliers and military/research bonuses
- Population: Growth, starvation and capacity
- Infrastructure / Military / Upgrades: Costs and capacities
- Market: Scarcity pricing and black market spreads
- Trade: Fairness envelopes used by the trade planner
- Combat / Diplomacy: Battle odds and relation shifts

Usage:
    from statecraft.parameters import BASE_TAX_PER_CITIZEN, TECH_MULTIPLIERS

Note: Values marked "overridable" can be replaced at runtime through
statecraft.config (environment variables). The values here are defaults.
"""

# =============================================================================
# BUDGET PARAMETERS
# =============================================================================

POPULATION_UNIT = 10_000
"""Population is measured in units of this many citizens for tax and food."""

BASE_TAX_PER_CITIZEN = 22
"""Tax revenue per population unit (10k citizens) per turn.

Current: 22

Analysis:
    A starting country of 100k population at infrastructure 1 yields
    about 250 per turn before profile modifiers. Upkeep for 40 strength
    + infra 1 is 20 + 25 = 45, so a fresh country nets roughly 200 per
    turn and can afford one upgrade every 2-3 turns.

Tuning:
    - If upgrades come too fast: decrease toward 18
    - If AI countries stall with empty treasuries: increase toward 26

Related: INFRASTRUCTURE_TAX_EFFICIENCY, OVERCROWDING_TAX_PENALTY
"""

INFRASTRUCTURE_TAX_EFFICIENCY = 0.15
"""Tax multiplier bonus per infrastructure level (1 + level * 0.15).

Technology does NOT affect tax; it affects production instead.
"""

TRADE_INCOME_MULTIPLIER = 0.20
"""Fraction of active deal value that becomes trade revenue each turn."""


# =============================================================================
# PRODUCTION / CONSUMPTION PARAMETERS
# =============================================================================

BASE_FOOD_PER_POP = 6.5
"""Food produced per population unit before technology and profile.

Current: 6.5 (vs FOOD_PER_10K_POPULATION = 5)

Analysis:
    Production outpaces consumption by 30% at technology 0, so a country
    without a food-poor profile accumulates a modest surplus. Food-poor
    profiles (Mining Empire 0.7, Industrial Powerhouse 0.8) run close to
    break-even and must trade or research.

Tuning:
    - If starvation is common early: increase
    - If food never matters: decrease toward 5.5
"""

BASE_INDUSTRIAL_OUTPUT = 5
"""Base output for industrial and economic resources (coal, steel, gold)."""

RESOURCE_EXTRACTION_RATE = 10
"""Base extraction for timber, iron and oil."""

COPPER_BASE_OUTPUT = 8
"""Base output for copper before its 0.4 extraction factor."""

EXTRACTION_FACTORS = {
    "timber": 1.0,
    "iron": 0.8,
    "oil": 0.5,
    "coal": 0.9,
    "steel": 0.6,
    "gold": 0.4,
    "copper": 0.4,
}
"""Per-resource share of its base output (food is population-driven)."""

FOOD_PER_10K_POPULATION = 5
"""Food consumed per population unit per turn."""

MAINTENANCE_COST_MULTIPLIER = 0.005
"""Fraction of the treasury spent on upkeep each turn (0.5%)."""

MILITARY_UPKEEP_PER_STRENGTH = 0.5
"""Budget upkeep per point of military strength per turn."""


# =============================================================================
# TECHNOLOGY PARAMETERS
# =============================================================================

TECH_MULTIPLIERS = (1.0, 1.25, 1.6, 2.0, 2.5, 3.0)
"""Production multiplier for technology levels 0 through 5.

Current: 1.0, 1.25, 1.6, 2.0, 2.5, 3.0

Analysis:
    The step function is monotonic with diminishing relative gains
    (+25%, +28%, +25%, +25%, +20%). Levels above 5 continue with a
    logarithmic tail: 3.0 + log2(level - 4) * 0.25, so level 6 = 3.25,
    level 8 = 3.5, level 12 = 3.75.

Tuning:
    - If research snowballs: flatten the upper levels
    - If research is ignored: steepen levels 1-2

Related: TECH_BASE_COST, TECH_COST_MULTIPLIER
"""

TECH_TAIL_BASE = 3.0
TECH_TAIL_SLOPE = 0.25

MILITARY_EFFECTIVENESS_PER_LEVEL = 0.20
"""Effective military strength bonus per technology level (+20%)."""

MILITARY_COST_REDUCTION_PER_LEVEL = 0.05
MAX_MILITARY_COST_REDUCTION = 0.25
"""Recruitment discount per technology level, capped at 25%."""

RESEARCH_SPEED_BONUS_PER_LEVEL = 0.03
MAX_RESEARCH_SPEED_BONUS = 0.15
"""Research cost discount per technology level, capped at 15%."""


# =============================================================================
# POPULATION PARAMETERS
# =============================================================================

GROWTH_RATE_BASE = 0.02
"""Base population growth per turn (2%)."""

FOOD_SURPLUS_GROWTH_BONUS = 0.01
"""Extra growth per full 100 units of food left in stock after consumption."""

GROWTH_CAP_MULTIPLIER = 1.5
"""Growth is capped at population * GROWTH_RATE_BASE * this multiplier (3%)."""

STARVATION_THRESHOLD = 0.8
"""Population declines when less than 80% of required food is consumed."""

STARVATION_DECLINE_RATE = 0.03
"""Population lost per turn while starving (3%)."""

BASE_CAPACITY = 200_000
CAPACITY_PER_INFRASTRUCTURE = 50_000
"""Population capacity = BASE_CAPACITY + infrastructure * CAPACITY_PER_INFRASTRUCTURE.

Analysis:
    Capacity is the only hard brake on growth. A country at infrastructure 0
    becomes overcrowded at 200k, which halves growth, cuts tax by 20% and
    raises food consumption by 10% until it builds infrastructure.
"""

OVERCROWDING_GROWTH_PENALTY = 0.5
OVERCROWDING_TAX_PENALTY = 0.8
OVERCROWDING_FOOD_PENALTY = 1.1


# =============================================================================
# INFRASTRUCTURE / MILITARY / UPGRADE PARAMETERS
# =============================================================================

INFRASTRUCTURE_MAINTENANCE_PER_LEVEL = 25
"""Budget upkeep per infrastructure level per turn."""

BASE_TRADE_CAPACITY = 2
TRADE_CAPACITY_PER_LEVEL = 1
"""Concurrent trade deals = BASE_TRADE_CAPACITY + infrastructure level."""

TRADE_EFFICIENCY_PER_LEVEL = 0.10
"""Trade revenue bonus per infrastructure level (+10%)."""

COST_PER_STRENGTH_POINT = 30
"""Budget cost of one point of military strength before discounts."""

RECRUIT_AMOUNT_STANDARD = 15
"""Strength recruited when a plan step omits an explicit amount."""

TECH_BASE_COST = 500
TECH_COST_MULTIPLIER = 1.30
TECH_LATE_COST_MULTIPLIER = 1.20
"""Research cost: 500 * 1.30^level up to level 5, then *1.20 per extra level.

Analysis:
    Level 0 -> 1 costs 500, level 4 -> 5 costs 1428, level 5 -> 6 costs
    1856, level 8 -> 9 costs 3849. The softer late multiplier keeps high
    technology reachable for Tech Innovator (0.75 cost modifier).
"""

INFRA_BASE_COST = 450
INFRA_COST_MULTIPLIER = 1.25
"""Infrastructure cost: 450 * 1.25^level."""

RESOURCE_SHORTAGE_PENALTY_PER_TYPE = 0.4
MAX_RESOURCE_SHORTAGE_PENALTY = 2.5
"""Budget cost multiplier when required resources are missing.

Each missing resource type adds 40% to the budget cost (max 2.5x). The
missing resources are not consumed; the country pays for them in cash.
"""

ATTACK_BASE_COST = 100
ATTACK_COST_PER_STRENGTH = 10
"""Attack submission cost = ATTACK_BASE_COST + ATTACK_COST_PER_STRENGTH * allocated."""

RECRUIT_RESOURCE_UNIT = 10
"""Military resource requirements scale per this many strength points."""


# =============================================================================
# MARKET PARAMETERS
# =============================================================================

TARGET_STOCKS_PER_COUNTRY = {
    "food": 600,
    "timber": 300,
    "iron": 150,
    "oil": 100,
    "gold": 40,
    "copper": 200,
    "steel": 120,
    "coal": 250,
}
"""Stockpile per country at which a resource trades at its base value.

Analysis:
    scarcity = clamp(1 - total_stock / (target * countries), 0, 1) and
    price = round(base * (1 + scarcity)). Prices therefore range from base
    value (abundant) to double base value (nobody holds any).
"""

BLACK_MARKET_BUY_MULTIPLIER = 1.8
BLACK_MARKET_SELL_MULTIPLIER = 0.55

BLACK_MARKET_BUDGET_SHARE = 0.8
"""A black market purchase may use at most 80% of the remaining budget."""


# =============================================================================
# TRADE PARAMETERS (overridable, see statecraft.config.TradeSettings)
# =============================================================================

MIN_DEAL_NOTIONAL = 20
"""Proposals worth less than this (larger side at market value) are discarded."""

BUDGET_RESERVE = 30
"""Budget a proposer always keeps back when paying for trades."""

MAX_BUDGET_SPEND_RATIO = 0.5
"""Share of (budget - reserve) a single proposal may spend."""

PARTNER_RESOURCE_RESERVE = 25
PROPOSER_RESOURCE_RESERVE = 20

AI_FAIRNESS_TOLERANCE = 0.05
"""Symmetric normalizedNet band for AI<->AI proposals (+/-5%)."""

AI_ADVANTAGE_CAP = 0.15
"""Largest normalizedNet an AI may take from a player (+15%)."""

PLAYER_MAX_LOSS = 0.15
"""Largest normalizedNet an AI may concede to a player (-15%)."""

AI_PLAYER_TARGET_SHARE = 0.6
"""AI<->player proposals aim at AI_ADVANTAGE_CAP * 0.6 = +0.09."""

MIN_BUDGET_ADJUSTMENT = 1
"""Budget top-ups smaller than this are not worth a commitment."""

PLAYER_SPREAD = 0.18
AI_SPREAD = 0.02
"""Spreads applied to the inverted price ratio when sizing barter gives.

Current: 0.18 (AI->player), 0.02 (AI<->AI)

Analysis:
    Both values were tuned by play and have no closed-form derivation. The
    AI spread keeps barter rounding inside the +/-0.05 band; the player spread
    leaves room for the AI's +0.09 target while a budget top-up handles
    overshoot from integer rounding.

Tuning:
    Override through STATECRAFT_TRADE_AI_SPREAD / STATECRAFT_TRADE_PLAYER_SPREAD
    rather than editing these defaults.
"""

SURPLUS_CONSUMPTION_BASELINE = 100
"""Assumed per-turn consumption; stocks at 2x this are surplus."""

LOW_PARTNER_STOCK = 50
"""Partners holding less than this of our surplus resource are candidates."""

SHORTAGE_RECRUIT_ESTIMATE = 20
"""Recruitment size assumed when estimating next-turn shortages."""

MAX_PROPOSALS = 3
VALUE_BOOST_NOTIONAL = 200
CONFIDENCE_URGENCY_WEIGHT = 0.35
CONFIDENCE_FAIRNESS_WEIGHT = 0.65

TRADE_DEAL_LIFETIME = 1
"""Executed AI trades are recorded as active deals expiring next turn."""

OFFER_COOLDOWN_TURNS = 3
OFFER_LIFETIME = 3
OFFER_SURPLUS_THRESHOLD = 40
OFFER_SHORTAGE_THRESHOLD = 30
OFFER_RESOURCES = ("food", "steel", "coal", "iron", "timber")
"""AI->player trade offers: who qualifies and how often."""


# =============================================================================
# SELECTION PARAMETERS
# =============================================================================

MIN_SELECTION_WEIGHT = 0.01
"""Floor for weighted selection so strongly disfavoured options stay possible."""

PLAN_ACTION_CAP = 2
"""Maximum plan-derived actions per country per turn (overridable)."""


# =============================================================================
# COMBAT / DIPLOMACY PARAMETERS
# =============================================================================

DEFENSE_BONUS = 1.2
"""Defender's effective strength multiplier (terrain advantage)."""

SIGMOID_STEEPNESS = 2.5
MAX_WIN_CHANCE = 0.95
MIN_WIN_CHANCE = 0.05
WIN_CHANCE_HIGH_RATIO = 3.0
WIN_CHANCE_LOW_RATIO = 0.33
"""Attacker win chance from strength ratio.

Analysis:
    ratio = attacker_effective / (defender_effective * DEFENSE_BONUS)
    - ratio 1.0: 50%
    - ratio 2.0: ~92%
    - ratio 0.5: ~22%
    Clamped to 95% at ratio >= 3 and 5% at ratio <= 0.33.
"""

ATTACKER_WIN_LOSSES = (0.2, 0.4)
DEFENDER_LOSS_ON_CAPTURE = (0.4, 0.7)
ATTACKER_FAIL_LOSSES = (0.5, 0.8)
DEFENDER_HOLD_LOSSES = (0.2, 0.4)
"""Loss ranges as fractions of committed strength (low, high)."""

DEFENSE_BASE_ALLOCATION = 40
DEFENSE_PER_CITY_VALUE = 3
DEFENSE_MILITARISATION_SWING = 10
DEFENSE_MIN_ALLOCATION = 20
DEFENSE_MAX_ALLOCATION = 80
"""Rule-based defender allocation (percent of strength) when none is given."""

DIPLOMACY_SCORE_MIN = 0
DIPLOMACY_SCORE_MAX = 100
DIPLOMACY_SCORE_NEUTRAL = 50

ATTACKER_RELATION_PENALTY = -35
DEFENDER_RELATION_PENALTY = -30
CAPTURE_EXTRA_PENALTY = -10
FAILED_ATTACK_EXTRA_PENALTY = -5
THIRD_PARTY_WAR_PENALTY = -5
DEFENDER_SYMPATHY_BONUS = 2


# =============================================================================
# STARTING CONDITIONS
# =============================================================================

STARTING_TOTAL_VALUE = 15000
"""Credit value every country starts with, however it is distributed.

Analysis:
    Population, technology, infrastructure, military and food are rolled
    first; what is left becomes budget (70%, capped) and other resources.
    Rolls that leave less than the minimum budget, or more than twice the
    maximum, are re-rolled.
"""

STARTING_STAT_VALUES = {
    "population_per_10k": 50,
    "technology_level": 2000,
    "infrastructure_level": 1500,
    "military_per_10": 150,
    "food_per_100": 20,
}
"""Credit value of one unit of each rolled stat."""

STARTING_POPULATION = (80000, 150000, 10000)
STARTING_TECHNOLOGY = (0, 2, 1)
STARTING_INFRASTRUCTURE = (0, 2, 1)
STARTING_MILITARY = (20, 60, 10)
STARTING_FOOD = (200, 500, 50)
"""Rolled ranges as (min, max, round_to)."""

STARTING_BUDGET = (3000, 8000)
STARTING_BUDGET_SHARE = 0.7
STARTING_MAX_ATTEMPTS = 100

STARTING_RESOURCE_WEIGHTS = {
    "timber": (0.2, 2),
    "iron": (3.0, 3),
    "oil": (4.0, 2),
    "gold": (5.0, 1),
    "coal": (1.5, 2),
    "steel": (3.5, 2),
    "copper": (2.5, 2),
}
"""Resource id -> (credit value per unit, allocation weight) for leftover value."""

CITIES_PER_COUNTRY = 3
