"""Turn engine: game setup, plan-driven AI, action and combat resolution.

Usage:
    from statecraft.engine import advance_turn, queue_action, setup_game, CountrySpec
    from statecraft.storage import get_game_store

    store = get_game_store()
    new_game = setup_game("g1", "Border Wars", [CountrySpec("Avalon", is_player=True), CountrySpec("Brant")])
    store.create_game(new_game.game, new_game.countries, new_game.stats, new_game.cities)
    queue_action(store, action)         # attacks are paid for here
    report = advance_turn(store, "g1")
"""

from .advance import advance_turn, load_snapshot
from .combat import (
    CombatResult,
    apply_losses,
    city_value,
    default_defense_percentage,
    defense_allocation,
    resolve_battle,
    transfer_city,
    win_chance,
)
from .plans import (
    PlannedActions,
    choose_focus,
    conditions_hold,
    fallback_action,
    plan_actions,
    plan_bans,
    select_next_step,
    step_payload,
)
from .relations import apply_combat_relations, apply_relation_delta
from .resolver import ActionOutcome, ActionResolver
from .rng import SeededRandom, hash_seed, weighted_select
from .setup import CountrySpec, NewGame, generate_cities, generate_starting_stats, random_int, setup_game
from .submission import queue_action, submit_attack, submit_defense
from .turn_processor import TurnProcessor, TurnReport

__all__ = [
    # Turn advance
    "advance_turn",
    "load_snapshot",
    "TurnProcessor",
    "TurnReport",
    # Submissions
    "queue_action",
    "submit_attack",
    "submit_defense",
    # Setup
    "CountrySpec",
    "NewGame",
    "setup_game",
    "generate_starting_stats",
    "generate_cities",
    "random_int",
    # Plans
    "PlannedActions",
    "plan_actions",
    "select_next_step",
    "step_payload",
    "conditions_hold",
    "plan_bans",
    "choose_focus",
    "fallback_action",
    # Resolution
    "ActionOutcome",
    "ActionResolver",
    # Combat
    "CombatResult",
    "city_value",
    "default_defense_percentage",
    "defense_allocation",
    "win_chance",
    "resolve_battle",
    "apply_losses",
    "transfer_city",
    # Relations
    "apply_relation_delta",
    "apply_combat_relations",
    # Randomness
    "SeededRandom",
    "hash_seed",
    "weighted_select",
]
