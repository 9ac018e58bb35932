"""Player submissions between turns.

Most actions are simply queued and priced when the turn resolves. Attacks
are different: the attacker pays when the attack is submitted, the target
city is flagged as under attack at once, and the defender may commit a
defense allocation before the turn is advanced.

    attack cost = ATTACK_BASE_COST + ATTACK_COST_PER_STRENGTH * allocatedStrength

The payment fields of an attack (immediate, cost, defenderId) are written
here and nowhere else; submissions that carry them are refused.
"""

from __future__ import annotations

import logging

from statecraft.economy.costs import price_attack
from statecraft.errors import InsufficientResourceError, StateInconsistencyError, ValidationError
from statecraft.models.actions import Action, ActionStatus, AttackPayload
from statecraft.models.game import Game, GameStatus
from statecraft.storage.repository import GameStore

logger = logging.getLogger(__name__)


def _current_game(store: GameStore, game_id: str) -> Game:
    game = store.load_game(game_id)
    if game is None:
        raise StateInconsistencyError(f"Game not found: {game_id}")
    if game.status != GameStatus.ACTIVE:
        raise StateInconsistencyError(f"Game {game_id} is {game.status.value}")
    return game


def _check_turn(action: Action, game: Game) -> None:
    if action.turn != game.turn:
        raise ValidationError(
            f"Action {action.id} is for turn {action.turn}, game {game.id} is on turn {game.turn}"
        )


def queue_action(store: GameStore, action: Action) -> Action:
    """Queue a player action for the game's current turn.

    Attacks are routed through submit_attack() so that they are paid for.

    Returns:
        The action as stored
    """
    if action.is_attack:
        return submit_attack(store, action)
    game = _current_game(store, action.game_id)
    _check_turn(action, game)
    store.submit_action(action)
    logger.debug(f"Queued {action.payload.kind} action {action.id} for {action.country_id}")
    return action


def submit_attack(store: GameStore, action: Action) -> Action:
    """Pay for an attack and queue it.

    The allocated strength must not exceed the attacker's military strength
    and the attacker must afford the attack cost from its current budget.
    The cost is deducted from this turn's stats, the target city is flagged
    as under attack, and the stored payload is marked paid.

    Args:
        store: Game store
        action: Pending military action with an attack payload

    Returns:
        The paid attack as stored

    Raises:
        ValidationError: Not an attack, wrong turn, payment fields already
            set, unknown target, or a city the attacker already holds or that
            is already under attack
        InsufficientResourceError: Not enough strength or budget
        StateInconsistencyError: Missing or inactive game, or no stats row
    """
    payload = action.payload
    if not isinstance(payload, AttackPayload):
        raise ValidationError(f"Action {action.id} is not an attack")
    if payload.immediate or payload.cost or payload.defender_id is not None or payload.defense_allocation is not None:
        raise ValidationError(f"Attack {action.id} may not set its own payment or defense fields")

    game = _current_game(store, action.game_id)
    _check_turn(action, game)

    stats = store.load_stats(game.id, game.turn).get(action.country_id)
    if stats is None:
        raise StateInconsistencyError(f"No stats for {action.country_id} on turn {game.turn}")

    city = next((c for c in store.load_cities(game.id) if c.id == payload.target_city_id), None)
    if city is None:
        raise ValidationError(f"City {payload.target_city_id} not found")
    if city.country_id == action.country_id:
        raise ValidationError(f"{action.country_id} already controls {city.name or city.id}")
    if city.is_under_attack:
        raise ValidationError(f"{city.name or city.id} is already under attack")

    if payload.allocated_strength > stats.military_strength:
        raise InsufficientResourceError(
            action.country_id, "military_strength", payload.allocated_strength, stats.military_strength
        )
    price = price_attack(payload.allocated_strength)
    if not price.affordable(stats.budget):
        raise InsufficientResourceError(action.country_id, "budget", price.cost, int(stats.budget))

    paid_stats = stats.copy_stats()
    paid_stats.budget -= price.cost
    paid = action.model_copy(update={
        "status": ActionStatus.PENDING,
        "payload": payload.model_copy(update={
            "defender_id": city.country_id,
            "immediate": True,
            "cost": price.cost,
        }),
    })
    store.record_attack(paid, paid_stats, city.model_copy(update={"is_under_attack": True}))

    logger.info(
        f"{action.country_id} attacks {city.name or city.id} ({city.country_id}) with "
        f"{payload.allocated_strength} strength, paid ${price.cost}"
    )
    return paid


def submit_defense(
    store: GameStore,
    game_id: str,
    action_id: str,
    defender_id: str,
    allocation: int,
) -> Action:
    """Commit defending strength against a pending attack.

    The allocation is raw military strength, between zero and what the
    defender holds now. It is checked again when the battle is fought.

    Returns:
        The attack with its defense allocation set

    Raises:
        ValidationError: Unknown or resolved attack, wrong defender, or an
            allocation out of range
        StateInconsistencyError: Missing or inactive game, or no stats row
    """
    game = _current_game(store, game_id)
    action = store.load_action(game_id, action_id)
    if action is None or not action.is_attack:
        raise ValidationError(f"Attack {action_id} not found")
    if action.status != ActionStatus.PENDING or action.turn != game.turn:
        raise ValidationError(f"Attack {action_id} has already been resolved")
    if action.payload.defender_id != defender_id:
        raise ValidationError(f"{defender_id} is not the defender in attack {action_id}")

    stats = store.load_stats(game_id, game.turn).get(defender_id)
    if stats is None:
        raise StateInconsistencyError(f"No stats for {defender_id} on turn {game.turn}")
    if not 0 <= allocation <= stats.military_strength:
        raise ValidationError(
            f"Defense allocation must be between 0 and {stats.military_strength}, got {allocation}"
        )

    defended = action.model_copy(update={
        "payload": action.payload.model_copy(update={"defense_allocation": allocation}),
    })
    store.submit_action(defended)
    logger.info(f"{defender_id} commits {allocation} strength against attack {action_id}")
    return defended
