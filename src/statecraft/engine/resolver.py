"""Action resolution.

Each pending action is consumed exactly once and ends EXECUTED or REJECTED.

Turn-based actions (research, infrastructure, recruitment) are priced when
they resolve, against the country's stats at that moment: the resource
shortage penalty applies, and the action is rejected when the budget cannot
cover the final cost. Attacks were paid for at submission and are resolved
separately, after every other action, by resolve_attack().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from statecraft.economy.costs import (
    ActionPrice,
    apply_price,
    price_infrastructure,
    price_recruitment,
    price_research,
)
from statecraft.engine.combat import (
    CombatResult,
    apply_losses,
    defense_allocation,
    resolve_battle,
    transfer_city,
)
from statecraft.models.actions import Action, ActionStatus, AttackPayload
from statecraft.models.country import City, CountryStats
from statecraft.models.game import TurnEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of resolving one action.

    Attributes:
        action: The action with its terminal status
        cost: Budget charged at resolution
        events: Turn log entries produced
        combat: Battle result, for attacks that were fought
    """

    action: Action
    cost: int = 0
    events: tuple[TurnEvent, ...] = ()
    combat: CombatResult | None = None

    @property
    def executed(self) -> bool:
        return self.action.status == ActionStatus.EXECUTED


class ActionResolver:
    """Resolves actions against a mutable stats table.

    Successful actions replace the acting country's entry in
    ``stats_by_country``; rejected actions leave it untouched.
    """

    def resolve(self, stats_by_country: dict[str, CountryStats], action: Action) -> ActionOutcome:
        """Resolve a non-attack action.

        Args:
            stats_by_country: Working stats for the turn, updated in place
            action: Pending action

        Returns:
            ActionOutcome with the executed or rejected action
        """
        stats = stats_by_country.get(action.country_id)
        if stats is None:
            return self._reject(action, f"No stats for country {action.country_id}")
        if action.is_attack:
            return self._reject(action, "Attacks are resolved in the combat phase")

        payload = action.payload
        if payload.kind == "diplomacy":
            return ActionOutcome(action=action.executed("Diplomatic stance recorded"))

        price = self.price(stats, action)
        if not price.affordable(stats.budget):
            return self._reject(
                action,
                f"Insufficient budget: needs ${price.cost}, has ${stats.budget:,.0f}",
            )

        updated = apply_price(stats, price)
        if payload.kind == "research":
            updated.technology_level += 1
            event = TurnEvent(
                type="action.research",
                message=f"{action.country_id} advanced to technology level {updated.technology_level}",
                data={"countryId": action.country_id, "level": updated.technology_level, "cost": price.cost},
            )
        elif payload.kind == "infrastructure":
            updated.infrastructure_level += 1
            event = TurnEvent(
                type="action.infrastructure",
                message=f"{action.country_id} built infrastructure level {updated.infrastructure_level}",
                data={"countryId": action.country_id, "level": updated.infrastructure_level, "cost": price.cost},
            )
        else:
            updated.military_strength += payload.amount
            event = TurnEvent(
                type="action.recruit",
                message=f"{action.country_id} recruited {payload.amount} strength",
                data={"countryId": action.country_id, "amount": payload.amount, "cost": price.cost},
            )

        stats_by_country[action.country_id] = updated
        if price.missing:
            logger.info(
                f"{action.country_id} paid a x{price.penalty:.1f} shortage penalty on "
                f"{payload.kind}: missing {price.missing}"
            )
        return ActionOutcome(action=action.executed(), cost=price.cost, events=(event,))

    @staticmethod
    def price(stats: CountryStats, action: Action) -> ActionPrice:
        """Price a turn-based action against current stats."""
        payload = action.payload
        if payload.kind == "research":
            return price_research(stats)
        if payload.kind == "infrastructure":
            return price_infrastructure(stats)
        if payload.kind == "recruit":
            return price_recruitment(payload.amount, stats)
        return ActionPrice(cost=0)

    def resolve_attack(
        self,
        stats_by_country: dict[str, CountryStats],
        cities: dict[str, City],
        action: Action,
        rng: Callable[[], float],
    ) -> ActionOutcome:
        """Fight the battle for a pre-paid attack.

        The target city's under-attack flag is cleared whatever happens. On a
        capture the city changes owner once, taking its population and
        per-turn yields with it; a defender left without cities is reported
        as eliminated.

        Args:
            stats_by_country: Working stats, updated in place
            cities: City id -> City, updated in place
            action: Pending attack action
            rng: Random source for the battle

        Returns:
            ActionOutcome with combat details when the battle was fought
        """
        payload = action.payload
        if not isinstance(payload, AttackPayload):
            return self._reject(action, "Not an attack")

        city = cities.get(payload.target_city_id)
        if city is None:
            return self._reject(action, f"City {payload.target_city_id} not found")
        cities[city.id] = city.model_copy(update={"is_under_attack": False})
        city = cities[city.id]

        if not payload.immediate:
            logger.error(f"Attack {action.id} reached combat without being paid for")
            return self._reject(action, "Attack was not paid for at submission")

        attacker_id = action.country_id
        defender_id = city.country_id
        if defender_id == attacker_id:
            return self._reject(action, f"{attacker_id} already controls {city.name or city.id}")
        attacker = stats_by_country.get(attacker_id)
        defender = stats_by_country.get(defender_id)
        if attacker is None or defender is None:
            return self._reject(action, "Missing stats for attacker or defender")

        attacker_strength = min(payload.allocated_strength, attacker.military_strength)
        if attacker_strength <= 0:
            return self._reject(action, f"{attacker_id} has no strength left to attack with")
        defender_strength = defense_allocation(defender, city, payload.defense_allocation)

        result = resolve_battle(attacker, defender, city, attacker_strength, defender_strength, rng)
        attacker = apply_losses(attacker, result.attacker_losses)
        defender = apply_losses(defender, result.defender_losses)

        city_name = city.name or city.id
        events = []
        if result.attacker_wins:
            captured, defender, attacker = transfer_city(city, defender, attacker)
            cities[captured.id] = captured
            events.append(TurnEvent(
                type="combat.captured",
                message=f"{attacker_id} captured {city_name} from {defender_id}",
                data=self._combat_data(result),
            ))
            if not any(c.country_id == defender_id for c in cities.values()):
                events.append(TurnEvent(
                    type="country.eliminated",
                    message=f"{defender_id} has lost its last city",
                    data={"countryId": defender_id},
                ))
        else:
            events.append(TurnEvent(
                type="combat.repelled",
                message=f"{defender_id} held {city_name} against {attacker_id}",
                data=self._combat_data(result),
            ))

        stats_by_country[attacker_id] = attacker
        stats_by_country[defender_id] = defender
        logger.info(
            f"Battle for {city_name}: {attacker_id} ({attacker_strength}) vs "
            f"{defender_id} ({defender_strength}), win chance {result.win_chance:.2f}, "
            f"{'captured' if result.attacker_wins else 'repelled'}"
        )
        return ActionOutcome(
            action=action.executed("captured" if result.attacker_wins else "repelled"),
            events=tuple(events),
            combat=result,
        )

    @staticmethod
    def _combat_data(result: CombatResult) -> dict:
        return {
            "attackerId": result.attacker_id,
            "defenderId": result.defender_id,
            "cityId": result.city_id,
            "attackerStrength": result.attacker_strength,
            "defenderStrength": result.defender_strength,
            "attackerLosses": result.attacker_losses,
            "defenderLosses": result.defender_losses,
            "winChance": round(result.win_chance, 4),
        }

    @staticmethod
    def _reject(action: Action, reason: str) -> ActionOutcome:
        logger.warning(f"Action {action.id} ({action.action_type.value}) rejected: {reason}")
        return ActionOutcome(action=action.rejected(reason))
