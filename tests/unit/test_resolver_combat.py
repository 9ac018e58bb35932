"""Unit tests for action resolution, combat and diplomatic fallout.

Tests cover:
1. ActionResolver.resolve - research, infrastructure, recruitment, rejections
2. Combat formulas - city value, defense allocation, win chance, losses
3. ActionResolver.resolve_attack - capture, repel, elimination, flags
4. City transfer and relation changes
"""

import pytest

from statecraft.engine.combat import (
    city_value,
    default_defense_percentage,
    defense_allocation,
    resolve_battle,
    transfer_city,
    win_chance,
)
from statecraft.engine.relations import apply_combat_relations, apply_relation_delta
from statecraft.engine.resolver import ActionResolver
from statecraft.models import Action, ActionStatus, ActionType, City


def make_action(action_type, payload, country_id="A", action_id="act-1"):
    return Action(
        id=action_id,
        game_id="g1",
        country_id=country_id,
        turn=1,
        action_type=action_type,
        payload=payload,
    )


def attack_action(immediate=True, city_id="b1", strength=20, **extra):
    return make_action(
        ActionType.MILITARY,
        {
            "kind": "attack",
            "target_city_id": city_id,
            "allocated_strength": strength,
            "defender_id": "B",
            "immediate": immediate,
            "cost": 300,
            **extra,
        },
    )


@pytest.fixture
def city():
    return City(id="b1", game_id="g1", country_id="B", name="Brant Hold", population=60000, is_under_attack=True)


# ============================================================================
# Turn-based actions
# ============================================================================


class TestResolve:
    """Tests for research, infrastructure and recruitment."""

    def test_research_charges_penalty_and_levels_up(self, stats_factory):
        """Tech 0 research with no copper or coal costs 900."""
        table = {"A": stats_factory("A", budget=5000, technology_level=0)}
        outcome = ActionResolver().resolve(table, make_action(ActionType.RESEARCH, {"kind": "research"}))

        assert outcome.executed
        assert outcome.cost == 900
        assert table["A"].technology_level == 1
        assert table["A"].budget == 4100
        assert outcome.events[0].type == "action.research"

    def test_infrastructure(self, stats_factory):
        table = {"A": stats_factory("A", infrastructure_level=0, resources={"timber": 20, "coal": 15})}
        outcome = ActionResolver().resolve(
            table, make_action(ActionType.ECONOMIC, {"subType": "infrastructure"})
        )
        assert outcome.executed
        assert table["A"].infrastructure_level == 1
        assert table["A"].resources == {"timber": 0, "coal": 0}

    def test_recruitment(self, stats_factory):
        table = {"A": stats_factory("A", military_strength=40)}
        outcome = ActionResolver().resolve(
            table, make_action(ActionType.MILITARY, {"subType": "recruit", "amount": 15})
        )
        assert outcome.executed
        assert table["A"].military_strength == 55
        assert outcome.events[0].data["amount"] == 15

    def test_unaffordable_action_is_rejected(self, stats_factory):
        original = stats_factory("A", budget=100)
        table = {"A": original}
        outcome = ActionResolver().resolve(table, make_action(ActionType.RESEARCH, {"kind": "research"}))

        assert outcome.action.status == ActionStatus.REJECTED
        assert "Insufficient budget" in outcome.action.reason
        assert table["A"] is original

    def test_unknown_country_is_rejected(self):
        outcome = ActionResolver().resolve({}, make_action(ActionType.RESEARCH, {"kind": "research"}))
        assert outcome.action.status == ActionStatus.REJECTED

    def test_diplomacy_is_recorded_without_cost(self, stats_factory):
        table = {"A": stats_factory("A")}
        outcome = ActionResolver().resolve(
            table, make_action(ActionType.DIPLOMACY, {"targetCountryId": "B", "stance": "friendly"})
        )
        assert outcome.executed
        assert outcome.cost == 0
        assert table["A"].budget == 5000

    def test_attacks_are_not_resolved_here(self, stats_factory):
        outcome = ActionResolver().resolve({"A": stats_factory("A")}, attack_action())
        assert outcome.action.status == ActionStatus.REJECTED


# ============================================================================
# Combat formulas
# ============================================================================


class TestCombatFormulas:
    """Tests for defense and win chance calculations."""

    def test_city_value(self, city):
        assert city_value(city) == 1
        rich = city.model_copy(update={"per_turn_resources": {"food": 20}})
        assert city_value(rich) == 9
        huge = city.model_copy(update={"per_turn_resources": {"food": 200}})
        assert city_value(huge) == 10

    def test_default_defense_percentage(self, stats_factory, city):
        """A militarised defender commits more; a weak one commits less."""
        assert default_defense_percentage(stats_factory("B", military_strength=40), city) == 53
        assert default_defense_percentage(stats_factory("B", military_strength=3), city) == 33
        assert default_defense_percentage(stats_factory("B", military_strength=10), city) == 43

    def test_requested_allocation_within_strength(self, stats_factory, city):
        defender = stats_factory("B", military_strength=40, technology_level=1)
        assert defense_allocation(defender, city, 30) == 30

    def test_requested_allocation_above_strength_uses_default(self, stats_factory, city):
        defender = stats_factory("B", military_strength=40, technology_level=1)
        assert defense_allocation(defender, city, 100) == 21
        assert defense_allocation(defender, city) == 21

    def test_requested_allocation_is_capped_by_raw_strength(self, stats_factory, city):
        """Technology raises effective strength but not the troops a defender can commit."""
        defender = stats_factory("B", military_strength=40, technology_level=3)
        assert defense_allocation(defender, city, 40) == 40
        assert defense_allocation(defender, city, 60) == defense_allocation(defender, city)
        assert defense_allocation(defender, city, 60) <= 40

    @pytest.mark.parametrize(
        "attacker,defender,expected",
        [(100, 0, 0.95), (360, 100, 0.95), (10, 100, 0.05), (120, 100, 0.5)],
    )
    def test_win_chance(self, attacker, defender, expected):
        assert win_chance(attacker, defender) == pytest.approx(expected)

    def test_win_chance_grows_with_ratio(self):
        assert win_chance(100, 100) < win_chance(150, 100) < win_chance(200, 100)

    def test_capture_losses(self, stats_factory, city):
        result = resolve_battle(stats_factory("A"), stats_factory("B"), city, 20, 21, lambda: 0.0)
        assert result.attacker_wins
        assert result.attacker_losses == 4
        assert result.defender_losses == 8

    def test_repel_losses(self, stats_factory, city):
        result = resolve_battle(stats_factory("A"), stats_factory("B"), city, 20, 21, lambda: 0.99)
        assert not result.attacker_wins
        assert result.attacker_losses == 15
        assert result.defender_losses == 8

    def test_transfer_city_moves_population_and_yields(self, stats_factory, city):
        producing = city.model_copy(update={"per_turn_resources": {"food": 20}})
        loser = stats_factory("B", population=100000, resources={"food": 10})
        winner = stats_factory("A", population=100000, resources={"food": 5})

        moved, new_loser, new_winner = transfer_city(producing, loser, winner)

        assert moved.country_id == "A"
        assert not moved.is_under_attack
        assert new_loser.population == 40000
        assert new_winner.population == 160000
        assert new_loser.resources["food"] == 0
        assert new_winner.resources["food"] == 25


# ============================================================================
# Attacks
# ============================================================================


class TestResolveAttack:
    """Tests for the combat phase."""

    @pytest.fixture
    def table(self, stats_factory):
        return {
            "A": stats_factory("A", military_strength=40),
            "B": stats_factory("B", military_strength=40),
        }

    def test_capture_and_elimination(self, table, city):
        cities = {"b1": city}
        outcome = ActionResolver().resolve_attack(table, cities, attack_action(), lambda: 0.0)

        assert outcome.executed
        assert outcome.action.reason == "captured"
        assert cities["b1"].country_id == "A"
        assert not cities["b1"].is_under_attack
        assert table["A"].population == 160000
        assert table["A"].military_strength == 36
        assert table["B"].military_strength == 32
        assert [e.type for e in outcome.events] == ["combat.captured", "country.eliminated"]

    def test_capture_without_elimination(self, table, city):
        other = City(id="b2", game_id="g1", country_id="B", name="Brant Port", population=40000)
        cities = {"b1": city, "b2": other}
        outcome = ActionResolver().resolve_attack(table, cities, attack_action(), lambda: 0.0)
        assert [e.type for e in outcome.events] == ["combat.captured"]

    def test_repelled(self, table, city):
        cities = {"b1": city}
        outcome = ActionResolver().resolve_attack(table, cities, attack_action(), lambda: 0.99)

        assert outcome.action.reason == "repelled"
        assert cities["b1"].country_id == "B"
        assert not cities["b1"].is_under_attack
        assert outcome.combat.win_chance < 0.99

    def test_unpaid_attack_is_rejected_and_flag_cleared(self, table, city):
        cities = {"b1": city}
        outcome = ActionResolver().resolve_attack(table, cities, attack_action(immediate=False), lambda: 0.0)

        assert outcome.action.status == ActionStatus.REJECTED
        assert not cities["b1"].is_under_attack
        assert cities["b1"].country_id == "B"

    def test_missing_city(self, table):
        outcome = ActionResolver().resolve_attack(table, {}, attack_action(), lambda: 0.0)
        assert outcome.action.status == ActionStatus.REJECTED

    def test_city_already_owned(self, table, city):
        """A city taken earlier in the turn cannot be captured again by its new owner."""
        cities = {"b1": city.model_copy(update={"country_id": "A"})}
        outcome = ActionResolver().resolve_attack(table, cities, attack_action(), lambda: 0.0)
        assert outcome.action.status == ActionStatus.REJECTED

    def test_explicit_defense_allocation(self, table, city):
        cities = {"b1": city}
        outcome = ActionResolver().resolve_attack(
            table, cities, attack_action(defense_allocation=40), lambda: 0.99
        )
        assert outcome.combat.defender_strength == 40


# ============================================================================
# Relations
# ============================================================================


class TestRelations:
    """Tests for diplomatic fallout."""

    @pytest.fixture
    def table(self, stats_factory):
        return {cid: stats_factory(cid) for cid in ("A", "B", "C")}

    def test_capture_fallout(self, table):
        apply_combat_relations(table, "A", "B", captured=True)
        assert table["A"].relation("B") == 5
        assert table["B"].relation("A") == 10
        assert table["C"].relation("A") == 45
        assert table["C"].relation("B") == 52

    def test_failed_attack_fallout(self, table):
        apply_combat_relations(table, "A", "B", captured=False)
        assert table["A"].relation("B") == 10
        assert table["B"].relation("A") == 15

    def test_scores_are_clamped(self, stats_factory):
        stats = stats_factory(diplomatic_relations={"B": 10})
        assert apply_relation_delta(stats, "B", -45).relation("B") == 0
        assert apply_relation_delta(stats, "B", 200).relation("B") == 100

    def test_missing_party_is_ignored(self, table):
        apply_combat_relations(table, "A", "Z", captured=True)
        assert table["A"].relation("Z") == 50
