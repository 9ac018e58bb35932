"""Turn processing.

TurnProcessor turns one GameSnapshot into a TurnReport. It never touches
storage: statecraft.engine.advance loads the snapshot and commits the report.

Order of operations for a turn:
    1. Economics for every country, in parallel; results joined
    2. Deals: accepted deals execute, lapsed deals expire
    3. AI trading, country by country against current stats: the best
       AI<->AI proposal executes at once so later planners see the new
       stocks; proposals to a player become offers; otherwise the black
       market covers what it can
    4. Plan-driven actions for AI countries (attacks are paid for here)
    5. Non-attack actions in submission order, then attacks
    6. Diplomatic fallout of battles
    7. Final stats for this turn and fresh stats for the next one
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from statecraft.config import EngineSettings
from statecraft.economy.engine import EconomicUpdate, process_economic_turn
from statecraft.economy.market import MarketPrices, prices_for_turn
from statecraft.engine.plans import fallback_action, plan_actions
from statecraft.engine.relations import apply_combat_relations
from statecraft.engine.resolver import ActionResolver
from statecraft.engine.rng import SeededRandom
from statecraft.errors import InsufficientResourceError, StateInconsistencyError
from statecraft.models.actions import Action, ActionStatus
from statecraft.models.country import City, CountryStats
from statecraft.models.deals import Deal
from statecraft.models.game import GameSnapshot, Rejection, TurnCommit, TurnEvent
from statecraft.models.plans import PlanStep
from statecraft.trade.cooldowns import OfferCooldowns
from statecraft.trade.executor import active_deals_value, buy_from_black_market, execute_trade, process_deals
from statecraft.trade.offers import TradeOfferService
from statecraft.trade.planner import TradePlanner
from statecraft.workers import TaskPool

logger = logging.getLogger(__name__)


@dataclass
class TurnReport:
    """Everything a processed turn produced.

    Attributes:
        game_id: Game processed
        turn: Turn that was resolved
        prices: Market prices the turn was played at
        stats: Final, clamped stats for ``turn``
        next_stats: New stats rows for ``turn + 1``
        actions: Every action consumed this turn, with terminal status
        deals: Deals with updated statuses, plus deals created this turn
        cities: Cities after ownership changes
        events: Ordered turn history
        rejections: Country id -> skipped actions and trades with reasons
        economic_updates: Country id -> economic breakdown
        executed_step_ids: Updated plan execution tracking
        cooldowns: Updated offer cooldown table
        planned_steps: Plan action id -> step id, for actions drawn from plans
    """

    game_id: str
    turn: int
    prices: MarketPrices
    stats: dict[str, CountryStats] = field(default_factory=dict)
    next_stats: dict[str, CountryStats] = field(default_factory=dict)
    actions: list[Action] = field(default_factory=list)
    deals: list[Deal] = field(default_factory=list)
    cities: list[City] = field(default_factory=list)
    events: list[TurnEvent] = field(default_factory=list)
    rejections: dict[str, list[Rejection]] = field(default_factory=dict)
    economic_updates: dict[str, EconomicUpdate] = field(default_factory=dict)
    executed_step_ids: dict[str, list[str]] = field(default_factory=dict)
    cooldowns: dict[str, int] = field(default_factory=dict)
    planned_steps: dict[str, str] = field(default_factory=dict)

    def reject(self, country_id: str, rejection: Rejection) -> None:
        self.rejections.setdefault(country_id, []).append(rejection)

    def to_commit(self) -> TurnCommit:
        """Package the report for the game store."""
        return TurnCommit(
            game_id=self.game_id,
            turn=self.turn,
            next_turn=self.turn + 1,
            stats=list(self.stats.values()),
            next_stats=list(self.next_stats.values()),
            actions=self.actions,
            deals=self.deals,
            cities=self.cities,
            events=self.events,
            executed_step_ids=self.executed_step_ids,
            cooldowns=self.cooldowns,
        )


class TurnProcessor:
    """Resolves one game turn from a snapshot.

    Args:
        settings: Engine settings (defaults from parameters)
        planner: Trade planner (built from settings when omitted)
        resolver: Action resolver
        offers: AI -> player offer service
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        planner: TradePlanner | None = None,
        resolver: ActionResolver | None = None,
        offers: TradeOfferService | None = None,
    ):
        self.settings = settings or EngineSettings()
        self.planner = planner or TradePlanner(self.settings.trade)
        self.resolver = resolver or ActionResolver()
        self.offers = offers or TradeOfferService()
        self.pool = TaskPool(max_workers=self.settings.workers, delay=self.settings.task_delay)

    def process_turn(self, snapshot: GameSnapshot, prices: MarketPrices | None = None) -> TurnReport:
        """Resolve a turn.

        Args:
            snapshot: Full game state for the turn
            prices: Market prices; computed from the snapshot's stats when omitted

        Returns:
            TurnReport for the store to commit

        Raises:
            StateInconsistencyError: If a country has no stats row for the turn
        """
        self.check_snapshot(snapshot)
        turn = snapshot.turn
        prices = prices or prices_for_turn(turn, snapshot.stats.values())
        report = TurnReport(
            game_id=snapshot.game_id,
            turn=turn,
            prices=prices,
            executed_step_ids={k: list(v) for k, v in snapshot.executed_step_ids.items()},
            cooldowns=dict(snapshot.cooldowns),
        )
        logger.info(f"Processing turn {turn} of game {snapshot.game_id}")

        stats = self.run_economics(snapshot, prices.market, report)

        deal_result = process_deals(snapshot.deals, stats, turn)
        report.deals.extend(deal_result.deals)
        report.events.extend(deal_result.events)
        for country_id, rejections in deal_result.rejections.items():
            for rejection in rejections:
                report.reject(country_id, rejection)

        self.run_ai_trades(snapshot, stats, prices.market, report)

        cities = {city.id: city for city in snapshot.cities}
        actions = self.collect_actions(snapshot, stats, cities, report)
        self.resolve_actions(snapshot, actions, stats, cities, report)

        report.cities = list(cities.values())
        for country_id, row in stats.items():
            final = row.clamped()
            report.stats[country_id] = final
            report.next_stats[country_id] = final.model_copy(update={"turn": turn + 1}, deep=True)

        report.events.append(TurnEvent(
            type="turn.completed",
            message=f"Turn {turn} completed",
            data={"turn": turn, "nextTurn": turn + 1},
        ))
        rejected = sum(len(r) for r in report.rejections.values())
        logger.info(
            f"Turn {turn} of game {snapshot.game_id} resolved: {len(report.actions)} actions, "
            f"{len(report.events)} events, {rejected} rejections"
        )
        return report

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    @staticmethod
    def check_snapshot(snapshot: GameSnapshot) -> None:
        """Every country needs a stats row for exactly the snapshot's turn."""
        for country in snapshot.countries:
            row = snapshot.stats.get(country.id)
            if row is None:
                raise StateInconsistencyError(
                    f"Missing stats for country {country.id} on turn {snapshot.turn}"
                )
            if row.turn != snapshot.turn:
                raise StateInconsistencyError(
                    f"Stale stats for country {country.id}: row is for turn {row.turn}, "
                    f"expected {snapshot.turn}"
                )

    def run_economics(
        self,
        snapshot: GameSnapshot,
        prices: dict[str, float],
        report: TurnReport,
    ) -> dict[str, CountryStats]:
        """Economic turn for every country, computed in the worker pool."""
        rows = [snapshot.stats[country.id] for country in snapshot.countries]

        def run(row: CountryStats) -> EconomicUpdate:
            deals_value = active_deals_value(snapshot.deals, row.country_id, prices)
            return process_economic_turn(row, deals_value)

        updates = self.pool.map(run, rows)
        stats: dict[str, CountryStats] = {}
        for update in updates:
            stats[update.country_id] = update.stats
            report.economic_updates[update.country_id] = update
            report.events.append(TurnEvent(
                type="economy.update",
                message="; ".join(update.messages) or f"{update.country_id}: no change",
                data={
                    "countryId": update.country_id,
                    "produced": update.produced,
                    "consumed": update.consumed,
                    "populationChange": update.population_change,
                    "netBudget": update.budget.net,
                },
            ))
        return stats

    def run_ai_trades(
        self,
        snapshot: GameSnapshot,
        stats: dict[str, CountryStats],
        prices: dict[str, float],
        report: TurnReport,
    ) -> None:
        """Let each AI country trade away its shortages, updating ``stats`` in place."""
        cooldowns = OfferCooldowns.from_dict(report.cooldowns)
        working = snapshot.model_copy(update={"stats": stats})

        for country in snapshot.countries:
            if country.is_player_controlled:
                continue
            own = stats.get(country.id)
            if own is None:
                continue
            shortages = self.planner.detect_shortages(own)
            if not shortages:
                continue

            traded = False
            for proposal in self.planner.plan_trades(country.id, working, prices):
                if snapshot.is_player(proposal.receiver_id):
                    self._maybe_offer(proposal, snapshot, stats, cooldowns, report)
                    continue
                try:
                    execution = execute_trade(proposal, stats, snapshot.game_id, snapshot.turn)
                except InsufficientResourceError as e:
                    report.reject(country.id, Rejection(id=f"trade:{proposal.receiver_id}", kind="trade", reason=str(e)))
                    continue
                report.deals.append(execution.deal)
                report.events.append(TurnEvent(
                    type="deal.trade.ai",
                    message=proposal.describe(),
                    data={"dealId": execution.deal.id, "normalizedNet": round(proposal.normalized_net, 4)},
                ))
                traded = True
                break

            if traded:
                continue

            purchase = buy_from_black_market(stats[country.id], shortages, prices)
            if purchase.purchases:
                stats[country.id] = purchase.stats
                report.events.append(TurnEvent(
                    type="deal.black_market.ai",
                    message=f"{country.name} bought resources from the black market",
                    data={
                        "countryId": country.id,
                        "purchases": [
                            {"resource": p.resource_id, "amount": p.amount, "cost": p.cost}
                            for p in purchase.purchases
                        ],
                    },
                ))

        report.cooldowns = cooldowns.to_dict()

    def _maybe_offer(self, proposal, snapshot, stats, cooldowns, report) -> None:
        if not self.offers.should_offer(
            stats.get(proposal.proposer_id), stats.get(proposal.receiver_id), snapshot.turn, cooldowns
        ):
            return
        deal = self.offers.create_offer(proposal, snapshot.game_id, snapshot.turn, cooldowns)
        report.deals.append(deal)
        report.events.append(TurnEvent(
            type="deal.offer",
            message=f"{proposal.proposer_id} offers a trade to {proposal.receiver_id}",
            data={"dealId": deal.id, "expires": deal.turn_expires},
        ))

    def collect_actions(
        self,
        snapshot: GameSnapshot,
        stats: dict[str, CountryStats],
        cities: dict[str, City],
        report: TurnReport,
    ) -> list[Action]:
        """Submitted actions for the turn followed by AI plan actions."""
        actions = []
        for action in snapshot.pending_actions:
            if action.status != ActionStatus.PENDING:
                continue
            if action.turn != snapshot.turn:
                report.actions.append(action.rejected(f"Submitted for turn {action.turn}"))
                report.reject(action.country_id, Rejection(id=action.id, kind="action", reason="stale turn"))
                continue
            actions.append(action)

        for country in snapshot.countries:
            if country.is_player_controlled or country.id not in stats:
                continue
            plan = snapshot.plans.get(country.id, [])
            if any(isinstance(item, PlanStep) for item in plan):
                planned = plan_actions(
                    stats[country.id],
                    plan,
                    report.executed_step_ids.get(country.id, []),
                    cities,
                    snapshot.game_id,
                    snapshot.turn,
                    cap=self.settings.plan_action_cap,
                )
                stats[country.id] = planned.stats
                cities.update(planned.cities)
                actions.extend(planned.actions)
                for action, step_id in zip(planned.actions, planned.step_ids):
                    report.planned_steps[action.id] = step_id
            elif self.settings.plan_action_cap > 0:
                rng = SeededRandom(f"{snapshot.game_id}:{snapshot.turn}:{country.id}:focus")
                action = fallback_action(
                    stats[country.id],
                    rng,
                    snapshot.game_id,
                    snapshot.turn,
                    self.settings.min_selection_weight,
                )
                if action is not None:
                    actions.append(action)
        return actions

    def resolve_actions(
        self,
        snapshot: GameSnapshot,
        actions: list[Action],
        stats: dict[str, CountryStats],
        cities: dict[str, City],
        report: TurnReport,
    ) -> None:
        """Resolve non-attack actions in order, then attacks."""
        attacks = [a for a in actions if a.is_attack]
        outcomes = [self.resolver.resolve(stats, a) for a in actions if not a.is_attack]

        for action in attacks:
            rng = SeededRandom(f"{snapshot.game_id}:{snapshot.turn}:{action.id}")
            outcome = self.resolver.resolve_attack(stats, cities, action, rng)
            if outcome.combat is not None:
                apply_combat_relations(
                    stats,
                    outcome.combat.attacker_id,
                    outcome.combat.defender_id,
                    outcome.combat.attacker_wins,
                )
            outcomes.append(outcome)

        for outcome in outcomes:
            report.actions.append(outcome.action)
            report.events.extend(outcome.events)
            step_id = report.planned_steps.get(outcome.action.id)
            if step_id is not None and outcome.executed:
                executed = report.executed_step_ids.setdefault(outcome.action.country_id, [])
                if step_id not in executed:
                    executed.append(step_id)
            if outcome.action.status == ActionStatus.REJECTED:
                report.reject(
                    outcome.action.country_id,
                    Rejection(id=outcome.action.id, kind="action", reason=outcome.action.reason or ""),
                )
