"""Statecraft command line interface.

Usage:
    # Create a game with one player and two AI countries
    statecraft new-game --name "Border Wars" --player Avalon --country Brant --country Corvel

    # Queue an action for the player
    statecraft submit <game_id> <country_id> research --data '{}'
    statecraft submit <game_id> <country_id> military --data '{"subType": "recruit", "amount": 20}'

    # Attack a city (paid now) and defend against it before the turn resolves
    statecraft attack <game_id> <country_id> <city_id> 20
    statecraft defend <game_id> <defender_id> <attack_action_id> 15

    # Give an AI country a plan
    statecraft plan <game_id> <country_id> plan.json

    # Resolve the current turn (or several)
    statecraft advance <game_id> --turns 3

    # Inspect
    statecraft show <game_id> --events
    statecraft prices <game_id>
    statecraft list

Storage backend and paths come from STATECRAFT_* environment variables
(see statecraft.storage); --backend overrides the backend.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path

from statecraft.config import EngineSettings, get_log_level
from statecraft.economy.market import format_prices, prices_for_turn
from statecraft.engine import (
    CountrySpec,
    TurnProcessor,
    advance_turn,
    queue_action,
    setup_game,
    submit_attack,
    submit_defense,
)
from statecraft.errors import StatecraftError
from statecraft.models import Action, parse_plan
from statecraft.storage import GameStore, StorageBackend, get_game_store

logger = logging.getLogger(__name__)


def _store(args: argparse.Namespace) -> GameStore:
    backend = StorageBackend(args.backend) if args.backend else None
    return get_game_store(backend)


def _profile_overrides(values: list[str] | None) -> dict[str, str]:
    overrides = {}
    for value in values or []:
        name, sep, profile = value.partition("=")
        if not sep or not name or not profile:
            raise StatecraftError(f"Profile override must look like COUNTRY=PROFILE, got {value!r}")
        overrides[name] = profile
    return overrides


# =============================================================================
# Commands
# =============================================================================


def cmd_new_game(args: argparse.Namespace) -> int:
    specs = [CountrySpec(name, is_player=True) for name in args.player or []]
    specs += [CountrySpec(name) for name in args.country or []]
    if len(specs) < 2:
        print("Error: a game needs at least two countries", file=sys.stderr)
        return 1

    game_id = args.id or str(uuid.uuid4())
    new_game = setup_game(
        game_id,
        args.name,
        specs,
        seed=args.seed,
        profiles=_profile_overrides(args.profile),
        cities_per_country=args.cities,
    )
    store = _store(args)
    store.create_game(new_game.game, new_game.countries, new_game.stats, new_game.cities)

    print(f"Created game {game_id} ({args.name})")
    stats = {s.country_id: s for s in new_game.stats}
    for country in new_game.countries:
        row = stats[country.id]
        kind = "player" if country.is_player_controlled else "AI"
        profile = row.resource_profile.name if row.resource_profile else "none"
        print(f"  {country.id}  {country.name} [{kind}] profile={profile} budget=${row.budget:,.0f}")
    return 0


def cmd_submit(args: argparse.Namespace) -> int:
    store = _store(args)
    game = store.load_game(args.game_id)
    if game is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1
    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        print(f"Error: --data is not valid JSON: {e}", file=sys.stderr)
        return 1

    action = Action.from_dict({
        "id": str(uuid.uuid4()),
        "gameId": game.id,
        "countryId": args.country_id,
        "turn": game.turn,
        "actionType": args.action_type,
        "actionData": data,
    })
    action = queue_action(store, action)
    print(f"Queued {action.payload.kind} action {action.id} for turn {game.turn}")
    return 0


def cmd_attack(args: argparse.Namespace) -> int:
    store = _store(args)
    game = store.load_game(args.game_id)
    if game is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1

    action = Action.from_dict({
        "id": str(uuid.uuid4()),
        "gameId": game.id,
        "countryId": args.country_id,
        "turn": game.turn,
        "actionType": "military",
        "actionData": {"subType": "attack", "targetCityId": args.city_id, "allocatedStrength": args.strength},
    })
    action = submit_attack(store, action)
    print(
        f"Attack {action.id} on {args.city_id} queued for turn {game.turn}: "
        f"paid ${action.payload.cost:,}, defender {action.payload.defender_id}"
    )
    return 0


def cmd_defend(args: argparse.Namespace) -> int:
    action = submit_defense(_store(args), args.game_id, args.action_id, args.country_id, args.strength)
    print(f"{args.country_id} commits {action.payload.defense_allocation} strength against attack {action.id}")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    path = Path(args.plan_path)
    if not path.exists():
        print(f"Error: plan file not found: {path}", file=sys.stderr)
        return 1
    with path.open(encoding="utf-8") as f:
        items = parse_plan(json.load(f))
    _store(args).save_plan(args.game_id, args.country_id, items)
    print(f"Saved plan with {len(items)} items for {args.country_id}")
    return 0


def cmd_advance(args: argparse.Namespace) -> int:
    store = _store(args)
    processor = TurnProcessor(EngineSettings.from_env())
    for _ in range(args.turns):
        report = advance_turn(store, args.game_id, processor)
        print(f"Turn {report.turn} resolved: {len(report.actions)} actions, {len(report.events)} events")
        for event in report.events:
            print(f"  [{event.type}] {event.message}")
        for country_id, rejections in report.rejections.items():
            for rejection in rejections:
                print(f"  rejected {rejection.kind} {rejection.id} ({country_id}): {rejection.reason}")
    return 0


def cmd_prices(args: argparse.Namespace) -> int:
    store = _store(args)
    game = store.load_game(args.game_id)
    if game is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1
    prices = prices_for_turn(game.turn, store.load_stats(game.id, game.turn).values())
    if args.json:
        print(json.dumps(prices.to_dict(), indent=2))
    else:
        print(format_prices(prices))
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    store = _store(args)
    game = store.load_game(args.game_id)
    if game is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1

    stats = store.load_stats(game.id, game.turn)
    cities = store.load_cities(game.id)
    print(f"{game.name or game.id} - turn {game.turn} ({game.status.value})")
    for country in store.load_countries(game.id):
        row = stats.get(country.id)
        owned = [c.name or c.id for c in cities if c.country_id == country.id]
        print(f"\n{country.name} ({country.id}){' [player]' if country.is_player_controlled else ''}")
        if row is None:
            print("  no stats for this turn")
            continue
        print(
            f"  population {row.population:,}  budget ${row.budget:,.0f}  tech {row.technology_level}  "
            f"infra {row.infrastructure_level}  military {row.military_strength}"
        )
        stocks = ", ".join(f"{k} {v}" for k, v in sorted(row.resources.items()) if v)
        print(f"  resources: {stocks or 'none'}")
        print(f"  cities: {', '.join(owned) or 'none'}")

    if args.events:
        print("\nHistory:")
        for event in store.load_events(game.id):
            print(f"  [{event.type}] {event.message}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    games = _store(args).list_games()
    if not games:
        print("No games")
    for game in games:
        print(f"{game.id}  {game.name}  turn {game.turn}  {game.status.value}")
    return 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statecraft",
        description="Turn-based geopolitical strategy engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--backend",
        choices=[b.value for b in StorageBackend],
        default=None,
        help="Storage backend (default: STATECRAFT_STORAGE_BACKEND or file)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log engine activity at INFO level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    new_game = subparsers.add_parser("new-game", help="Create a new game")
    new_game.add_argument("--name", default="Statecraft", help="Game name")
    new_game.add_argument("--id", default=None, help="Game id (default: random UUID)")
    new_game.add_argument("--player", action="append", help="Player-controlled country (repeatable)")
    new_game.add_argument("--country", action="append", help="AI-controlled country (repeatable)")
    new_game.add_argument("--seed", default=None, help="Random seed (default: the game id)")
    new_game.add_argument("--profile", action="append", help="Profile override, COUNTRY=PROFILE (repeatable)")
    new_game.add_argument("--cities", type=int, default=3, help="Cities per country (default: 3)")
    new_game.set_defaults(func=cmd_new_game)

    submit = subparsers.add_parser("submit", help="Queue an action for the current turn")
    submit.add_argument("game_id")
    submit.add_argument("country_id")
    submit.add_argument("action_type", choices=["economic", "military", "research", "diplomacy"])
    submit.add_argument("--data", default="{}", help="Action data as JSON")
    submit.set_defaults(func=cmd_submit)

    attack = subparsers.add_parser("attack", help="Pay for and queue an attack on a city")
    attack.add_argument("game_id")
    attack.add_argument("country_id")
    attack.add_argument("city_id")
    attack.add_argument("strength", type=int, help="Military strength to commit")
    attack.set_defaults(func=cmd_attack)

    defend = subparsers.add_parser("defend", help="Commit defending strength against a pending attack")
    defend.add_argument("game_id")
    defend.add_argument("country_id", help="Defending country")
    defend.add_argument("action_id", help="Attack action id")
    defend.add_argument("strength", type=int, help="Military strength to commit")
    defend.set_defaults(func=cmd_defend)

    plan = subparsers.add_parser("plan", help="Replace a country's plan from a JSON file")
    plan.add_argument("game_id")
    plan.add_argument("country_id")
    plan.add_argument("plan_path")
    plan.set_defaults(func=cmd_plan)

    advance = subparsers.add_parser("advance", help="Resolve the current turn")
    advance.add_argument("game_id")
    advance.add_argument("--turns", type=int, default=1, help="Turns to resolve (default: 1)")
    advance.set_defaults(func=cmd_advance)

    prices = subparsers.add_parser("prices", help="Show market prices for the current turn")
    prices.add_argument("game_id")
    prices.add_argument("--json", action="store_true", help="Print prices as JSON")
    prices.set_defaults(func=cmd_prices)

    show = subparsers.add_parser("show", help="Show countries for the current turn")
    show.add_argument("game_id")
    show.add_argument("--events", action="store_true", help="Also print the turn history")
    show.set_defaults(func=cmd_show)

    list_games = subparsers.add_parser("list", help="List games")
    list_games.set_defaults(func=cmd_list)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO if args.verbose else getattr(logging, get_log_level(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.func(args)
    except (StatecraftError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
