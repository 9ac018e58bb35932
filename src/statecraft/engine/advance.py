"""Turn advance: load, process, commit.

advance_turn() is the only place the engine talks to the game store. The
snapshot is read in full, the turn is resolved in memory, and the result is
written back with one commit_turn() call. Nothing is written when any step
fails, so the game stays on its last committed turn.
"""

from __future__ import annotations

import logging

from statecraft.economy.market import MarketPrices
from statecraft.engine.turn_processor import TurnProcessor, TurnReport
from statecraft.errors import InfrastructureError, StatecraftError, StateInconsistencyError
from statecraft.models import GameSnapshot
from statecraft.models.game import GameStatus
from statecraft.storage.repository import GameStore

logger = logging.getLogger(__name__)


def load_snapshot(store: GameStore, game_id: str) -> GameSnapshot:
    """Read everything the engine needs for the game's current turn.

    Raises:
        StateInconsistencyError: If the game does not exist or is not active
        InfrastructureError: If the store fails
    """
    try:
        game = store.load_game(game_id)
        if game is None:
            raise StateInconsistencyError(f"Game not found: {game_id}")
        if game.status != GameStatus.ACTIVE:
            raise StateInconsistencyError(f"Game {game_id} is {game.status.value}")
        turn = game.turn
        return GameSnapshot(
            game_id=game_id,
            turn=turn,
            countries=store.load_countries(game_id),
            stats=store.load_stats(game_id, turn),
            cities=store.load_cities(game_id),
            pending_actions=store.load_pending_actions(game_id, turn),
            deals=store.load_deals(game_id),
            plans=store.load_plans(game_id),
            executed_step_ids=store.load_executed_steps(game_id),
            cooldowns=store.load_cooldowns(game_id),
        )
    except StatecraftError:
        raise
    except Exception as e:
        raise InfrastructureError(f"Failed to load game {game_id}: {e}") from e


def advance_turn(
    store: GameStore,
    game_id: str,
    processor: TurnProcessor | None = None,
    prices: MarketPrices | None = None,
) -> TurnReport:
    """Resolve the game's current turn and move it to the next one.

    Args:
        store: Game store to read from and commit to
        game_id: Game to advance
        processor: Turn processor (default settings when omitted)
        prices: Market prices to play the turn at (computed when omitted)

    Returns:
        TurnReport for the resolved turn

    Raises:
        StateInconsistencyError: Missing game or stale state; nothing written
        InfrastructureError: The store failed; nothing written
    """
    processor = processor or TurnProcessor()
    snapshot = load_snapshot(store, game_id)
    report = processor.process_turn(snapshot, prices)

    try:
        store.commit_turn(report.to_commit())
    except StatecraftError:
        raise
    except Exception as e:
        raise InfrastructureError(f"Failed to commit turn {report.turn} of game {game_id}: {e}") from e

    logger.info(f"Game {game_id} advanced from turn {report.turn} to {report.turn + 1}")
    return report
