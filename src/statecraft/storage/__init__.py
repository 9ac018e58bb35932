"""Game persistence for Statecraft.

The engine reads a turn through the GameStore port and writes it back with
a single commit_turn() call. Two adapters ship with the package: one JSON
document per game, or a shared SQLite database.

Usage:
    from statecraft.storage import get_game_store

    store = get_game_store()                        # backend from STATECRAFT_* env
    store = get_game_store(StorageBackend.SQLITE)   # or pick one explicitly
"""

from .config import StorageBackend, StorageSettings, get_game_store, get_storage_backend
from .file_repo import FileGameStore
from .repository import OPEN_DEAL_STATUSES, GameStore
from .sqlite_repo import SQLiteGameStore

__all__ = [
    "GameStore",
    "OPEN_DEAL_STATUSES",
    "FileGameStore",
    "SQLiteGameStore",
    "StorageBackend",
    "StorageSettings",
    "get_storage_backend",
    "get_game_store",
]
