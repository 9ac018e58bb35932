"""Game store selection.

The backend and its location come from the environment:

    STATECRAFT_STORAGE_BACKEND: "file" or "sqlite" (default: "file")
    STATECRAFT_GAMES_PATH: Directory of JSON game documents (default: "games")
    STATECRAFT_DATABASE_URI: SQLite database path (default: "instance/statecraft.db")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from enum import Enum

from .file_repo import FileGameStore
from .repository import GameStore
from .sqlite_repo import SQLiteGameStore

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    FILE = "file"
    SQLITE = "sqlite"


DEFAULT_GAMES_PATH = "games"
DEFAULT_DATABASE_URI = "instance/statecraft.db"


@dataclass(frozen=True)
class StorageSettings:
    """Where games are kept.

    Attributes:
        backend: Which GameStore implementation to build
        games_path: Directory for the file backend
        database_uri: Database file for the SQLite backend
    """

    backend: StorageBackend = StorageBackend.FILE
    games_path: str = DEFAULT_GAMES_PATH
    database_uri: str = DEFAULT_DATABASE_URI

    @classmethod
    def from_env(cls) -> StorageSettings:
        return cls(
            backend=get_storage_backend(),
            games_path=os.environ.get("STATECRAFT_GAMES_PATH", DEFAULT_GAMES_PATH),
            database_uri=os.environ.get("STATECRAFT_DATABASE_URI", DEFAULT_DATABASE_URI),
        )

    def location(self) -> str:
        """Path the selected backend writes to."""
        if self.backend == StorageBackend.SQLITE:
            return self.database_uri
        return self.games_path


def get_storage_backend() -> StorageBackend:
    """Backend named by STATECRAFT_STORAGE_BACKEND.

    Unknown names fall back to the file backend with a warning.
    """
    name = os.environ.get("STATECRAFT_STORAGE_BACKEND", StorageBackend.FILE.value).strip().lower()
    try:
        return StorageBackend(name)
    except ValueError:
        logger.warning(f"Unknown storage backend {name!r}, using {StorageBackend.FILE.value}")
        return StorageBackend.FILE


def get_game_store(
    backend: StorageBackend | None = None,
    settings: StorageSettings | None = None,
) -> GameStore:
    """Build the configured game store.

    Args:
        backend: Overrides the configured backend
        settings: Storage settings (read from the environment when omitted)

    Returns:
        GameStore instance
    """
    settings = settings or StorageSettings.from_env()
    if backend is not None:
        settings = replace(settings, backend=backend)

    logger.debug(f"Opening {settings.backend.value} game store at {settings.location()}")
    if settings.backend == StorageBackend.SQLITE:
        return SQLiteGameStore(settings.database_uri)
    return FileGameStore(settings.games_path)
