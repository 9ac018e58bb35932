"""Per-game offer cooldown table.

Tracks the last turn each AI country sent a trade offer to each player.
The table is plain data: it is loaded from the game store, passed to the
offer service, and written back with the turn commit.
"""

from __future__ import annotations

from statecraft.parameters import OFFER_COOLDOWN_TURNS


class OfferCooldowns:
    """Last-offer turns keyed by (AI country, player country).

    Args:
        entries: Serialized table, "ai_id:player_id" -> turn
        cooldown_turns: Minimum turns between two offers to the same player
    """

    SEPARATOR = ":"

    def __init__(self, entries: dict[str, int] | None = None, cooldown_turns: int = OFFER_COOLDOWN_TURNS):
        self._entries: dict[str, int] = dict(entries or {})
        self.cooldown_turns = cooldown_turns

    @classmethod
    def key(cls, ai_id: str, player_id: str) -> str:
        return f"{ai_id}{cls.SEPARATOR}{player_id}"

    def last_offer(self, ai_id: str, player_id: str) -> int | None:
        return self._entries.get(self.key(ai_id, player_id))

    def is_cooling_down(self, ai_id: str, player_id: str, turn: int) -> bool:
        """True while fewer than ``cooldown_turns`` turns have passed since the last offer."""
        last = self.last_offer(ai_id, player_id)
        return last is not None and turn - last < self.cooldown_turns

    def record(self, ai_id: str, player_id: str, turn: int) -> None:
        self._entries[self.key(ai_id, player_id)] = turn

    def to_dict(self) -> dict[str, int]:
        return dict(self._entries)

    @classmethod
    def from_dict(cls, data: dict[str, int] | None) -> OfferCooldowns:
        return cls(data or {})

    def __len__(self) -> int:
        return len(self._entries)
