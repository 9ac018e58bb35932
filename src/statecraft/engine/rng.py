"""Deterministic randomness.

Every random draw in turn processing comes from a SeededRandom keyed by a
string (for combat: "game_id:turn:action_id"), so re-running a turn with
the same inputs reproduces it exactly.

The generator hashes the seed string into 32 bits and steps an xorshift32
sequence from there. It is small and fast, not cryptographic.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence, TypeVar

from statecraft.parameters import MIN_SELECTION_WEIGHT

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_ZERO_SEED_STATE = 123456789


def hash_seed(seed: str) -> int:
    """Fold a seed string into a non-zero 32-bit state.

    Examples:
        >>> hash_seed("") == _ZERO_SEED_STATE
        True
    """
    h = 0
    for char in seed:
        h = ((h << 5) - h + ord(char)) & _MASK
    return h or _ZERO_SEED_STATE


class SeededRandom:
    """Reproducible float stream in [0, 1).

    Instances are callable, so they can be passed wherever an
    ``rng: Callable[[], float]`` is expected.

    Examples:
        >>> a, b = SeededRandom("game-1"), SeededRandom("game-1")
        >>> [a() for _ in range(3)] == [b() for _ in range(3)]
        True
    """

    def __init__(self, seed: str):
        self.seed = seed
        self._state = hash_seed(seed)

    def random(self) -> float:
        h = self._state
        h ^= (h << 13) & _MASK
        h ^= h >> 17
        h ^= (h << 5) & _MASK
        self._state = h
        return h / 4294967296

    __call__ = random

    def uniform(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], inclusive."""
        return low + math.floor(self.random() * (high - low + 1))

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[math.floor(self.random() * len(options))]


def weighted_select(
    options: Sequence[T],
    rng: Callable[[], float],
    bias: dict[str, float] | None = None,
    min_weight: float = MIN_SELECTION_WEIGHT,
) -> T:
    """Pick one option, each weighted 1 + bias[str(option)].

    Weights are floored at ``min_weight`` so that every option stays
    selectable, however negative its bias.

    Args:
        options: Candidates, in a stable order
        rng: Float source in [0, 1)
        bias: Option name -> additive weight adjustment
        min_weight: Smallest weight any option can have

    Returns:
        The selected option

    Raises:
        IndexError: If there are no options
    """
    if not options:
        raise IndexError("Cannot select from an empty sequence")
    bias = bias or {}
    weights = [max(min_weight, 1 + bias.get(str(option), 0)) for option in options]
    target = rng() * sum(weights)
    for option, weight in zip(options, weights):
        target -= weight
        if target <= 0:
            return option
    return options[-1]
