from __future__ import annotations

import abc
import random
from typing import Optional, Sequence

from .types import Identity


class WinnerSelector(abc.ABC):
    """Strategy that picks one identity out of a round's entrants."""

    @abc.abstractmethod
    def select(self, entrants: Sequence[Identity]) -> Identity:
        """Return one member of ``entrants``; never called with an empty pool."""


class RandomWinnerSelector(WinnerSelector):
    """Uniform pick over the entrant list.

    Without a seed the operating system's randomness source is used. A seed
    gives a reproducible sequence of winners, which is handy for demos and
    tests but must not be used for real draws.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.SystemRandom() if seed is None else random.Random(seed)

    def select(self, entrants: Sequence[Identity]) -> Identity:
        if not entrants:
            raise ValueError("cannot select a winner from an empty pool")
        return entrants[self._rng.randrange(len(entrants))]


class IndexWinnerSelector(WinnerSelector):
    """Always picks the entrant at a fixed ticket index (wrapped to the pool size)."""

    def __init__(self, index: int = 0) -> None:
        self._index = index

    def select(self, entrants: Sequence[Identity]) -> Identity:
        if not entrants:
            raise ValueError("cannot select a winner from an empty pool")
        return entrants[self._index % len(entrants)]
