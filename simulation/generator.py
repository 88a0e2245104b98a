"""Uniform 6-of-60 draw generator."""

import numpy as np
from typing import List, Optional
import logging

from config.settings import NUMBERS_PER_DRAW, NUMBER_RANGE_MIN, NUMBER_RANGE_MAX
from models.draw_models import Draw

logger = logging.getLogger(__name__)


class DrawGenerator:
    """Draws uniformly random 6-element subsets of [1, 60].

    Numbers come from an i.i.d. uniform stream and are added to the draw
    until it holds six distinct values; repeats are rejected. The stream is
    read from ``rng`` in blocks so a batch of draws costs a handful of numpy
    calls instead of one per number.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None,
                 block_size: int = 4096):
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.block_size = max(NUMBERS_PER_DRAW, int(block_size))
        self._buffer: List[int] = []
        self._pos = 0

    def _next_number(self) -> int:
        if self._pos >= len(self._buffer):
            block = self.rng.integers(NUMBER_RANGE_MIN, NUMBER_RANGE_MAX + 1, size=self.block_size)
            self._buffer = block.tolist()
            self._pos = 0
        value = self._buffer[self._pos]
        self._pos += 1
        return value

    def sample(self) -> Draw:
        """Return one uniformly random draw."""
        chosen = set()
        while len(chosen) < NUMBERS_PER_DRAW:
            chosen.add(self._next_number())
        return Draw(tuple(chosen))

    def sample_many(self, n: int) -> List[Draw]:
        """Return ``n`` independent draws."""
        return [self.sample() for _ in range(max(0, int(n)))]
