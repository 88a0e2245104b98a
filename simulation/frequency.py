"""Running per-number frequency tables."""

import threading
import numpy as np
from typing import Dict, Iterable, List, Tuple
import logging

from config.settings import NUMBERS_PER_DRAW, NUMBER_RANGE_MIN, NUMBER_RANGE_MAX
from models.draw_models import Draw, HistoricalDataset

logger = logging.getLogger(__name__)


class FrequencyAggregator:
    """Counts how many times each number in [1, 60] was drawn.

    A batch passed to :meth:`ingest` is tallied first and then added to the
    table under a lock, so readers see either none or all of it.
    """

    def __init__(self):
        self._counts = np.zeros(NUMBER_RANGE_MAX + 1, dtype=np.int64)
        self._draws = 0
        self._lock = threading.Lock()

    @classmethod
    def from_dataset(cls, dataset: HistoricalDataset) -> 'FrequencyAggregator':
        """Table over every valid draw of a historical dataset."""
        aggregator = cls()
        aggregator.ingest(draw for _, draw in dataset.valid_draws())
        logger.debug(f"Frequency table built from {aggregator.draws_ingested} historical draws")
        return aggregator

    def ingest(self, draws: Iterable[Draw]) -> int:
        """Add a batch of draws; returns the number of draws ingested."""
        flat: List[int] = []
        batch_size = 0
        for draw in draws:
            flat.extend(draw.numbers)
            batch_size += 1
        if not batch_size:
            return 0

        delta = np.bincount(np.asarray(flat, dtype=np.int64), minlength=NUMBER_RANGE_MAX + 1)
        with self._lock:
            self._counts += delta
            self._draws += batch_size
        return batch_size

    def reset(self) -> None:
        with self._lock:
            self._counts[:] = 0
            self._draws = 0

    def count(self, number: int) -> int:
        if not (NUMBER_RANGE_MIN <= number <= NUMBER_RANGE_MAX):
            raise ValueError(f"Number {number} out of range ({NUMBER_RANGE_MIN}-{NUMBER_RANGE_MAX})")
        with self._lock:
            return int(self._counts[number])

    def sum(self) -> int:
        """Total of all counts; always 6 x draws ingested."""
        with self._lock:
            return int(self._counts.sum())

    @property
    def draws_ingested(self) -> int:
        with self._lock:
            return self._draws

    def counts(self) -> np.ndarray:
        """Copy of the counts for numbers 1..60 (index 0 is number 1)."""
        with self._lock:
            return self._counts[NUMBER_RANGE_MIN:].copy()

    def snapshot(self) -> Dict[int, int]:
        """Mapping number -> count for every number in range."""
        values = self.counts()
        return {n: int(values[n - NUMBER_RANGE_MIN]) for n in range(NUMBER_RANGE_MIN, NUMBER_RANGE_MAX + 1)}

    def top_k(self, k: int) -> List[int]:
        """The ``k`` most frequent numbers, ties broken by ascending number."""
        return [number for number, _ in self.ranking(k)]

    def ranking(self, k: int = NUMBER_RANGE_MAX) -> List[Tuple[int, int]]:
        """(number, count) pairs in rank order, at most ``k`` of them."""
        k = max(0, min(int(k), NUMBER_RANGE_MAX - NUMBER_RANGE_MIN + 1))
        values = self.counts()
        numbers = np.arange(NUMBER_RANGE_MIN, NUMBER_RANGE_MAX + 1)
        # lexsort sorts by the last key first: count descending, then number ascending
        order = np.lexsort((numbers, -values))[:k]
        return [(int(numbers[i]), int(values[i])) for i in order]

    def check_invariant(self) -> bool:
        with self._lock:
            return int(self._counts.sum()) == NUMBERS_PER_DRAW * self._draws
