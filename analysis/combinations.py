"""Co-occurrence analysis of number groups across historical draws."""

from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Sequence, Tuple
import logging

from config.settings import settings, NUMBERS_PER_DRAW
from models.draw_models import HistoricalDataset
from utils.helpers import combo_key

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = NUMBERS_PER_DRAW
DEFAULT_K_RANGE = range(MIN_GROUP_SIZE, MAX_GROUP_SIZE + 1)


def k_combinations(items: Sequence[int], k: int) -> List[Tuple[int, ...]]:
    """All k-subsets of ``items`` in lexicographic order of positions.

    ``k_combinations([1, 2, 3, 4], 2)`` gives
    ``[(1, 2), (1, 3), (1, 4), (2, 3), (2, 4), (3, 4)]``.
    """
    if k <= 0 or k > len(items):
        return []
    return list(combinations(items, k))


@dataclass(frozen=True)
class ComboEntry:
    """How often a group of numbers was drawn together."""
    combo: Tuple[int, ...]
    count: int
    percent_of_total: float

    @property
    def key(self) -> str:
        return combo_key(self.combo)


@dataclass
class CoOccurrenceResult:
    """Ranked combos per group size plus the pool they were drawn from."""
    by_k: Dict[int, List[ComboEntry]] = field(default_factory=dict)
    pool: Tuple[int, ...] = ()
    requested: int = 0
    truncated: bool = False
    total_draws: int = 0

    def top(self, k: int, limit: int) -> List[ComboEntry]:
        return self.by_k.get(k, [])[:limit]


class CoOccurrenceAnalyzer:
    """Counts every 2..6 subset of a candidate pool that appears inside draws.

    Only the first ``pool_cap`` numbers of the ranked pool take part, so the
    work per draw stays bounded by the subsets of a 6-number intersection.
    """

    def __init__(self, pool_cap: int = None):
        self.pool_cap = settings.combo_pool_cap if pool_cap is None else int(pool_cap)
        if self.pool_cap < 1:
            raise ValueError(f"pool_cap must be positive, got {self.pool_cap}")

    def analyze(self, dataset: HistoricalDataset, ranked_pool: Sequence[int],
                k_range: Iterable[int] = DEFAULT_K_RANGE) -> CoOccurrenceResult:
        """Rank co-occurring groups of the pool's numbers for each k in ``k_range``."""
        ks = sorted(set(int(k) for k in k_range))
        for k in ks:
            if not (MIN_GROUP_SIZE <= k <= MAX_GROUP_SIZE):
                raise ValueError(f"Group size {k} out of range ({MIN_GROUP_SIZE}-{MAX_GROUP_SIZE})")

        ranked_pool = list(ranked_pool)
        pool = tuple(ranked_pool[:self.pool_cap])
        truncated = len(ranked_pool) > self.pool_cap
        if truncated:
            logger.info(f"Candidate pool of {len(ranked_pool)} numbers limited to the top {self.pool_cap}")

        pool_set = set(pool)
        counts: Dict[int, Dict[Tuple[int, ...], int]] = {k: defaultdict(int) for k in ks}
        total_draws = 0

        for _, draw in dataset.iter_draws():
            total_draws += 1
            intersection = [n for n in draw.numbers if n in pool_set]
            for k in ks:
                if k > len(intersection):
                    break
                bucket = counts[k]
                for combo in k_combinations(intersection, k):
                    bucket[combo] += 1

        by_k = {}
        for k in ks:
            entries = [
                ComboEntry(
                    combo=combo,
                    count=count,
                    percent_of_total=(100.0 * count / total_draws) if total_draws else 0.0,
                )
                for combo, count in counts[k].items()
            ]
            entries.sort(key=lambda e: (-e.count, e.combo))
            by_k[k] = entries

        logger.debug(
            f"Co-occurrence analysis over {total_draws} draws, pool={list(pool)}, "
            + ", ".join(f"k={k}: {len(by_k[k])}" for k in ks)
        )
        return CoOccurrenceResult(
            by_k=by_k,
            pool=pool,
            requested=len(ranked_pool),
            truncated=truncated,
            total_draws=total_draws,
        )
