"""Statistical summaries over frequency tables."""

import math
import numpy as np
import pandas as pd
from scipy import stats
from typing import Any, Dict, List, Optional
import logging

from config.settings import NUMBERS_PER_DRAW, NUMBER_RANGE_MIN, NUMBER_RANGE_MAX
from simulation.frequency import FrequencyAggregator
from utils.helpers import pad2

logger = logging.getLogger(__name__)

TOTAL_NUMBERS = NUMBER_RANGE_MAX - NUMBER_RANGE_MIN + 1
MAX_BET_SIZE = 20


def frequency_frame(aggregator: FrequencyAggregator) -> pd.DataFrame:
    """One row per number with its count and share of all drawn numbers."""
    counts = aggregator.counts()
    total = int(counts.sum())
    numbers = np.arange(NUMBER_RANGE_MIN, NUMBER_RANGE_MAX + 1)
    frame = pd.DataFrame({
        'number': numbers,
        'label': [pad2(n) for n in numbers],
        'count': counts,
    })
    frame['percent'] = (100.0 * frame['count'] / total) if total else 0.0
    return frame


def uniformity_test(aggregator: FrequencyAggregator) -> Optional[Dict[str, Any]]:
    """Chi-square goodness of fit of the counts against a uniform draw.

    Returns None for an empty table.
    """
    counts = aggregator.counts()
    total = int(counts.sum())
    if total == 0:
        return None

    expected = total / TOTAL_NUMBERS
    statistic, p_value = stats.chisquare(counts)
    deviation = (counts - expected) / expected
    return {
        'draws': total // NUMBERS_PER_DRAW,
        'expected_count': float(expected),
        'chi_square': float(statistic),
        'p_value': float(p_value),
        'degrees_of_freedom': TOTAL_NUMBERS - 1,
        'max_relative_deviation': float(np.max(np.abs(deviation))),
    }


def official_odds_table(max_numbers: int = MAX_BET_SIZE) -> List[Dict[str, int]]:
    """Jackpot odds for bets of 6..max_numbers numbers.

    A bet of n numbers covers C(n, 6) single games, so the odds of hitting
    the six drawn numbers are 1 in C(60, 6) / C(n, 6).
    """
    max_numbers = max(NUMBERS_PER_DRAW, min(int(max_numbers), TOTAL_NUMBERS))
    all_draws = math.comb(TOTAL_NUMBERS, NUMBERS_PER_DRAW)
    table = []
    for n in range(NUMBERS_PER_DRAW, max_numbers + 1):
        games = math.comb(n, NUMBERS_PER_DRAW)
        table.append({
            'numbers': n,
            'games': games,
            'odds': round(all_draws / games),
        })
    return table
