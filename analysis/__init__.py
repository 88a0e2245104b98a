"""Analysis package: co-occurrence, subset queries and summary statistics."""

from .combinations import CoOccurrenceAnalyzer, CoOccurrenceResult, ComboEntry, k_combinations
from .subset_query import SubsetQueryEngine, SubsetQueryResult, SubsetHit, normalize_candidates
from .history import HistoryStore, HistorySnapshot, history_store
from .statistics import frequency_frame, uniformity_test, official_odds_table

__all__ = [
    'CoOccurrenceAnalyzer',
    'CoOccurrenceResult',
    'ComboEntry',
    'k_combinations',
    'SubsetQueryEngine',
    'SubsetQueryResult',
    'SubsetHit',
    'normalize_candidates',
    'HistoryStore',
    'HistorySnapshot',
    'history_store',
    'frequency_frame',
    'uniformity_test',
    'official_odds_table',
]
