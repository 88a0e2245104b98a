"""Models package for the Mega-Sena analytics service."""

from .draw_models import (
    Draw,
    PrizeTier,
    Contest,
    NextContestInfo,
    LatestContest,
    HistoricalDataset,
    InvalidDrawError,
    InvalidCandidateSetError,
)

__all__ = [
    'Draw',
    'PrizeTier',
    'Contest',
    'NextContestInfo',
    'LatestContest',
    'HistoricalDataset',
    'InvalidDrawError',
    'InvalidCandidateSetError',
]
