"""Holder of the current historical dataset and its frequency table."""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from models.draw_models import HistoricalDataset
from simulation.frequency import FrequencyAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    """A dataset together with the frequency table derived from it."""
    dataset: HistoricalDataset
    frequency: FrequencyAggregator
    loaded_at: datetime


class HistoryStore:
    """Publishes dataset snapshots; the frequency table is rebuilt on every replace."""

    def __init__(self):
        self._snapshot: Optional[HistorySnapshot] = None
        self._lock = threading.Lock()

    def replace(self, dataset: HistoricalDataset) -> HistorySnapshot:
        frequency = FrequencyAggregator.from_dataset(dataset)
        snapshot = HistorySnapshot(dataset=dataset, frequency=frequency, loaded_at=datetime.now())
        with self._lock:
            self._snapshot = snapshot
        logger.info(
            f"History loaded: {dataset.total_draws} valid draws, "
            f"{len(dataset.invalid_contests)} excluded, last contest {dataset.last_contest}"
        )
        return snapshot

    def snapshot(self) -> Optional[HistorySnapshot]:
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None

    @property
    def is_loaded(self) -> bool:
        return self.snapshot() is not None


# Global store shared by the API and the refresh job
history_store = HistoryStore()
