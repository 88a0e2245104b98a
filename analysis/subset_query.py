"""Exact subset-membership queries over the historical draws."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple
import logging

from config.settings import NUMBER_RANGE_MIN, NUMBER_RANGE_MAX
from models.draw_models import HistoricalDataset, InvalidCandidateSetError
from utils.helpers import coerce_int, combo_key, validate_number_range

logger = logging.getLogger(__name__)

MIN_CANDIDATES = 2
MAX_CANDIDATES = 6
UNKNOWN_DATE = "unknown"


def normalize_candidates(values: Iterable) -> Tuple[int, ...]:
    """Turn raw user input into an ascending tuple of 2..6 distinct numbers.

    Blank entries are skipped, out-of-range numbers dropped and duplicates
    merged; anything else that is not an integer is rejected.
    """
    if values is None:
        raise InvalidCandidateSetError("No numbers given")
    if isinstance(values, (str, bytes)):
        values = [values]

    accepted = set()
    for value in values:
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        number = coerce_int(value)
        if number is None:
            raise InvalidCandidateSetError(f"'{value}' is not a whole number")
        if validate_number_range(number):
            accepted.add(number)

    if not (MIN_CANDIDATES <= len(accepted) <= MAX_CANDIDATES):
        raise InvalidCandidateSetError(
            f"Enter between {MIN_CANDIDATES} and {MAX_CANDIDATES} distinct numbers "
            f"from {NUMBER_RANGE_MIN} to {NUMBER_RANGE_MAX} (got {len(accepted)} valid)"
        )
    return tuple(sorted(accepted))


@dataclass(frozen=True)
class SubsetHit:
    """A contest whose draw contains every queried number."""
    contest: int
    date: str = UNKNOWN_DATE


@dataclass
class SubsetQueryResult:
    numbers: Tuple[int, ...]
    hits: List[SubsetHit] = field(default_factory=list)
    draws_scanned: int = 0

    @property
    def normalized_key(self) -> str:
        return combo_key(self.numbers)

    @property
    def occurred(self) -> bool:
        return bool(self.hits)


class SubsetQueryEngine:
    """Finds every historical draw that is a superset of a candidate set."""

    def query(self, dataset: HistoricalDataset, candidates: Iterable,
              dates: Optional[dict] = None) -> SubsetQueryResult:
        """Validate ``candidates`` and scan ``dataset`` for draws containing all of them.

        ``dates`` overrides the dataset's own contest -> date lookup.
        """
        numbers = normalize_candidates(candidates)
        target = frozenset(numbers)
        date_lookup = dataset.dates if dates is None else dates

        hits = []
        scanned = 0
        for contest, draw in dataset.iter_draws():
            scanned += 1
            if target <= draw.as_set():
                hits.append(SubsetHit(contest=contest, date=date_lookup.get(contest) or UNKNOWN_DATE))
        hits.sort(key=lambda h: h.contest)

        logger.debug(f"Subset query {combo_key(numbers)}: {len(hits)} hits in {scanned} draws")
        return SubsetQueryResult(numbers=numbers, hits=hits, draws_scanned=scanned)
