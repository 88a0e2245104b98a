"""Domain models for Mega-Sena draws and the historical dataset."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from config.settings import NUMBERS_PER_DRAW, NUMBER_RANGE_MIN, NUMBER_RANGE_MAX
from utils.helpers import coerce_int, combo_key

logger = logging.getLogger(__name__)


class InvalidDrawError(ValueError):
    """Raised when a sequence of numbers is not a valid 6-of-60 draw."""


class InvalidCandidateSetError(ValueError):
    """Raised when a subset query does not hold 2 to 6 valid numbers.

    The message is meant to be shown to the caller as is.
    """


@dataclass(frozen=True)
class Draw:
    """Six distinct numbers in [1, 60], stored in ascending order."""
    numbers: Tuple[int, ...]

    def __post_init__(self):
        numbers = tuple(sorted(self.numbers))
        if len(numbers) != NUMBERS_PER_DRAW:
            raise InvalidDrawError(f"A draw needs {NUMBERS_PER_DRAW} numbers, got {len(numbers)}")
        if len(set(numbers)) != NUMBERS_PER_DRAW:
            raise InvalidDrawError(f"Duplicate numbers in draw: {list(numbers)}")
        for num in numbers:
            if not (NUMBER_RANGE_MIN <= num <= NUMBER_RANGE_MAX):
                raise InvalidDrawError(f"Number {num} out of range ({NUMBER_RANGE_MIN}-{NUMBER_RANGE_MAX})")
        object.__setattr__(self, 'numbers', numbers)

    @classmethod
    def from_raw(cls, values: Iterable) -> Optional['Draw']:
        """Build a draw from raw feed values ("05", 5, ...); None when malformed."""
        if values is None or isinstance(values, (str, bytes, dict)):
            return None
        try:
            numbers = [coerce_int(v) for v in values]
        except TypeError:
            return None
        if any(n is None for n in numbers):
            return None
        try:
            return cls(tuple(numbers))
        except InvalidDrawError:
            return None

    def as_set(self) -> frozenset:
        return frozenset(self.numbers)

    @property
    def key(self) -> str:
        return combo_key(self.numbers)

    def __iter__(self) -> Iterator[int]:
        return iter(self.numbers)

    def __len__(self) -> int:
        return len(self.numbers)


@dataclass(frozen=True)
class PrizeTier:
    """One line of a prize breakdown; unknown values stay None."""
    tier: str
    winners: Optional[int] = None
    prize: Optional[float] = None


@dataclass(frozen=True)
class Contest:
    """A historical contest as delivered by the data provider."""
    contest: int
    raw_numbers: Tuple = ()
    date: Optional[str] = None
    prize_breakdown: Tuple[PrizeTier, ...] = ()

    @property
    def draw(self) -> Optional[Draw]:
        return Draw.from_raw(self.raw_numbers)


@dataclass(frozen=True)
class NextContestInfo:
    """Metadata about the upcoming contest published with the latest result."""
    accumulated: Optional[bool] = None
    estimated_prize: Optional[float] = None
    next_date: Optional[str] = None


@dataclass(frozen=True)
class LatestContest:
    """The last official contest with its prize breakdown."""
    contest: Optional[int] = None
    date: Optional[str] = None
    numbers: Tuple[int, ...] = ()
    prize_breakdown: Tuple[PrizeTier, ...] = ()


@dataclass
class HistoricalDataset:
    """Contest -> draw mapping plus the companion contest -> date lookup.

    Contests whose numbers do not form a valid draw are kept for reference
    but never returned by :meth:`valid_draws`.
    """
    contests: Dict[int, Contest] = field(default_factory=dict)
    dates: Dict[int, str] = field(default_factory=dict)
    latest: LatestContest = field(default_factory=LatestContest)
    next_contest: NextContestInfo = field(default_factory=NextContestInfo)

    def __post_init__(self):
        self._valid: Dict[int, Draw] = {}
        for contest_id, contest in self.contests.items():
            draw = contest.draw
            if draw is not None:
                self._valid[contest_id] = draw

    @classmethod
    def from_mapping(cls, mapping: Dict, dates: Optional[Dict] = None) -> 'HistoricalDataset':
        """Build a dataset from ``{contest: [numbers]}`` and ``{contest: date}``."""
        date_lookup = {int(k): v for k, v in (dates or {}).items()}
        contests = {}
        for key, numbers in mapping.items():
            contest_id = int(key)
            contests[contest_id] = Contest(
                contest=contest_id,
                raw_numbers=tuple(numbers or ()),
                date=date_lookup.get(contest_id),
            )
        return cls(contests=contests, dates=date_lookup)

    def valid_draws(self) -> List[Tuple[int, Draw]]:
        """(contest, draw) pairs for every well-formed contest, ascending by contest."""
        return sorted(self._valid.items())

    def iter_draws(self) -> Iterator[Tuple[int, Draw]]:
        return iter(self.valid_draws())

    def draw_for(self, contest: int) -> Optional[Draw]:
        return self._valid.get(contest)

    def date_for(self, contest: int) -> Optional[str]:
        return self.dates.get(contest)

    @property
    def invalid_contests(self) -> List[int]:
        return sorted(set(self.contests) - set(self._valid))

    @property
    def total_draws(self) -> int:
        return len(self._valid)

    @property
    def last_contest(self) -> Optional[int]:
        return max(self.contests) if self.contests else None

    def __len__(self) -> int:
        return self.total_draws
