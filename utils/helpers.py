"""Helper utilities for the Mega-Sena analytics service."""

import re
from typing import Iterable, List, Optional

from config.settings import NUMBER_RANGE_MIN, NUMBER_RANGE_MAX


def pad2(number: int) -> str:
    """Format a lottery number as a two-digit label ("05")."""
    return str(int(number)).zfill(2)


def combo_key(numbers: Iterable[int]) -> str:
    """Canonical display key for a set of numbers, e.g. ``01-04-06-55``."""
    return "-".join(pad2(n) for n in sorted(numbers))


def clamp(value: int, min_val: int, max_val: int) -> int:
    """Clamp ``value`` to the closed range [min_val, max_val]."""
    return max(min_val, min(max_val, int(value)))


def validate_number_range(number: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> bool:
    """Validate if number is within the lottery range."""
    min_val = NUMBER_RANGE_MIN if min_val is None else min_val
    max_val = NUMBER_RANGE_MAX if max_val is None else max_val
    return min_val <= number <= max_val


def coerce_int(value) -> Optional[int]:
    """Convert an int-like value (``7``, ``"07"``, ``7.0``) to int, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"[+-]?\d+", text):
            return int(text)
    return None


def parse_pasted_numbers(text: str, max_items: int = 6) -> List[str]:
    """Split a pasted line on any non-digit run and keep the first tokens.

    ``"04, 08 - 15;16 23 42 99"`` gives ``['04', '08', '15', '16', '23', '42']``.
    """
    parts = [p for p in re.split(r"[^0-9]+", text or "") if p]
    return parts[:max_items]
