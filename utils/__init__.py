"""Utilities package for the Mega-Sena analytics service."""

from .helpers import pad2, combo_key, clamp, coerce_int, parse_pasted_numbers, validate_number_range

__all__ = [
    'pad2',
    'combo_key',
    'clamp',
    'coerce_int',
    'parse_pasted_numbers',
    'validate_number_range',
]
