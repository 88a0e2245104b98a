"""Configuration package for the Mega-Sena analytics service."""

from .settings import (
    settings,
    Settings,
    NUMBERS_PER_DRAW,
    NUMBER_RANGE_MIN,
    NUMBER_RANGE_MAX,
)

__all__ = [
    'settings',
    'Settings',
    'NUMBERS_PER_DRAW',
    'NUMBER_RANGE_MIN',
    'NUMBER_RANGE_MAX',
]
