"""API package for the Mega-Sena analytics service."""

from .routes import app
from .schemas import (
    FrequencyResponse,
    SimulationStatusResponse,
    CombinationsResponse,
    SubsetQueryResponse,
    ErrorResponse
)

__all__ = [
    'app',
    'FrequencyResponse',
    'SimulationStatusResponse',
    'CombinationsResponse',
    'SubsetQueryResponse',
    'ErrorResponse'
]
