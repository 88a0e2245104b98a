"""Simulation package: draw generator, frequency tables and the tick scheduler."""

from .generator import DrawGenerator
from .frequency import FrequencyAggregator
from .scheduler import SimulationScheduler, SimulationState, SimulationSnapshot, RunMode

__all__ = [
    'DrawGenerator',
    'FrequencyAggregator',
    'SimulationScheduler',
    'SimulationState',
    'SimulationSnapshot',
    'RunMode',
]
