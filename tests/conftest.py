"""Shared fixtures for the Mega-Sena analytics tests."""

import numpy as np
import pytest

from models.draw_models import HistoricalDataset
from simulation.generator import DrawGenerator
from simulation.scheduler import SimulationScheduler


SAMPLE_DRAWS = {
    1: [1, 2, 3, 4, 5, 6],
    2: [1, 4, 6, 10, 20, 30],
    3: [1, 6, 55, 10, 12, 14],
}

SAMPLE_DATES = {
    1: "11/03/1996",
    2: "18/03/1996",
}


@pytest.fixture
def sample_dataset():
    """Three contests; contest 3 has no known date."""
    return HistoricalDataset.from_mapping(SAMPLE_DRAWS, SAMPLE_DATES)


@pytest.fixture
def messy_dataset():
    """The sample contests plus malformed ones that analyses must skip."""
    mapping = dict(SAMPLE_DRAWS)
    mapping[4] = [1, 6, 6, 7, 8, 9]        # duplicate
    mapping[5] = [1, 6, 70, 7, 8, 9]       # out of range
    mapping[6] = [1, 6, 10]                # too short
    mapping[7] = ["01", "06", "x", 4, 5, 9]  # non-numeric
    return HistoricalDataset.from_mapping(mapping, SAMPLE_DATES)


@pytest.fixture
def rng():
    return np.random.default_rng(20240601)


@pytest.fixture
def generator(rng):
    return DrawGenerator(rng=rng)


@pytest.fixture
def make_simulator(generator):
    """Factory for simulators that are shut down after the test."""
    created = []

    def _make(**kwargs):
        sim = SimulationScheduler(generator=generator, **kwargs)
        created.append(sim)
        return sim

    yield _make

    for sim in created:
        sim.shutdown()
