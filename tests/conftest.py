"""Shared fixtures for the kinerace tests."""

import math

import pytest

from kinerace.simulation.race import RaceConfig
from kinerace.simulation.runner import SimulationRunner

from helpers import FakeClock, make_params


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runner(clock):
    runner = SimulationRunner(clock=clock)
    runner.configure(
        make_params(600.0),
        make_params(550.0, friction=80.0),
        RaceConfig(race_distance=50.0, race_time_limit=math.inf),
    )
    return runner
