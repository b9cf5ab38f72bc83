"""
Kinerace - A two-vehicle race simulator for teaching the work-energy theorem.

This package provides a fixed-step kinematics core with:
- Force profiles (constant, increasing, decreasing, impulse)
- Heun (RK2) integration with finish-line overshoot clamping
- A two-vehicle race integrator with tie and time-limit outcomes
- A fixed-step runner drivable from a background thread or a render loop
- A watchdog that falls back between drivers without losing state
- Pooled tick snapshots and telemetry recording
"""

__version__ = "0.1.0"

from kinerace.simulation.runner import SimulationRunner
from kinerace.simulation.race import RaceConfig, RaceOutcome
from kinerace.vehicle.vehicle import VehicleParams
from kinerace.vehicle.forces import ForceKind, ForceProfile

__all__ = [
    "SimulationRunner",
    "RaceConfig",
    "RaceOutcome",
    "VehicleParams",
    "ForceKind",
    "ForceProfile",
    "__version__",
]
