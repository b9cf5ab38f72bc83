"""
Simulation module - Fixed-step race integration and scheduling.

This module contains:
- KinematicStepper: Single-vehicle Heun integration step
- RaceIntegrator: Two-vehicle tick, clock and outcome
- SimulationRunner: Fixed-step accumulator and run control
- Drivers: Background/foreground scheduling hosts and watchdog
- Snapshots: Pooled fixed-layout tick records
"""

from kinerace.simulation.physics import KinematicStepper, PhysicsConfig, StepResult
from kinerace.simulation.race import RaceConfig, RaceIntegrator, RaceOutcome, RacePhase, RaceState
from kinerace.simulation.snapshot import SnapshotPool, TickSnapshot, VehicleReading
from kinerace.simulation.runner import RaceResult, RunnerConfig, RunStatus, SimulationRunner
from kinerace.simulation.drivers import (
    BackgroundDriver,
    DriverSupervisor,
    ForegroundDriver,
    SchedulerDriver,
    SupervisorConfig,
)

__all__ = [
    "KinematicStepper",
    "PhysicsConfig",
    "StepResult",
    "RaceConfig",
    "RaceIntegrator",
    "RaceOutcome",
    "RacePhase",
    "RaceState",
    "SnapshotPool",
    "TickSnapshot",
    "VehicleReading",
    "RaceResult",
    "RunnerConfig",
    "RunStatus",
    "SimulationRunner",
    "BackgroundDriver",
    "DriverSupervisor",
    "ForegroundDriver",
    "SchedulerDriver",
    "SupervisorConfig",
]
