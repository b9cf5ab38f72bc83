"""Shared builders for the kinerace tests."""

from kinerace.vehicle.forces import ForceKind, ForceProfile
from kinerace.vehicle.vehicle import VehicleParams


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def make_params(
    force: float | None = 600.0,
    mass: float = 1000.0,
    friction: float = 100.0,
    kind: ForceKind = ForceKind.CONSTANT,
    x0: float = 0.0,
    v0: float = 0.0,
) -> VehicleParams:
    return VehicleParams(
        mass=mass,
        friction_force=friction,
        force_profile=ForceProfile(kind, force),
        initial_position=x0,
        initial_velocity=v0,
    )
