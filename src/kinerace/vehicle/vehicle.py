"""
Vehicle - Parameters and kinematic state of a racing vehicle.

Provides:
- Vehicle presets (car, motorcycle, truck)
- User-facing vehicle parameters with validation
- Mutable kinematic state owned by the race integrator
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any
import math

from kinerace.errors import InvalidParameter
from kinerace.vehicle.forces import ForceKind, ForceProfile


class VehicleType(Enum):
    """Vehicle body presets."""
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    TRUCK = "truck"


PRESET_MASS_KG = {
    VehicleType.CAR: 1000.0,
    VehicleType.MOTORCYCLE: 250.0,
    VehicleType.TRUCK: 3000.0,
}

# Default opposing friction of the two race lanes
DEFAULT_FRICTION_N = (100.0, 80.0)


@dataclass(frozen=True)
class VehicleParams:
    """Configuration of one vehicle.

    Default values create a 1000 kg car with 100 N of friction and
    no applied force chosen yet. Immutable, so the instance validated
    by configure() is the one a run starts from.
    """
    mass: float = 1000.0                 # kg
    friction_force: float = 100.0        # N, opposing, constant magnitude
    force_profile: ForceProfile = field(default_factory=ForceProfile)
    initial_position: float = 0.0        # m
    initial_velocity: float = 0.0        # m/s

    @classmethod
    def from_preset(
        cls,
        vehicle_type: VehicleType | str,
        force: float | None = None,
        kind: ForceKind | str = ForceKind.CONSTANT,
        friction_force: float = 100.0,
        initial_position: float = 0.0,
        initial_velocity: float = 0.0,
    ) -> "VehicleParams":
        """Build parameters using a preset mass.
        
        Args:
            vehicle_type: Preset body type
            force: Base applied force in N (None = unset)
            kind: Force profile kind
            friction_force: Opposing friction in N
            initial_position: Starting position in m
            initial_velocity: Starting velocity in m/s
            
        Returns:
            Vehicle parameters
        """
        vehicle_type = VehicleType(vehicle_type)
        return cls(
            mass=PRESET_MASS_KG[vehicle_type],
            friction_force=friction_force,
            force_profile=ForceProfile(ForceKind(kind), force),
            initial_position=initial_position,
            initial_velocity=initial_velocity,
        )

    def validate(self) -> None:
        """Reject non-physical parameters.
        
        Raises:
            InvalidParameter: If any value is non-finite or out of range
        """
        values = {
            "mass": self.mass,
            "friction_force": self.friction_force,
            "initial_position": self.initial_position,
            "initial_velocity": self.initial_velocity,
        }
        if self.force_profile.base_magnitude is not None:
            values["base_magnitude"] = self.force_profile.base_magnitude

        for name, value in values.items():
            if not math.isfinite(value):
                raise InvalidParameter(name, value, "must be finite")

        if self.mass <= 0:
            raise InvalidParameter("mass", self.mass, "must be positive")
        for name in ("friction_force", "initial_position", "initial_velocity", "base_magnitude"):
            if name in values and values[name] < 0:
                raise InvalidParameter(name, values[name], "must be non-negative")


@dataclass
class VehicleState:
    """Kinematic state of one vehicle during a run.
    
    Kinetic energy is always derived from mass and velocity.
    """
    mass: float
    friction_force: float
    force_profile: ForceProfile
    position: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0          # average over last step
    net_force: float = 0.0             # average over last step
    cumulative_work: float = 0.0
    max_velocity_observed: float = 0.0

    @classmethod
    def from_params(cls, params: VehicleParams) -> "VehicleState":
        """Create a fresh state at the configured initial conditions."""
        return cls(
            mass=params.mass,
            friction_force=params.friction_force,
            force_profile=params.force_profile,
            position=params.initial_position,
            velocity=params.initial_velocity,
        )

    @property
    def kinetic_energy(self) -> float:
        """Kinetic energy in J."""
        return 0.5 * self.mass * self.velocity**2

    def get_state(self) -> Dict[str, Any]:
        """Get state dictionary.
        
        Returns:
            Dictionary with reportable values
        """
        return {
            "position": self.position,
            "velocity": self.velocity,
            "acceleration": self.acceleration,
            "net_force": self.net_force,
            "kinetic_energy": self.kinetic_energy,
            "work": self.cumulative_work,
            "max_velocity": self.max_velocity_observed,
        }
