"""
Vehicle module - Vehicle parameters, state and force profiles.

This module contains:
- ForceProfile: Applied force as a function of time
- VehicleParams: User-configured vehicle parameters
- VehicleState: Kinematic state advanced by the integrator
"""

from kinerace.vehicle.forces import ForceKind, ForceProfile
from kinerace.vehicle.vehicle import VehicleParams, VehicleState, VehicleType

__all__ = [
    "ForceKind",
    "ForceProfile",
    "VehicleParams",
    "VehicleState",
    "VehicleType",
]
