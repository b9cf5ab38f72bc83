"""
Physics engine - Fixed-step kinematics for a single vehicle.

Provides:
- Heun (RK2) velocity update with a zero-velocity floor
- Trapezoidal displacement
- Finish-line overshoot clamping
- Work accumulation
"""

from dataclasses import dataclass, replace
import numpy as np

from kinerace.errors import InvalidParameter
from kinerace.vehicle.vehicle import VehicleState


@dataclass
class PhysicsConfig:
    """Physics simulation configuration."""
    # Time step
    fixed_dt: float = 1.0 / 60.0  # 60 Hz simulation


@dataclass(frozen=True)
class StepResult:
    """Outcome of advancing one vehicle by one step."""
    position: float
    velocity: float
    acceleration: float
    net_force: float
    work_delta: float
    displacement: float
    clamped: bool = False

    def apply_to(self, state: VehicleState) -> VehicleState:
        """Return the vehicle state after this step.
        
        Args:
            state: State the step was computed from
            
        Returns:
            New vehicle state
        """
        return replace(
            state,
            position=self.position,
            velocity=self.velocity,
            acceleration=self.acceleration,
            net_force=self.net_force,
            cumulative_work=state.cumulative_work + self.work_delta,
            max_velocity_observed=max(state.max_velocity_observed, self.velocity),
        )


class KinematicStepper:
    """Advances one vehicle along the track by one fixed step.
    
    Uses Heun's method: the applied force is evaluated at both ends of
    the step and the averaged acceleration updates velocity, while the
    averaged velocity updates position. Vehicles never reverse.
    """

    def __init__(self, config: PhysicsConfig | None = None):
        """Initialize stepper.
        
        Args:
            config: Physics configuration. Uses defaults if None.
        """
        self.config = config or PhysicsConfig()

    def step(
        self,
        state: VehicleState,
        t0: float,
        dt: float | None = None,
        finish_distance: float | None = None,
    ) -> StepResult:
        """Compute one integration step.
        
        Args:
            state: Current vehicle state
            t0: Simulation time at the start of the step
            dt: Time step (uses fixed_dt if None)
            finish_distance: Finish line position, or None for an open track
            
        Returns:
            Step result for the vehicle
        """
        if state.mass <= 0:
            raise InvalidParameter("mass", state.mass, "must be positive")

        dt = self.config.fixed_dt if dt is None else dt
        profile = state.force_profile

        f_net1 = profile.evaluate(t0) - state.friction_force
        f_net2 = profile.evaluate(t0 + dt) - state.friction_force
        a1 = f_net1 / state.mass
        a2 = f_net2 / state.mass
        a_avg = 0.5 * (a1 + a2)
        f_net_avg = 0.5 * (f_net1 + f_net2)

        v0 = state.velocity
        new_velocity = max(0.0, v0 + a_avg * dt)
        dx = 0.5 * (v0 + new_velocity) * dt
        new_position = state.position + dx
        clamped = False

        if finish_distance is not None:
            remaining = finish_distance - state.position
            if dx >= remaining:
                # Velocity recomputed from v^2 = v0^2 + 2*a*dx at the clamped displacement
                dx = max(0.0, remaining)
                new_velocity = float(np.sqrt(max(0.0, v0 * v0 + 2.0 * a_avg * dx)))
                new_position = finish_distance if remaining > 0 else state.position
                clamped = True

        return StepResult(
            position=new_position,
            velocity=new_velocity,
            acceleration=a_avg,
            net_force=f_net_avg,
            work_delta=f_net_avg * dx,
            displacement=dx,
            clamped=clamped,
        )

    def advance(
        self,
        state: VehicleState,
        t0: float,
        dt: float | None = None,
        finish_distance: float | None = None,
    ) -> VehicleState:
        """Step a vehicle and return its new state.
        
        Args:
            state: Current vehicle state
            t0: Simulation time at the start of the step
            dt: Time step (uses fixed_dt if None)
            finish_distance: Finish line position, or None for an open track
            
        Returns:
            New vehicle state
        """
        return self.step(state, t0, dt, finish_distance).apply_to(state)
