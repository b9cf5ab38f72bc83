"""
Race - Two-vehicle race state and integrator.

Manages:
- Race configuration (distance, time limit)
- Shared simulation clock
- Per-tick stepping of both vehicles
- Termination and outcome decisions
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Tuple
import logging
import math

from kinerace.errors import InvalidParameter, RunnerStateError
from kinerace.simulation.physics import KinematicStepper
from kinerace.simulation.snapshot import SnapshotPool, TickSnapshot
from kinerace.vehicle.vehicle import VehicleParams, VehicleState

logger = logging.getLogger(__name__)


class RaceOutcome(Enum):
    """Result of a race."""
    ONGOING = "ongoing"
    VEHICLE1_WINS = "vehicle1_wins"
    VEHICLE2_WINS = "vehicle2_wins"
    TIE = "tie"
    TIME_EXPIRED = "time_expired"

    @property
    def is_terminal(self) -> bool:
        return self is not RaceOutcome.ONGOING


class RacePhase(Enum):
    """Lifecycle of a single run."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class RaceConfig:
    """Race configuration.

    None means the field has not been chosen yet. A time limit of
    math.inf means the race only ends at the finish line.
    """
    race_distance: float | None = None     # m
    race_time_limit: float | None = None   # s

    def missing_fields(self) -> List[str]:
        """Names of required fields that are unset."""
        missing = []
        if self.race_distance is None:
            missing.append("race_distance")
        if self.race_time_limit is None:
            missing.append("race_time_limit")
        return missing

    def validate(self) -> None:
        """Reject non-positive distance or time limit.

        Raises:
            InvalidParameter: If a set field is out of range
        """
        if self.race_distance is not None:
            if not math.isfinite(self.race_distance) or self.race_distance <= 0:
                raise InvalidParameter("race_distance", self.race_distance, "must be positive and finite")
        if self.race_time_limit is not None:
            if math.isnan(self.race_time_limit) or self.race_time_limit <= 0:
                raise InvalidParameter("race_time_limit", self.race_time_limit, "must be positive")


def decide_outcome(
    positions: Tuple[float, float],
    time: float,
    race: RaceConfig,
) -> RaceOutcome:
    """Decide the race outcome after a tick.

    Both vehicles reaching the finish in the same tick is a tie;
    neither vehicle is favoured by evaluation order.

    Args:
        positions: Positions of vehicle 1 and vehicle 2
        time: Simulation time after the tick
        race: Race configuration

    Returns:
        Outcome after this tick
    """
    distance = race.race_distance
    if distance is not None:
        done1 = positions[0] >= distance
        done2 = positions[1] >= distance
        if done1 and done2:
            return RaceOutcome.TIE
        if done1:
            return RaceOutcome.VEHICLE1_WINS
        if done2:
            return RaceOutcome.VEHICLE2_WINS

    limit = race.race_time_limit
    if limit is not None and math.isfinite(limit) and time >= limit:
        return RaceOutcome.TIME_EXPIRED

    return RaceOutcome.ONGOING


@dataclass(frozen=True)
class RaceState:
    """Complete state of a run, replaced on every tick."""
    vehicles: Tuple[VehicleState, VehicleState]
    time: float = 0.0
    frame: int = 0
    phase: RacePhase = RacePhase.NOT_STARTED
    outcome: RaceOutcome = RaceOutcome.ONGOING

    @classmethod
    def initial(cls, vehicle1: VehicleParams, vehicle2: VehicleParams) -> "RaceState":
        """State at the configured starting conditions."""
        return cls(vehicles=(VehicleState.from_params(vehicle1), VehicleState.from_params(vehicle2)))


class RaceIntegrator:
    """Advances both vehicles on a shared clock and decides the outcome.

    State machine per run: NOT_STARTED -> RUNNING -> FINISHED. The
    finished state is sticky; further advance() calls are no-ops.

    Usage:
        integrator = RaceIntegrator(params1, params2, RaceConfig(400.0, 60.0))
        integrator.begin()
        while integrator.phase is RacePhase.RUNNING:
            snapshot = integrator.advance()
            snapshot.release()
    """

    def __init__(
        self,
        vehicle1: VehicleParams,
        vehicle2: VehicleParams,
        race: RaceConfig,
        stepper: KinematicStepper | None = None,
        pool: SnapshotPool | None = None,
    ):
        """Initialize integrator.

        Args:
            vehicle1: Parameters of vehicle 1
            vehicle2: Parameters of vehicle 2
            race: Race configuration
            stepper: Kinematic stepper. Uses defaults if None.
            pool: Snapshot record pool. A private pool is created if None.
        """
        self.vehicle_params = (vehicle1, vehicle2)
        self.race = race
        self.stepper = stepper or KinematicStepper()
        self.pool = pool or SnapshotPool()
        self._state = RaceState.initial(vehicle1, vehicle2)

    @property
    def state(self) -> RaceState:
        """Current race state."""
        return self._state

    @property
    def phase(self) -> RacePhase:
        return self._state.phase

    @property
    def outcome(self) -> RaceOutcome:
        return self._state.outcome

    @property
    def time(self) -> float:
        """Current simulation time in seconds."""
        return self._state.time

    @property
    def vehicles(self) -> Tuple[VehicleState, VehicleState]:
        return self._state.vehicles

    def begin(self) -> None:
        """Start the run from the configured initial conditions."""
        if self._state.phase is not RacePhase.NOT_STARTED:
            raise RunnerStateError(f"Cannot begin race in phase {self._state.phase.value}")
        self._state = replace(
            RaceState.initial(*self.vehicle_params),
            phase=RacePhase.RUNNING,
        )

    def reset(self) -> None:
        """Return to the configured initial conditions, not started."""
        self._state = RaceState.initial(*self.vehicle_params)

    def advance_state(self, state: RaceState, dt: float | None = None) -> RaceState:
        """Compute the race state one tick after the given one.

        The step is fixed for a whole run, so simulation time is taken
        from the tick count rather than summed tick by tick.

        Args:
            state: State to advance
            dt: Time step (uses the stepper's fixed_dt if None)

        Returns:
            New race state
        """
        if state.phase is RacePhase.FINISHED:
            return state
        if state.phase is RacePhase.NOT_STARTED:
            raise RunnerStateError("Race has not started")

        dt = self.stepper.config.fixed_dt if dt is None else dt
        finish = self.race.race_distance
        t0 = state.time

        vehicles = (
            self.stepper.advance(state.vehicles[0], t0, dt, finish),
            self.stepper.advance(state.vehicles[1], t0, dt, finish),
        )
        frame = state.frame + 1
        time = frame * dt
        outcome = decide_outcome(
            (vehicles[0].position, vehicles[1].position), time, self.race
        )
        phase = RacePhase.FINISHED if outcome.is_terminal else RacePhase.RUNNING

        return RaceState(
            vehicles=vehicles,
            time=time,
            frame=frame,
            phase=phase,
            outcome=outcome,
        )

    def advance(self, dt: float | None = None) -> TickSnapshot | None:
        """Advance the race by one tick.

        Args:
            dt: Time step (uses the stepper's fixed_dt if None)

        Returns:
            Snapshot of the new state, owned by the caller, or None if the
            race had already finished
        """
        if self._state.phase is RacePhase.FINISHED:
            return None

        self._state = self.advance_state(self._state, dt)
        state = self._state

        if state.outcome.is_terminal:
            logger.info(
                f"Race finished at t={state.time:.3f}s: {state.outcome.value} "
                f"(x1={state.vehicles[0].position:.2f}m, x2={state.vehicles[1].position:.2f}m)"
            )

        return self.pool.emit(state.time, state.vehicles, state.outcome, state.frame)
