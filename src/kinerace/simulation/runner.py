"""
Simulation runner - Fixed-step scheduling and run control.

Provides:
- configure / start / pause / reset run control
- Fixed-step accumulator driven by any wall-clock callback
- Snapshot hand-off to a single consumer
- Finish notifications
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import threading
import time

from kinerace.errors import ConfigurationIncomplete, InvalidParameter, RunnerStateError
from kinerace.simulation.physics import KinematicStepper, PhysicsConfig
from kinerace.simulation.race import RaceConfig, RaceIntegrator, RaceOutcome, RacePhase
from kinerace.simulation.snapshot import SnapshotPool, TickSnapshot
from kinerace.vehicle.vehicle import DEFAULT_FRICTION_N, VehicleParams, VehicleState

logger = logging.getLogger(__name__)

SnapshotSink = Callable[[TickSnapshot], None]


@dataclass
class RunnerConfig:
    """Runner configuration."""
    # Time stepping
    fixed_dt: float = 1.0 / 60.0     # Physics time step (60 Hz)
    max_frame_time: float = 0.25     # Cap on elapsed time per callback
    max_substeps: int = 4            # Steps per callback at most

    # Snapshot arena
    snapshot_pool_size: int = 2


class RunStatus(Enum):
    """Run-control status."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class RaceResult:
    """Terminal notification of a run."""
    outcome: RaceOutcome
    time: float
    final: TickSnapshot  # detached copy, never needs releasing


class SimulationRunner:
    """Runs a two-vehicle race at a fixed time step.

    The runner does not own a clock loop. A driver calls tick() with
    the current wall-clock reading; elapsed time is accumulated and
    spent in whole fixed steps, so results do not depend on how often
    or how regularly the driver calls.

    Usage:
        runner = SimulationRunner()
        runner.configure(params1, params2, RaceConfig(400.0, math.inf))
        runner.connect(recorder)
        runner.start()
        while runner.is_running:
            runner.tick()
    """

    def __init__(
        self,
        config: RunnerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize runner.

        Args:
            config: Runner configuration. Uses defaults if None.
            clock: Wall-clock source in seconds, used when tick() gets no time
        """
        self.config = config or RunnerConfig()
        self._clock = clock

        self.pool = SnapshotPool(self.config.snapshot_pool_size)
        self.stepper = KinematicStepper(PhysicsConfig(fixed_dt=self.config.fixed_dt))

        self._vehicle_params: Tuple[VehicleParams, VehicleParams] = (
            VehicleParams(friction_force=DEFAULT_FRICTION_N[0]),
            VehicleParams(friction_force=DEFAULT_FRICTION_N[1]),
        )
        self._race = RaceConfig()
        self._integrator = self._build_integrator()

        self._status = RunStatus.IDLE
        # _lock guards run state; _delivery_lock keeps snapshots in step order
        self._lock = threading.RLock()
        self._delivery_lock = threading.RLock()

        # Accumulator
        self._accumulator: float = 0.0
        self._last_time: Optional[float] = None

        # Driver currently allowed to tick
        self._driver: Optional[object] = None

        # Consumers
        self._sink: Optional[SnapshotSink] = None
        self._finish_listeners: List[Callable[[RaceResult], None]] = []

    def _build_integrator(self) -> RaceIntegrator:
        return RaceIntegrator(
            self._vehicle_params[0],
            self._vehicle_params[1],
            self._race,
            stepper=self.stepper,
            pool=self.pool,
        )

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        """Check if the race is being advanced."""
        return self._status is RunStatus.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._status is RunStatus.PAUSED

    @property
    def time(self) -> float:
        """Current simulation time."""
        return self._integrator.time

    @property
    def outcome(self) -> RaceOutcome:
        return self._integrator.outcome

    @property
    def vehicles(self) -> Tuple[VehicleState, VehicleState]:
        """Current state of both vehicles."""
        return self._integrator.vehicles

    @property
    def race(self) -> RaceConfig:
        return self._race

    @property
    def vehicle_params(self) -> Tuple[VehicleParams, VehicleParams]:
        return self._vehicle_params

    @property
    def driver(self) -> Optional[object]:
        """Driver currently allowed to tick."""
        return self._driver

    def connect(self, sink: Optional[SnapshotSink]) -> None:
        """Set the consumer that takes ownership of every snapshot.

        Args:
            sink: Callable receiving snapshots, or None to discard them
        """
        with self._lock:
            self._sink = sink

    def add_finish_listener(self, callback: Callable[[RaceResult], None]) -> None:
        """Add callback called once when a run finishes.

        Args:
            callback: Function taking a RaceResult
        """
        self._finish_listeners.append(callback)

    def configure(
        self,
        vehicle1: VehicleParams,
        vehicle2: VehicleParams,
        race: RaceConfig,
    ) -> None:
        """Replace all parameters and reset derived state.

        Args:
            vehicle1: Parameters of vehicle 1
            vehicle2: Parameters of vehicle 2
            race: Race configuration

        Raises:
            RunnerStateError: If a run is in progress
            InvalidParameter: If any parameter is non-physical
        """
        with self._lock:
            if self._status is RunStatus.RUNNING:
                raise RunnerStateError("Cannot configure while running")

            vehicle1.validate()
            vehicle2.validate()
            race.validate()
            if race.race_distance is not None:
                for params in (vehicle1, vehicle2):
                    if params.initial_position > race.race_distance:
                        raise InvalidParameter(
                            "initial_position",
                            params.initial_position,
                            f"beyond race distance {race.race_distance}",
                        )

            self._vehicle_params = (vehicle1, vehicle2)
            self._race = race
            self._integrator = self._build_integrator()
            self._status = RunStatus.IDLE
            self._accumulator = 0.0
            self._last_time = None
            logger.debug(f"Configured race: {race}")

    def missing_fields(self) -> List[str]:
        """Names of required fields that are unset."""
        missing = self._race.missing_fields()
        for i, params in enumerate(self._vehicle_params, start=1):
            if not params.force_profile.is_set:
                missing.append(f"vehicle{i}.base_magnitude")
        return missing

    def start(self) -> None:
        """Start a run, or resume a paused one.

        Raises:
            ConfigurationIncomplete: If required fields are unset
            RunnerStateError: If the last run finished and was not reset
        """
        with self._lock:
            if self._status is RunStatus.RUNNING:
                return
            if self._status is RunStatus.FINISHED:
                raise RunnerStateError("Race finished; reset before starting again")
            if self._status is RunStatus.PAUSED:
                self._status = RunStatus.RUNNING
                self._last_time = None
                logger.info(f"Resumed at t={self.time:.3f}s")
                return

            missing = self.missing_fields()
            if missing:
                raise ConfigurationIncomplete(missing)

            self._integrator.reset()
            self._integrator.begin()
            self._accumulator = 0.0
            self._last_time = None
            self._status = RunStatus.RUNNING
            logger.info(
                f"Race started: distance={self._race.race_distance}m, "
                f"time_limit={self._race.race_time_limit}s"
            )

    def pause(self) -> None:
        """Halt stepping, keeping all state for resumption."""
        with self._lock:
            if self._status is RunStatus.RUNNING:
                self._status = RunStatus.PAUSED
                logger.info(f"Paused at t={self.time:.3f}s")

    def reset(self) -> None:
        """Halt stepping and return both vehicles to their initial state."""
        with self._lock:
            self._integrator.reset()
            self._status = RunStatus.IDLE
            self._accumulator = 0.0
            self._last_time = None
            logger.info("Race reset")

    def attach(self, driver: object) -> None:
        """Make a driver the only one whose ticks are honoured.

        Args:
            driver: Driver instance passed back in tick()
        """
        with self._lock:
            self._driver = driver
            self._last_time = None

    def detach(self, driver: object) -> None:
        """Stop honouring ticks from a driver.

        Args:
            driver: Driver to detach
        """
        with self._lock:
            if self._driver is driver:
                self._driver = None

    def resync(self) -> None:
        """Forget the last clock reading so stalled time is not replayed."""
        with self._lock:
            self._last_time = None

    def tick(self, now: float | None = None, driver: object | None = None) -> int:
        """Spend elapsed wall-clock time in fixed steps.

        While a driver is attached, only its ticks are honoured; a tick
        without a driver counts only when none is attached.

        Args:
            now: Current wall-clock time in seconds (reads the clock if None)
            driver: Calling driver; ignored unless it is the attached one

        Returns:
            Number of steps taken
        """
        with self._lock:
            if driver is not self._driver or self._status is not RunStatus.RUNNING:
                return 0

            now = self._clock() if now is None else now
            if self._last_time is None:
                self._last_time = now
                return 0

            frame_time = min(max(0.0, now - self._last_time), self.config.max_frame_time)
            self._last_time = now
            self._accumulator += frame_time

        dt = self.config.fixed_dt
        steps = 0
        while steps < self.config.max_substeps:
            with self._delivery_lock:
                with self._lock:
                    if (
                        driver is not self._driver
                        or self._status is not RunStatus.RUNNING
                        or self._accumulator < dt
                    ):
                        break
                    delivery = self._advance()
                    self._accumulator -= dt
                steps += 1
                self._deliver(*delivery)

        return steps

    def step(self) -> RaceOutcome:
        """Advance exactly one fixed step, ignoring the wall clock.

        Returns:
            Outcome after the step

        Raises:
            RunnerStateError: If the runner is not running or a driver
                is attached
        """
        with self._delivery_lock:
            with self._lock:
                if self._status is not RunStatus.RUNNING:
                    raise RunnerStateError(f"Cannot step while {self._status.value}")
                if self._driver is not None:
                    raise RunnerStateError("Cannot step while a driver is attached")
                delivery = self._advance()
                outcome = self.outcome
            self._deliver(*delivery)
            return outcome

    def run_until_finished(self, max_steps: int = 1_000_000) -> RaceOutcome:
        """Step until the race ends or max_steps is reached.

        Args:
            max_steps: Maximum steps to take

        Returns:
            Outcome (ONGOING if max_steps ran out first)
        """
        steps = 0
        while self.is_running and steps < max_steps:
            self.step()
            steps += 1
        return self.outcome

    def _advance(self) -> Tuple[Optional[TickSnapshot], Optional[RaceResult]]:
        # Caller holds self._lock
        snapshot = self._integrator.advance(self.config.fixed_dt)
        if snapshot is None:
            return None, None

        result = None
        if self._integrator.phase is RacePhase.FINISHED:
            self._status = RunStatus.FINISHED
            result = RaceResult(snapshot.outcome, snapshot.time, snapshot.detach())
        return snapshot, result

    def _deliver(self, snapshot: Optional[TickSnapshot], result: Optional[RaceResult]) -> None:
        # Called without self._lock held
        if snapshot is None:
            return
        sink = self._sink
        if sink is not None:
            sink(snapshot)
        else:
            snapshot.release()

        if result is not None:
            for callback in self._finish_listeners:
                callback(result)

    def get_state(self) -> Dict[str, Any]:
        """Get complete runner state.

        Returns:
            Dictionary containing runner state
        """
        return {
            "config": {
                "fixed_dt": self.config.fixed_dt,
                "max_frame_time": self.config.max_frame_time,
                "max_substeps": self.config.max_substeps,
            },
            "status": self._status.value,
            "time": self.time,
            "outcome": self.outcome.value,
            "race": {
                "distance": self._race.race_distance,
                "time_limit": self._race.race_time_limit,
            },
            "vehicles": [v.get_state() for v in self.vehicles],
            "pool": {
                "allocated": self.pool.allocated,
                "free": self.pool.free_count,
                "outstanding": self.pool.outstanding_count,
            },
        }
