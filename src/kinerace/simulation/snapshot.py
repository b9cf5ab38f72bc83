"""
Tick snapshots - Fixed-layout records handed from the physics driver
to the presentation layer.

Provides:
- Flat float64 record layout shared by producers and consumers
- Read-only snapshot views with explicit release
- A small arena of reusable records
"""

from dataclasses import dataclass, asdict
from typing import TYPE_CHECKING, Dict, List, Sequence, Any
import threading
import numpy as np

if TYPE_CHECKING:
    from kinerace.simulation.race import RaceOutcome
    from kinerace.vehicle.vehicle import VehicleState


# Record layout (15 doubles):
# [t, v1Pos, v1Vel, v1Acc, v1NetForce, v1KE, v1Work,
#     v2Pos, v2Vel, v2Acc, v2NetForce, v2KE, v2Work, v1MaxVel, v2MaxVel]
TIME_INDEX = 0
VEHICLE_FIELDS = ("position", "velocity", "acceleration", "net_force", "kinetic_energy", "work")
VEHICLE_STRIDE = len(VEHICLE_FIELDS)
MAX_VELOCITY_OFFSET = 1 + 2 * VEHICLE_STRIDE
RECORD_LENGTH = MAX_VELOCITY_OFFSET + 2


@dataclass(frozen=True)
class VehicleReading:
    """Reported state of one vehicle at a tick."""
    position: float
    velocity: float
    acceleration: float
    net_force: float
    kinetic_energy: float
    work: float
    max_velocity: float


class TickSnapshot:
    """Immutable view of both vehicles at one simulation time.
    
    Snapshots taken from a pool must be released once consumed so the
    record can be reused. Reading a released snapshot is an error.
    """

    __slots__ = ("_data", "_pool", "_released", "outcome", "frame")

    def __init__(
        self,
        data: np.ndarray,
        outcome: "RaceOutcome | None" = None,
        frame: int = 0,
        pool: "SnapshotPool | None" = None,
    ):
        data.flags.writeable = False
        self._data = data
        self._pool = pool
        self._released = False
        self.outcome = outcome
        self.frame = frame

    def _record(self) -> np.ndarray:
        if self._released:
            raise RuntimeError("Snapshot already released")
        return self._data

    @property
    def time(self) -> float:
        """Simulation time in seconds."""
        return float(self._record()[TIME_INDEX])

    @property
    def is_terminal(self) -> bool:
        """Whether this is the final snapshot of a finished run."""
        return self.outcome is not None and self.outcome.is_terminal

    @property
    def released(self) -> bool:
        return self._released

    def vehicle(self, index: int) -> VehicleReading:
        """Get the reading for a vehicle.
        
        Args:
            index: 0 for vehicle 1, 1 for vehicle 2
            
        Returns:
            Vehicle reading
        """
        if index not in (0, 1):
            raise IndexError(f"Vehicle index out of range: {index}")
        data = self._record()
        base = 1 + index * VEHICLE_STRIDE
        values = [float(v) for v in data[base:base + VEHICLE_STRIDE]]
        return VehicleReading(*values, max_velocity=float(data[MAX_VELOCITY_OFFSET + index]))

    @property
    def vehicle1(self) -> VehicleReading:
        return self.vehicle(0)

    @property
    def vehicle2(self) -> VehicleReading:
        return self.vehicle(1)

    def as_array(self) -> np.ndarray:
        """Read-only view of the flat record."""
        return self._record()

    def detach(self) -> "TickSnapshot":
        """Copy into an unpooled snapshot that never needs releasing."""
        return TickSnapshot(self._record().copy(), self.outcome, self.frame)

    def release(self) -> None:
        """Return the record to its pool."""
        if self._released:
            raise RuntimeError("Snapshot already released")
        self._released = True
        if self._pool is not None:
            self._pool.release(self._data)

    def to_dict(self) -> Dict[str, Any]:
        """Get snapshot contents as a dictionary."""
        return {
            "time": self.time,
            "frame": self.frame,
            "outcome": self.outcome.value if self.outcome is not None else None,
            "vehicles": [asdict(self.vehicle(i)) for i in (0, 1)],
        }


def fill_record(
    record: np.ndarray,
    time: float,
    vehicles: Sequence["VehicleState"],
) -> np.ndarray:
    """Write the reportable state of both vehicles into a record.
    
    Args:
        record: Writable float64 array of RECORD_LENGTH
        time: Simulation time
        vehicles: The two vehicle states
        
    Returns:
        The filled record
    """
    record[TIME_INDEX] = time
    for i, state in enumerate(vehicles):
        base = 1 + i * VEHICLE_STRIDE
        record[base:base + VEHICLE_STRIDE] = (
            state.position,
            state.velocity,
            state.acceleration,
            state.net_force,
            state.kinetic_energy,
            state.cumulative_work,
        )
        record[MAX_VELOCITY_OFFSET + i] = state.max_velocity_observed
    return record


class SnapshotPool:
    """Arena of reusable snapshot records.
    
    A record handed out is owned by the consumer until it is released;
    the pool never reuses a record that has not come back. When the
    free list is empty a new record is allocated.
    """

    def __init__(self, size: int = 2):
        """Initialize pool.
        
        Args:
            size: Number of records to pre-allocate
        """
        self._lock = threading.Lock()
        self._free: List[np.ndarray] = [self._allocate() for _ in range(size)]
        self._outstanding: Dict[int, np.ndarray] = {}
        self._allocated = size

    @staticmethod
    def _allocate() -> np.ndarray:
        return np.zeros(RECORD_LENGTH, dtype=np.float64)

    @property
    def free_count(self) -> int:
        """Records available for reuse."""
        with self._lock:
            return len(self._free)

    @property
    def outstanding_count(self) -> int:
        """Records currently owned by consumers."""
        with self._lock:
            return len(self._outstanding)

    @property
    def allocated(self) -> int:
        """Total records ever allocated by this pool."""
        return self._allocated

    def acquire(self) -> np.ndarray:
        """Take a writable record from the pool.
        
        Returns:
            Writable float64 record
        """
        with self._lock:
            if self._free:
                record = self._free.pop()
            else:
                record = self._allocate()
                self._allocated += 1
            self._outstanding[id(record)] = record
        record.flags.writeable = True
        return record

    def release(self, record: np.ndarray) -> None:
        """Return a record for reuse.
        
        Args:
            record: Record previously obtained from acquire()
            
        Raises:
            ValueError: If the record is not outstanding from this pool
        """
        with self._lock:
            if self._outstanding.pop(id(record), None) is None:
                raise ValueError("Record not owned by this pool or already released")
            self._free.append(record)

    def emit(
        self,
        time: float,
        vehicles: Sequence["VehicleState"],
        outcome: "RaceOutcome | None" = None,
        frame: int = 0,
    ) -> TickSnapshot:
        """Fill a pooled record and wrap it as a snapshot.
        
        Args:
            time: Simulation time
            vehicles: The two vehicle states
            outcome: Race outcome after this tick
            frame: Tick counter
            
        Returns:
            Snapshot owned by the caller
        """
        record = fill_record(self.acquire(), time, vehicles)
        return TickSnapshot(record, outcome, frame, pool=self)
