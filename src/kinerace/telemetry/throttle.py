"""
Snapshot throttle - Coalesces the tick stream to a display rate.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import threading
import time

from kinerace.simulation.snapshot import TickSnapshot


@dataclass
class ThrottleConfig:
    """Throttle configuration."""
    interval: float = 0.1  # Seconds between forwarded snapshots (10 Hz)


class SnapshotThrottle:
    """Forwards at most one snapshot per interval to a downstream sink.
    
    Dropped snapshots are released back to their pool. The terminal
    snapshot of a finished run is always forwarded.
    """

    def __init__(
        self,
        downstream: Callable[[TickSnapshot], None],
        config: ThrottleConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize throttle.
        
        Args:
            downstream: Sink that takes ownership of forwarded snapshots
            config: Throttle configuration
            clock: Wall-clock source in seconds
        """
        self.config = config or ThrottleConfig()
        self.downstream = downstream
        self._clock = clock
        self._lock = threading.Lock()
        self._last_forward: Optional[float] = None
        self.forwarded = 0
        self.dropped = 0

    def __call__(self, snapshot: TickSnapshot) -> None:
        now = self._clock()
        with self._lock:
            due = (
                self._last_forward is None
                or now - self._last_forward >= self.config.interval
            )
            if not (due or snapshot.is_terminal):
                self.dropped += 1
                snapshot.release()
                return
            self._last_forward = now
            self.forwarded += 1
        self.downstream(snapshot)

    def reset(self) -> None:
        """Forget the last forward time so the next snapshot passes."""
        with self._lock:
            self._last_forward = None
