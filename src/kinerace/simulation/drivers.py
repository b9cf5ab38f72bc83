"""
Drivers - Scheduling hosts that call the runner's fixed-step tick.

Provides:
- BackgroundDriver: free-running scheduler on its own thread
- ForegroundDriver: per-frame callback driven by the host's render loop
- DriverSupervisor: watchdog that falls back to the foreground driver
  when the background one stalls
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional
import logging
import threading
import time

from kinerace.errors import DriverStall
from kinerace.simulation.runner import SimulationRunner

logger = logging.getLogger(__name__)


class SchedulerDriver(ABC):
    """Something that can drive fixed steps of a runner.

    Only the driver attached to the runner advances it; a driver that
    has been stopped may keep calling but its ticks are ignored.
    """

    name = "driver"

    def __init__(
        self,
        runner: SimulationRunner,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize driver.

        Args:
            runner: Runner to drive
            clock: Wall-clock source in seconds
        """
        self.runner = runner
        self._clock = clock
        self._active = False
        self.last_tick_at: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Attach to the runner and begin scheduling."""
        if self._active:
            return
        self._active = True
        self.last_tick_at = self._clock()
        self.runner.attach(self)
        self._on_start()
        logger.info(f"{self.name} driver started")

    def stop(self) -> None:
        """Detach from the runner and stop scheduling."""
        if not self._active:
            return
        self._active = False
        self.runner.detach(self)
        self._on_stop()
        logger.info(f"{self.name} driver stopped")

    def _tick(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        self.last_tick_at = now
        return self.runner.tick(now, driver=self)

    @abstractmethod
    def _on_start(self) -> None:
        ...

    @abstractmethod
    def _on_stop(self) -> None:
        ...


class BackgroundDriver(SchedulerDriver):
    """Free-running scheduler on a daemon thread."""

    name = "background"

    def __init__(
        self,
        runner: SimulationRunner,
        clock: Callable[[], float] = time.monotonic,
        interval: float = 0.004,
    ):
        """Initialize background driver.

        Args:
            runner: Runner to drive
            clock: Wall-clock source in seconds
            interval: Sleep between scheduling callbacks in seconds
        """
        super().__init__(runner, clock)
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _on_start(self) -> None:
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="kinerace-background-driver",
            daemon=True,
        )
        self._thread.start()

    def _on_stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        # A stalled thread is abandoned rather than waited for
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(0.05, 10 * self.interval))

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self._tick()
            stop_event.wait(self.interval)


class ForegroundDriver(SchedulerDriver):
    """Driver advanced by the host's per-frame callback.

    Usage:
        driver = ForegroundDriver(runner)
        driver.start()
        # in the render loop
        driver.frame()
    """

    name = "foreground"

    def _on_start(self) -> None:
        pass

    def _on_stop(self) -> None:
        pass

    def frame(self, now: float | None = None) -> int:
        """Per-frame callback.

        Args:
            now: Frame timestamp in seconds (reads the clock if None)

        Returns:
            Number of steps taken
        """
        if not self._active:
            return 0
        return self._tick(now)


@dataclass
class SupervisorConfig:
    """Watchdog configuration."""
    stall_timeout: float = 0.6         # Silence that counts as a stall
    check_interval: float = 0.3        # Period of watch() checks
    background_interval: float = 0.004 # Background driver sleep


class DriverSupervisor:
    """Watchdog over a primary (background) and fallback (foreground) driver.

    Runs the primary driver until it stays silent longer than the stall
    timeout while a race is running, then stops listening to it and
    hands over to the fallback driver. The handover is cold: the runner
    state is untouched and the clock is resynchronised, so the race
    continues from the last completed step.
    """

    def __init__(
        self,
        runner: SimulationRunner,
        config: SupervisorConfig | None = None,
        primary: SchedulerDriver | None = None,
        fallback: ForegroundDriver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize supervisor.

        Args:
            runner: Runner being driven
            config: Watchdog configuration. Uses defaults if None.
            primary: Preferred driver (BackgroundDriver if None)
            fallback: Driver used after a stall (ForegroundDriver if None)
            clock: Wall-clock source in seconds
        """
        self.config = config or SupervisorConfig()
        self.runner = runner
        self._clock = clock
        self.primary = primary or BackgroundDriver(
            runner, clock, interval=self.config.background_interval
        )
        self.fallback = fallback or ForegroundDriver(runner, clock)

        self._active: Optional[SchedulerDriver] = None
        self._stalls: List[DriverStall] = []
        self._stall_listeners: List[Callable[[DriverStall], None]] = []
        self._lock = threading.Lock()

        self._watch_stop = threading.Event()
        self._watch_thread: Optional[threading.Thread] = None

    @property
    def active(self) -> Optional[SchedulerDriver]:
        """Driver currently advancing the runner."""
        return self._active

    @property
    def fell_back(self) -> bool:
        """Whether the fallback driver has taken over."""
        return self._active is self.fallback

    @property
    def stalls(self) -> List[DriverStall]:
        """Stalls detected so far."""
        return list(self._stalls)

    def add_stall_listener(self, callback: Callable[[DriverStall], None]) -> None:
        """Add callback called when the primary driver stalls.

        Args:
            callback: Function taking a DriverStall
        """
        self._stall_listeners.append(callback)

    def start(self) -> None:
        """Start the primary driver."""
        with self._lock:
            if self._active is not None:
                return
            self.primary.start()
            self._active = self.primary

    def stop(self) -> None:
        """Stop the active driver and the watch thread."""
        self._watch_stop.set()
        thread = self._watch_thread
        self._watch_thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2 * self.config.check_interval)
        with self._lock:
            if self._active is not None:
                self._active.stop()
                self._active = None

    def frame(self, now: float | None = None) -> int:
        """Per-frame callback; advances the race only after fallback.

        Args:
            now: Frame timestamp in seconds

        Returns:
            Number of steps taken
        """
        if self._active is self.fallback:
            return self.fallback.frame(now)
        return 0

    def check(self, now: float | None = None) -> bool:
        """Check the primary driver and fall back if it has stalled.

        Args:
            now: Current wall-clock time (reads the clock if None)

        Returns:
            True if a fallback happened
        """
        with self._lock:
            if self._active is not self.primary or not self.runner.is_running:
                return False

            now = self._clock() if now is None else now
            last = self.primary.last_tick_at
            silence = now - last if last is not None else float("inf")
            if silence <= self.config.stall_timeout:
                return False

            stall = DriverStall(self.primary.name, silence, self.config.stall_timeout)
            logger.warning(f"{stall}; falling back to {self.fallback.name} driver")

            self.primary.stop()
            self.runner.resync()
            self.fallback.start()
            self._active = self.fallback
            self._stalls.append(stall)

        for callback in self._stall_listeners:
            callback(stall)
        return True

    def watch(self) -> None:
        """Run check() periodically on a daemon thread."""
        if self._watch_thread is not None:
            return
        self._watch_stop = threading.Event()
        self._watch_thread = threading.Thread(
            target=self._watch_loop,
            args=(self._watch_stop,),
            name="kinerace-watchdog",
            daemon=True,
        )
        self._watch_thread.start()

    def _watch_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.config.check_interval):
            self.check()
