"""Tests for scheduling drivers and the stall watchdog."""

import math
import threading
import time

import numpy as np
import pytest

from kinerace.errors import DriverStall
from kinerace.simulation.drivers import (
    BackgroundDriver,
    DriverSupervisor,
    ForegroundDriver,
    SchedulerDriver,
    SupervisorConfig,
)
from kinerace.simulation.race import RaceConfig, RaceOutcome
from kinerace.simulation.runner import SimulationRunner

from helpers import make_params

FRAME = 1.0 / 60.0


class SilentDriver(SchedulerDriver):
    """Driver that starts but never ticks."""

    name = "silent"

    def _on_start(self):
        pass

    def _on_stop(self):
        pass


class Collector:
    def __init__(self):
        self.arrays = []

    def __call__(self, snapshot):
        self.arrays.append(snapshot.as_array().copy())
        snapshot.release()


def _configure(runner, distance=20.0):
    runner.configure(
        make_params(900.0), make_params(800.0, friction=80.0), RaceConfig(distance, math.inf)
    )


class TestForegroundDriver:
    """Test the per-frame driver."""

    def test_frames_advance_runner(self, runner, clock):
        """Each frame spends its elapsed time."""
        driver = ForegroundDriver(runner, clock)
        driver.start()
        runner.start()

        assert driver.frame() == 0
        assert driver.frame(clock.advance(0.06)) == 3
        assert driver.last_tick_at == clock.now

    def test_inactive_driver_does_nothing(self, runner, clock):
        """Frames before start or after stop are ignored."""
        driver = ForegroundDriver(runner, clock)
        runner.start()
        assert driver.frame(clock.advance(0.1)) == 0

        driver.start()
        driver.frame()
        driver.stop()
        assert driver.frame(clock.advance(0.1)) == 0
        assert runner.driver is None

    def test_starting_a_driver_takes_over(self, runner, clock):
        """Starting a second driver detaches the first."""
        first = ForegroundDriver(runner, clock)
        second = ForegroundDriver(runner, clock)
        runner.start()
        first.start()
        first.frame()
        second.start()

        assert runner.driver is second
        assert first.frame(clock.advance(0.1)) == 0


class TestBackgroundDriver:
    """Test the threaded driver."""

    def test_runs_race_to_completion(self):
        """The background thread drives a short race to its finish."""
        runner = SimulationRunner()
        runner.configure(
            make_params(200.0, mass=1.0, friction=0.0),
            make_params(100.0, mass=1.0, friction=0.0),
            RaceConfig(2.0, math.inf),
        )
        driver = BackgroundDriver(runner, interval=0.001)
        runner.start()
        driver.start()

        deadline = time.monotonic() + 5.0
        while runner.is_running and time.monotonic() < deadline:
            time.sleep(0.01)
        driver.stop()

        assert runner.outcome is RaceOutcome.VEHICLE1_WINS
        assert runner.vehicles[0].position == 2.0
        assert not driver.is_active


class TestDriverSupervisor:
    """Test stall detection and fallback."""

    def test_no_fallback_while_primary_ticks(self, runner, clock):
        """A ticking primary is left alone."""
        primary = ForegroundDriver(runner, clock)
        supervisor = DriverSupervisor(runner, primary=primary, clock=clock)
        runner.start()
        supervisor.start()

        for _ in range(10):
            primary.frame(clock.advance(0.1))
            assert not supervisor.check()
        assert supervisor.active is primary

    def test_fallback_after_stall(self, runner, clock):
        """Silence beyond the timeout hands over to the fallback driver."""
        stalls = []
        supervisor = DriverSupervisor(
            runner,
            SupervisorConfig(stall_timeout=0.6),
            primary=SilentDriver(runner, clock),
            clock=clock,
        )
        supervisor.add_stall_listener(stalls.append)
        runner.start()
        supervisor.start()

        clock.advance(0.5)
        assert not supervisor.check()
        clock.advance(0.2)
        assert supervisor.check()

        assert supervisor.fell_back
        assert runner.driver is supervisor.fallback
        assert not supervisor.primary.is_active
        assert len(stalls) == 1
        assert isinstance(stalls[0], DriverStall)
        assert stalls[0].silence == pytest.approx(0.7)
        assert supervisor.stalls == stalls

        supervisor.frame()
        assert supervisor.frame(clock.advance(0.06)) == 3

    def test_no_check_when_not_running(self, runner, clock):
        """A paused or idle race never counts as a stall."""
        supervisor = DriverSupervisor(runner, primary=SilentDriver(runner, clock), clock=clock)
        supervisor.start()
        clock.advance(10.0)
        assert not supervisor.check()

        runner.start()
        runner.pause()
        clock.advance(10.0)
        assert not supervisor.check()
        assert supervisor.active is supervisor.primary

    def test_stale_primary_ignored_after_fallback(self, runner, clock):
        """A primary that wakes up after fallback cannot advance the race."""
        primary = ForegroundDriver(runner, clock)
        supervisor = DriverSupervisor(runner, primary=primary, clock=clock)
        runner.start()
        supervisor.start()
        primary.frame()
        clock.advance(1.0)
        supervisor.check()

        time_before = runner.time
        assert runner.tick(clock.advance(0.1), driver=primary) == 0
        assert runner.time == time_before

    def test_handover_is_continuous(self, clock):
        """A race that falls back mid-run matches an uninterrupted one."""
        supervised = SimulationRunner(clock=clock)
        _configure(supervised)
        collected = Collector()
        supervised.connect(collected)

        primary = ForegroundDriver(supervised, clock)
        supervisor = DriverSupervisor(supervised, primary=primary, clock=clock)
        supervised.start()
        supervisor.start()

        primary.frame()
        for _ in range(30):
            primary.frame(clock.advance(FRAME * 1.01))
        position_before = supervised.vehicles[0].position
        velocity_before = supervised.vehicles[0].velocity

        clock.advance(2.0)
        assert supervisor.check()

        # first fallback frame only resynchronises the clock
        assert supervisor.frame() == 0
        assert supervised.vehicles[0].position == position_before
        assert supervised.vehicles[0].velocity == velocity_before

        while supervised.is_running:
            supervisor.frame(clock.advance(FRAME * 1.01))

        reference = SimulationRunner(clock=clock)
        _configure(reference)
        expected = Collector()
        reference.connect(expected)
        reference.start()
        reference.run_until_finished()

        assert supervised.outcome is reference.outcome
        assert len(collected.arrays) == len(expected.arrays)
        np.testing.assert_array_equal(np.array(collected.arrays), np.array(expected.arrays))

    def test_stop_stops_active_driver(self, runner, clock):
        """Stopping the supervisor detaches whichever driver is active."""
        supervisor = DriverSupervisor(runner, primary=SilentDriver(runner, clock), clock=clock)
        supervisor.start()
        supervisor.stop()
        assert supervisor.active is None
        assert runner.driver is None

    def test_watch_thread_detects_stall(self, runner):
        """The watch thread falls back on its own."""
        supervisor = DriverSupervisor(
            runner,
            SupervisorConfig(stall_timeout=0.05, check_interval=0.01),
            primary=SilentDriver(runner),
        )
        runner.start()
        supervisor.start()
        supervisor.watch()

        deadline = time.monotonic() + 5.0
        while not supervisor.fell_back and time.monotonic() < deadline:
            time.sleep(0.01)
        supervisor.stop()

        assert len(supervisor.stalls) == 1

    def test_slow_sink_does_not_block_fallback(self, runner, clock):
        """A consumer stuck on a snapshot does not hold up the watchdog."""
        entered, proceed = threading.Event(), threading.Event()

        def sink(snapshot):
            entered.set()
            proceed.wait(5.0)
            snapshot.release()

        runner.connect(sink)
        primary = ForegroundDriver(runner, clock)
        supervisor = DriverSupervisor(runner, primary=primary, clock=clock)
        runner.start()
        supervisor.start()
        primary.frame(clock.now)

        ticking = threading.Thread(
            target=primary.frame, args=(clock.advance(FRAME * 1.5),), daemon=True
        )
        ticking.start()
        assert entered.wait(5.0)

        clock.advance(1.0)
        checked = threading.Event()

        def run_check():
            supervisor.check()
            checked.set()

        threading.Thread(target=run_check, daemon=True).start()
        try:
            assert checked.wait(2.0)
            assert supervisor.fell_back
            assert runner.driver is supervisor.fallback
        finally:
            proceed.set()
            ticking.join(5.0)
        assert not ticking.is_alive()
