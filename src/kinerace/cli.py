"""
Command line race runner.

Usage:
    kinerace --force1 600 --force2 550 --distance 200 --time-limit inf
    kinerace --vehicle1 truck --force1 2500 --profile2 impulse --force2 600 \
        --distance 400 --time-limit 60 --realtime
"""

import argparse
from dataclasses import replace
import logging
import math
import sys
import time
from typing import List, Optional

from kinerace.errors import ConfigurationIncomplete, InvalidParameter
from kinerace.simulation.drivers import DriverSupervisor
from kinerace.simulation.race import RaceConfig
from kinerace.simulation.runner import RaceResult, SimulationRunner
from kinerace.simulation.snapshot import TickSnapshot
from kinerace.telemetry.recorder import TelemetryRecorder
from kinerace.telemetry.throttle import SnapshotThrottle
from kinerace.vehicle.forces import ForceKind
from kinerace.vehicle.vehicle import DEFAULT_FRICTION_N, VehicleParams, VehicleType

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def _time_limit(value: str) -> float:
    if value.lower() in ("inf", "infinite", "infinity"):
        return math.inf
    return float(value)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Two-vehicle work-energy race simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    vehicle_types = [v.value for v in VehicleType]
    kinds = [k.value for k in ForceKind]
    for i in (1, 2):
        group = parser.add_argument_group(f"Vehicle {i}")
        group.add_argument(
            f"--vehicle{i}",
            choices=vehicle_types,
            default=VehicleType.CAR.value,
            help="Body preset (sets the mass unless --mass is given)",
        )
        group.add_argument(f"--mass{i}", type=float, default=None, help="Mass in kg")
        group.add_argument(f"--force{i}", type=float, default=None, help="Base applied force in N")
        group.add_argument(
            f"--profile{i}",
            choices=kinds,
            default=ForceKind.CONSTANT.value,
            help="Force profile",
        )
        group.add_argument(
            f"--friction{i}",
            type=float,
            default=DEFAULT_FRICTION_N[i - 1],
            help="Opposing friction force in N",
        )
        group.add_argument(f"--x0-{i}", dest=f"x0_{i}", type=float, default=0.0, help="Initial position in m")
        group.add_argument(f"--v0-{i}", dest=f"v0_{i}", type=float, default=0.0, help="Initial velocity in m/s")

    parser.add_argument("--distance", type=float, default=None, help="Race distance in m")
    parser.add_argument(
        "--time-limit",
        type=_time_limit,
        default=None,
        help="Race time limit in s, or 'inf'",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Run against the wall clock with the supervised drivers",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_params(args: argparse.Namespace, index: int) -> VehicleParams:
    """Build vehicle parameters from parsed arguments."""
    params = VehicleParams.from_preset(
        getattr(args, f"vehicle{index}"),
        force=getattr(args, f"force{index}"),
        kind=getattr(args, f"profile{index}"),
        friction_force=getattr(args, f"friction{index}"),
        initial_position=getattr(args, f"x0_{index}"),
        initial_velocity=getattr(args, f"v0_{index}"),
    )
    mass = getattr(args, f"mass{index}")
    if mass is not None:
        params = replace(params, mass=mass)
    return params


def _print_progress(snapshot: TickSnapshot) -> None:
    v1, v2 = snapshot.vehicle1, snapshot.vehicle2
    print(
        f"   t={snapshot.time:7.2f}s | "
        f"V1 x={v1.position:8.2f}m v={v1.velocity:6.2f}m/s W={v1.work:10.1f}J | "
        f"V2 x={v2.position:8.2f}m v={v2.velocity:6.2f}m/s W={v2.work:10.1f}J"
    )


def _print_result(result: RaceResult) -> None:
    print("\n" + "=" * 60)
    print(f"Outcome: {result.outcome.value} at t={result.time:.3f}s")
    for i in (1, 2):
        reading = result.final.vehicle(i - 1)
        print(
            f"   Vehicle {i}: x={reading.position:.2f}m v={reading.velocity:.2f}m/s "
            f"KE={reading.kinetic_energy:.1f}J W={reading.work:.1f}J "
            f"v_max={reading.max_velocity:.2f}m/s"
        )
    print("=" * 60)


def run_headless(runner: SimulationRunner, recorder: TelemetryRecorder) -> None:
    """Fast-forward the race without a wall clock, printing once per second."""
    steps_per_report = max(1, round(1.0 / runner.config.fixed_dt))

    def sink(snapshot: TickSnapshot) -> None:
        if snapshot.frame % steps_per_report == 0 or snapshot.is_terminal:
            _print_progress(snapshot)
        recorder(snapshot)

    runner.connect(sink)
    runner.start()
    runner.run_until_finished()


def run_realtime(runner: SimulationRunner, recorder: TelemetryRecorder) -> None:
    """Run the race against the wall clock under the driver watchdog."""

    def display(snapshot: TickSnapshot) -> None:
        _print_progress(snapshot)
        recorder(snapshot)

    runner.connect(SnapshotThrottle(display))
    supervisor = DriverSupervisor(runner)
    frame_period = runner.config.fixed_dt

    runner.start()
    supervisor.start()
    supervisor.watch()
    try:
        while runner.is_running:
            supervisor.frame()
            time.sleep(frame_period)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        runner.pause()
    finally:
        supervisor.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    runner = SimulationRunner()
    recorder = TelemetryRecorder()
    runner.add_finish_listener(_print_result)

    try:
        runner.configure(
            build_params(args, 1),
            build_params(args, 2),
            RaceConfig(args.distance, args.time_limit),
        )
        if args.realtime:
            run_realtime(runner, recorder)
        else:
            run_headless(runner, recorder)
    except (ConfigurationIncomplete, InvalidParameter) as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
