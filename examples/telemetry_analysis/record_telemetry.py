#!/usr/bin/env python3
"""
Telemetry Analysis Example

This example demonstrates how to:
1. Connect a telemetry recorder to the runner
2. Drive the race from a per-frame callback
3. Read channel statistics
4. Compare work done against kinetic energy

Run with: python record_telemetry.py
"""

import time

from kinerace import RaceConfig, SimulationRunner, VehicleParams
from kinerace.simulation import ForegroundDriver
from kinerace.telemetry import RecorderConfig, TelemetryRecorder
from kinerace.vehicle import ForceKind, VehicleType


def main():
    print("=" * 60)
    print("Kinerace Telemetry Recording Example")
    print("=" * 60)

    # Step 1: Setup race
    print("\n1. Setting up race...")
    runner = SimulationRunner()
    runner.configure(
        VehicleParams.from_preset(VehicleType.CAR, force=900.0, kind=ForceKind.INCREASING),
        VehicleParams.from_preset(VehicleType.TRUCK, force=2600.0, kind=ForceKind.DECREASING,
                                  friction_force=80.0),
        RaceConfig(race_distance=60.0, race_time_limit=30.0),
    )

    # Step 2: Connect recorder
    print("\n2. Connecting telemetry recorder...")
    recorder = TelemetryRecorder(RecorderConfig(history_size=100))
    runner.connect(recorder)
    print(f"   History: {recorder.config.history_size} samples per channel")

    # Step 3: Drive from a frame loop
    print("\n3. Running race at 60 frames per second...")
    driver = ForegroundDriver(runner)
    runner.start()
    driver.start()
    while runner.is_running:
        driver.frame()
        time.sleep(1.0 / 60.0)
    driver.stop()
    print(f"   Recorded {recorder.sample_count} snapshots, outcome {recorder.outcome}")

    # Step 4: Channel statistics
    print("\n4. Telemetry Statistics:")
    for vehicle in (1, 2):
        velocity = recorder.get_channel(vehicle, "velocity")
        acceleration = recorder.get_channel(vehicle, "acceleration")
        print(f"\n   Vehicle {vehicle}:")
        print(f"     Velocity min/mean/max: {velocity.min_value:.2f} / "
              f"{velocity.mean:.2f} / {velocity.max_value:.2f} m/s")
        print(f"     Acceleration last: {acceleration.last_value:.3f} m/s^2")

        # Step 5: Work against kinetic energy
        current = recorder.get_current_values(vehicle)
        print(f"     Work: {current['work']:.0f} J, KE: {current['kinetic_energy']:.0f} J")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
