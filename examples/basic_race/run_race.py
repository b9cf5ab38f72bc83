#!/usr/bin/env python3
"""
Basic Race Example

This example demonstrates how to:
1. Build two vehicles from presets
2. Configure a race and start the runner
3. Step the race at its fixed time step
4. Read the final result

Run with: python run_race.py
"""

import math

from kinerace import RaceConfig, SimulationRunner, VehicleParams
from kinerace.vehicle import ForceKind, VehicleType


def main():
    print("=" * 60)
    print("Kinerace Basic Race Example")
    print("=" * 60)

    # Step 1: Build vehicles
    print("\n1. Building vehicles...")
    car = VehicleParams.from_preset(VehicleType.CAR, force=1200.0)
    motorcycle = VehicleParams.from_preset(
        VehicleType.MOTORCYCLE,
        force=450.0,
        kind=ForceKind.IMPULSE,
        friction_force=80.0,
    )
    print(f"   Vehicle 1: car, {car.mass:.0f} kg, {car.force_profile.base_magnitude:.0f} N constant")
    print(f"   Vehicle 2: motorcycle, {motorcycle.mass:.0f} kg, "
          f"{motorcycle.force_profile.base_magnitude:.0f} N impulse")

    # Step 2: Configure the race
    print("\n2. Configuring race...")
    runner = SimulationRunner()
    runner.configure(car, motorcycle, RaceConfig(race_distance=400.0, race_time_limit=math.inf))
    print(f"   Distance: {runner.race.race_distance:.0f} m")
    print(f"   Time step: {runner.config.fixed_dt * 1000:.1f} ms")

    # Step 3: Run the race
    print("\n3. Running race...")
    runner.start()
    steps = 0
    while runner.is_running:
        runner.step()
        steps += 1
        if steps % 300 == 0:
            v1, v2 = runner.vehicles
            print(f"   t={runner.time:6.2f}s: car {v1.position:6.1f} m, "
                  f"motorcycle {v2.position:6.1f} m")

    # Step 4: Results
    print("\n4. Results:")
    print(f"   Outcome: {runner.outcome.value} at t={runner.time:.2f}s")
    for name, vehicle in zip(("car", "motorcycle"), runner.vehicles):
        state = vehicle.get_state()
        print(f"   {name}: v={state['velocity']:.2f} m/s, "
              f"KE={state['kinetic_energy']:.0f} J, W={state['work']:.0f} J")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
