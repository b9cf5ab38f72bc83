"""
Telemetry module - Consumers of the tick snapshot stream.

This module contains:
- TelemetryChannel: Rolling series for one measurement
- TelemetryRecorder: Snapshot sink recording both vehicles
- SnapshotThrottle: Display-rate coalescer
"""

from kinerace.telemetry.channel import ChannelConfig, TelemetryChannel
from kinerace.telemetry.recorder import RecorderConfig, TelemetryRecorder
from kinerace.telemetry.throttle import SnapshotThrottle, ThrottleConfig

__all__ = [
    "ChannelConfig",
    "TelemetryChannel",
    "RecorderConfig",
    "TelemetryRecorder",
    "SnapshotThrottle",
    "ThrottleConfig",
]
