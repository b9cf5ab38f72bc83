"""
Telemetry recorder - Records tick snapshots into per-vehicle channels.

Provides:
- Standard race channels for each vehicle
- Snapshot sink that releases records after copying them
- Finish time tracking
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional
import threading

from kinerace.simulation.snapshot import TickSnapshot
from kinerace.telemetry.channel import ChannelConfig, TelemetryChannel


STANDARD_CHANNELS = {
    "position": ChannelConfig("position", "m", 2),
    "velocity": ChannelConfig("velocity", "m/s", 2),
    "acceleration": ChannelConfig("acceleration", "m/s^2", 3),
    "net_force": ChannelConfig("net_force", "N", 1),
    "kinetic_energy": ChannelConfig("kinetic_energy", "J", 1),
    "work": ChannelConfig("work", "J", 1),
    "max_velocity": ChannelConfig("max_velocity", "m/s", 2),
}

VEHICLE_COUNT = 2


@dataclass
class RecorderConfig:
    """Recorder configuration."""
    history_size: int = 100            # Samples kept per channel
    channels: List[str] | None = None  # Channels to record (None = all)


class TelemetryRecorder:
    """Records race telemetry for both vehicles.
    
    Acts as a snapshot sink: calling the recorder with a snapshot
    copies its values into the channels and releases it.
    
    Usage:
        recorder = TelemetryRecorder()
        runner.connect(recorder)
    """

    def __init__(self, config: RecorderConfig | None = None):
        """Initialize recorder.
        
        Args:
            config: Recorder configuration
        """
        self.config = config or RecorderConfig()
        self._lock = threading.Lock()
        self._channels: List[Dict[str, TelemetryChannel]] = [
            self._build_channels() for _ in range(VEHICLE_COUNT)
        ]
        self._samples: int = 0
        self._last_time: float = 0.0
        self._outcome: Optional[str] = None

    def _build_channels(self) -> Dict[str, TelemetryChannel]:
        names = self.config.channels or list(STANDARD_CHANNELS.keys())
        channels = {}
        for name in names:
            base = STANDARD_CHANNELS.get(name, ChannelConfig(name=name))
            cfg = replace(base, history_size=self.config.history_size)
            channels[name] = TelemetryChannel(cfg)
        return channels

    @property
    def sample_count(self) -> int:
        """Number of snapshots recorded."""
        return self._samples

    @property
    def last_time(self) -> float:
        return self._last_time

    @property
    def outcome(self) -> Optional[str]:
        """Outcome of the last terminal snapshot seen, if any."""
        return self._outcome

    def __call__(self, snapshot: TickSnapshot) -> None:
        self.record(snapshot)
        snapshot.release()

    def record(self, snapshot: TickSnapshot) -> None:
        """Copy a snapshot into the channels without releasing it.
        
        Args:
            snapshot: Snapshot to record
        """
        t = snapshot.time
        readings = [snapshot.vehicle(i) for i in range(VEHICLE_COUNT)]
        with self._lock:
            for channels, reading in zip(self._channels, readings):
                values = asdict(reading)
                for name, channel in channels.items():
                    if name in values:
                        channel.record(t, values[name])
            self._samples += 1
            self._last_time = t
            if snapshot.is_terminal:
                self._outcome = snapshot.outcome.value

    def get_channel(self, vehicle: int, name: str) -> Optional[TelemetryChannel]:
        """Get channel by vehicle and name.
        
        Args:
            vehicle: 1 or 2
            name: Channel name
            
        Returns:
            Channel if found
        """
        if vehicle not in (1, 2):
            return None
        return self._channels[vehicle - 1].get(name)

    def get_current_values(self, vehicle: int) -> Dict[str, float]:
        """Get most recent value from each channel of a vehicle.
        
        Args:
            vehicle: 1 or 2
            
        Returns:
            Dictionary of channel names to current values
        """
        with self._lock:
            return {name: ch.last_value for name, ch in self._channels[vehicle - 1].items()}

    def clear(self) -> None:
        """Clear all recorded data."""
        with self._lock:
            for channels in self._channels:
                for channel in channels.values():
                    channel.clear()
            self._samples = 0
            self._last_time = 0.0
            self._outcome = None

    def get_state(self) -> Dict[str, Any]:
        """Get recorder state.
        
        Returns:
            Dictionary containing recorder state
        """
        with self._lock:
            return {
                "samples": self._samples,
                "last_time": self._last_time,
                "outcome": self._outcome,
                "vehicles": [
                    {name: ch.get_state() for name, ch in channels.items()}
                    for channels in self._channels
                ],
            }
