"""
Telemetry channel - Rolling time series for one measurement.

Provides:
- Bounded history buffer
- Running statistics
- Numpy accessors
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque
import numpy as np


@dataclass
class ChannelConfig:
    """Configuration for a telemetry channel."""
    name: str = "unnamed"
    unit: str = ""
    precision: int = 3
    history_size: int = 100


class TelemetryChannel:
    """Single telemetry data channel.
    
    Keeps the most recent samples of one measurement. Statistics cover
    every sample recorded since the last clear, not only the history.
    """

    def __init__(self, config: ChannelConfig | None = None, name: str = "channel"):
        """Initialize channel.
        
        Args:
            config: Channel configuration
            name: Channel name (used if config not provided)
        """
        if config is None:
            config = ChannelConfig(name=name)
        self.config = config

        self._times: Deque[float] = deque(maxlen=config.history_size)
        self._values: Deque[float] = deque(maxlen=config.history_size)

        # Running statistics
        self._min: float = float('inf')
        self._max: float = float('-inf')
        self._sum: float = 0.0
        self._count: int = 0

    @property
    def name(self) -> str:
        """Channel name."""
        return self.config.name

    @property
    def count(self) -> int:
        """Number of samples recorded since the last clear."""
        return self._count

    @property
    def min_value(self) -> float:
        return self._min if self._count > 0 else 0.0

    @property
    def max_value(self) -> float:
        return self._max if self._count > 0 else 0.0

    @property
    def mean(self) -> float:
        """Mean of all recorded values."""
        return self._sum / self._count if self._count > 0 else 0.0

    @property
    def last_value(self) -> float:
        """Most recent value."""
        return self._values[-1] if self._values else 0.0

    def record(self, time: float, value: float) -> None:
        """Record a new value.
        
        Args:
            time: Timestamp
            value: Value to record
        """
        self._times.append(time)
        self._values.append(value)

        self._min = min(self._min, value)
        self._max = max(self._max, value)
        self._sum += value
        self._count += 1

    def get_values(self) -> np.ndarray:
        """Get values in the history window."""
        return np.array(self._values, dtype=float)

    def get_times(self) -> np.ndarray:
        """Get timestamps in the history window."""
        return np.array(self._times, dtype=float)

    def get_last_n(self, n: int) -> np.ndarray:
        """Get last N values.
        
        Args:
            n: Number of values
            
        Returns:
            Numpy array of values
        """
        if n <= 0:
            return np.array([], dtype=float)
        return self.get_values()[-n:]

    def clear(self) -> None:
        """Clear all recorded data."""
        self._times.clear()
        self._values.clear()
        self._min = float('inf')
        self._max = float('-inf')
        self._sum = 0.0
        self._count = 0

    def get_state(self) -> dict:
        """Get channel state.
        
        Returns:
            Dictionary with channel statistics
        """
        precision = self.config.precision
        return {
            "name": self.config.name,
            "unit": self.config.unit,
            "count": self._count,
            "min": round(self._min, precision) if self._count > 0 else None,
            "max": round(self._max, precision) if self._count > 0 else None,
            "mean": round(self.mean, precision) if self._count > 0 else None,
            "last": round(self.last_value, precision) if self._count > 0 else None,
        }
