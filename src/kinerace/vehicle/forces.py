"""
Force profiles - Applied force as a function of time.

Provides:
- Constant, increasing, decreasing and impulse force shapes
- Scalar evaluation and vectorised sampling
"""

from dataclasses import dataclass
from enum import Enum
import numpy as np


class ForceKind(Enum):
    """Shape of the applied force over time."""
    CONSTANT = "constant"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    IMPULSE = "impulse"


# Shape constants
INCREASE_RATE = 0.1      # +10% of base per second
DECREASE_RATE = 0.05     # -5% of base per second
DECREASE_FLOOR = 0.3     # never below 30% of base
IMPULSE_HIGH = 1.5
IMPULSE_LOW = 0.5
IMPULSE_THRESHOLD = 0.5  # sin(2t) above this selects the high level


def evaluate(base_magnitude: float, kind: ForceKind, t: float) -> float:
    """Evaluate applied force magnitude at time t.
    
    Args:
        base_magnitude: Base force in N
        kind: Force profile kind
        t: Elapsed simulation time in seconds
        
    Returns:
        Applied force in N
    """
    if kind is ForceKind.INCREASING:
        return base_magnitude * (1.0 + INCREASE_RATE * t)
    if kind is ForceKind.DECREASING:
        return base_magnitude * max(DECREASE_FLOOR, 1.0 - DECREASE_RATE * t)
    if kind is ForceKind.IMPULSE:
        if np.sin(2.0 * t) > IMPULSE_THRESHOLD:
            return base_magnitude * IMPULSE_HIGH
        return base_magnitude * IMPULSE_LOW
    return base_magnitude


@dataclass(frozen=True)
class ForceProfile:
    """Applied force profile of a vehicle.
    
    A base magnitude of None means the force has not been chosen yet;
    such a profile evaluates to zero and blocks the race from starting.
    """
    kind: ForceKind = ForceKind.CONSTANT
    base_magnitude: float | None = None

    def __post_init__(self):
        if isinstance(self.kind, str):
            object.__setattr__(self, "kind", ForceKind(self.kind))

    @property
    def is_set(self) -> bool:
        """Whether a base magnitude has been chosen."""
        return self.base_magnitude is not None

    def evaluate(self, t: float) -> float:
        """Applied force in N at time t."""
        return evaluate(self.base_magnitude or 0.0, self.kind, t)

    def sample(self, times: np.ndarray) -> np.ndarray:
        """Evaluate the profile over an array of times.
        
        Args:
            times: Times in seconds
            
        Returns:
            Applied forces in N, same shape as times
        """
        t = np.asarray(times, dtype=float)
        base = self.base_magnitude or 0.0

        if self.kind is ForceKind.INCREASING:
            return base * (1.0 + INCREASE_RATE * t)
        if self.kind is ForceKind.DECREASING:
            return base * np.maximum(DECREASE_FLOOR, 1.0 - DECREASE_RATE * t)
        if self.kind is ForceKind.IMPULSE:
            return np.where(
                np.sin(2.0 * t) > IMPULSE_THRESHOLD,
                base * IMPULSE_HIGH,
                base * IMPULSE_LOW,
            )
        return np.full_like(t, base)
