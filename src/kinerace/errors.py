"""
Errors - Exception hierarchy for the race simulator.

Provides:
- Configuration errors raised before a run starts
- Run-control state errors
- Driver stall notifications
"""

from typing import Sequence


class KineraceError(Exception):
    """Base class for all simulator errors."""


class ConfigurationIncomplete(KineraceError):
    """A run was started while required fields are still unset."""

    def __init__(self, missing: Sequence[str]):
        self.missing = tuple(missing)
        super().__init__(f"Configuration incomplete, missing: {', '.join(self.missing)}")


class InvalidParameter(KineraceError, ValueError):
    """A non-physical parameter was supplied."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class RunnerStateError(KineraceError, RuntimeError):
    """Run-control operation not allowed in the current state."""


class DriverStall(KineraceError):
    """Background driver produced no tick within the watchdog timeout.

    Never raised out of the simulator; handed to stall listeners instead.
    """

    def __init__(self, driver_name: str, silence: float, timeout: float):
        self.driver_name = driver_name
        self.silence = silence
        self.timeout = timeout
        super().__init__(
            f"Driver '{driver_name}' silent for {silence:.3f}s (timeout {timeout:.3f}s)"
        )
