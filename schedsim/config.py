from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigurationError

DEFAULT_ALGORITHM = "FCFS"
DEFAULT_TIME_QUANTUM = 2
DEFAULT_SPEED_MS = 1000


@dataclass
class EngineOptions:
    """
    Tunables for one simulation run.

    ``time_quantum`` only matters for round-robin; a falsy value selects the
    default. ``speed_ms`` is the tick period used in continuous mode.
    """

    algorithm: str = DEFAULT_ALGORITHM
    time_quantum: int = DEFAULT_TIME_QUANTUM
    speed_ms: int = DEFAULT_SPEED_MS
    step_mode: bool = False

    def __post_init__(self) -> None:
        if not self.time_quantum:
            self.time_quantum = DEFAULT_TIME_QUANTUM
        self.validate()

    def validate(self) -> None:
        if self.time_quantum < 0:
            raise ConfigurationError(f"time quantum must be positive, got {self.time_quantum}")
        validate_speed(self.speed_ms)


def validate_speed(speed_ms: int) -> None:
    if speed_ms <= 0:
        raise ConfigurationError(f"speed must be a positive number of milliseconds, got {speed_ms}")
