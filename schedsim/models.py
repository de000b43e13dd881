from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple, Union

from .errors import InvalidProcessSpec

ProcessId = Union[int, str]


class ProcessState(str, enum.Enum):
    NEW = "new"
    READY = "ready"
    RUNNING = "running"
    # Reserved for I/O modelling; no algorithm moves a process here.
    WAITING = "waiting"
    COMPLETED = "completed"


# Accepted spellings for each ProcessSpec field when building from a mapping.
_SPEC_KEYS = {
    "id": ("id", "pid"),
    "name": ("name",),
    "arrival_time": ("arrival_time", "arrivalTime", "arrival"),
    "burst_time": ("burst_time", "burstTime", "burst"),
    "priority": ("priority",),
}


def _as_int(value: Any) -> int:
    """Integer value of ``value``; integral floats and integer strings only."""
    if isinstance(value, bool):
        raise TypeError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"expected an integer, got {value!r}")


def _lookup(mapping: Mapping[str, Any], field_name: str) -> Any:
    for key in _SPEC_KEYS[field_name]:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass(frozen=True)
class ProcessSpec:
    """
    Caller-supplied description of one process, before admission.
    """

    name: Optional[str]
    arrival_time: int
    burst_time: int
    priority: Optional[int] = None
    id: Optional[ProcessId] = None

    @property
    def has_id(self) -> bool:
        return self.id not in (None, "")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ProcessSpec":
        try:
            arrival = _lookup(mapping, "arrival_time")
            burst = _lookup(mapping, "burst_time")
            if arrival is None or burst is None:
                raise KeyError("arrival_time/burst_time")
            arrival_time = _as_int(arrival)
            burst_time = _as_int(burst)
            priority_val = _lookup(mapping, "priority")
            priority = _as_int(priority_val) if priority_val is not None else None
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidProcessSpec(f"Invalid process entry: {mapping!r}") from exc

        name = _lookup(mapping, "name")
        return cls(
            name=str(name) if name is not None else None,
            arrival_time=arrival_time,
            burst_time=burst_time,
            priority=priority,
            id=_lookup(mapping, "id"),
        )


@dataclass
class Process:
    """
    A simulated process and its mutable bookkeeping.

    Timing inputs (``arrival_time``, ``original_burst_time``) are fixed at
    admission. ``response_time``, ``start_time`` and ``completion_time`` stay
    at -1 until the corresponding transition happens.
    """

    id: ProcessId
    name: str
    arrival_time: int
    original_burst_time: int
    priority: int = 0
    remaining_time: int = 0
    waiting_time: int = 0
    turnaround_time: int = 0
    response_time: int = -1
    start_time: int = -1
    completion_time: int = -1
    state: ProcessState = ProcessState.NEW

    @classmethod
    def admit(cls, spec: ProcessSpec, default_id: ProcessId) -> "Process":
        """Build the initial process record for ``spec``, using ``default_id`` when it has none."""
        pid = spec.id if spec.has_id else default_id
        return cls(
            id=pid,
            name=spec.name or f"P{pid}",
            arrival_time=spec.arrival_time,
            original_burst_time=spec.burst_time,
            priority=spec.priority if spec.priority is not None else 0,
            remaining_time=spec.burst_time,
        )

    @property
    def executed_time(self) -> int:
        return self.original_burst_time - self.remaining_time

    def restore(self) -> None:
        """Return every mutable field to its value at admission."""
        self.remaining_time = self.original_burst_time
        self.waiting_time = 0
        self.turnaround_time = 0
        self.response_time = -1
        self.start_time = -1
        self.completion_time = -1
        self.state = ProcessState.NEW

    def snapshot(self) -> "Process":
        return replace(self)


@dataclass(frozen=True)
class GanttEntry:
    """Which process, if any, occupied the core during tick ``time``."""

    time: int
    process: Optional[ProcessId]
    process_name: str = "Idle"

    @property
    def idle(self) -> bool:
        return self.process is None


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: str
    start_time: int
    end_time: int


@dataclass(frozen=True)
class Metrics:
    average_waiting_time: float = 0.0
    average_turnaround_time: float = 0.0
    average_response_time: float = 0.0
    cpu_utilization: float = 0.0
    throughput: float = 0.0


@dataclass(frozen=True)
class ProcessEvent:
    """Payload of the per-process events (arrival, scheduling, preemption, completion)."""

    process: Process
    time: int


@dataclass(frozen=True)
class EngineState:
    """
    Read-only view of the engine after a step.

    Every process in here is a copy; holding on to a snapshot never aliases
    the engine's live records.
    """

    current_time: int
    algorithm: str
    time_quantum: int
    processes: Tuple[Process, ...]
    ready_queue: Tuple[Process, ...]
    waiting_queue: Tuple[Process, ...]
    completed_processes: Tuple[Process, ...]
    running_process: Optional[Process]
    gantt_chart: Tuple[GanttEntry, ...]
    metrics: Metrics
    is_running: bool
    is_paused: bool
    is_complete: bool
    step_mode: bool = False
    speed_ms: int = 1000

    @property
    def running_count(self) -> int:
        return sum(1 for p in self.processes if p.state is ProcessState.RUNNING)
