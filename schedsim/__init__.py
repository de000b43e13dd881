"""
schedsim package.

A tick-by-tick CPU scheduling simulator (FCFS, SJF, SRTF, Round Robin,
Priority) with an observer interface and a small command-line front end.
"""

from .engine import SchedulingEngine
from .errors import ConfigurationError, EngineInvariantError, InvalidProcessSpec
from .events import EventName
from .models import EngineState, GanttEntry, Metrics, Process, ProcessSpec, ProcessState

__all__ = [
    "ConfigurationError",
    "EngineInvariantError",
    "EngineState",
    "EventName",
    "GanttEntry",
    "InvalidProcessSpec",
    "Metrics",
    "Process",
    "ProcessSpec",
    "ProcessState",
    "SchedulingEngine",
    "cli",
]
