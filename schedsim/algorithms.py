from __future__ import annotations

import logging
from typing import Dict, Optional, Type

from .models import Process
from .queues import ReadyQueue

logger = logging.getLogger(__name__)


class SchedulingPolicy:
    """
    Base dispatch policy.

    A policy never mutates the queue itself. The engine asks it which index
    to dispatch and whether the running process must give up the core, then
    performs the move.
    """

    name = "FCFS"
    label = "First-Come First-Serve"

    def select_next(self, ready: ReadyQueue) -> int:
        """Index of the ready process to dispatch. Default is the front of the queue."""
        return 0

    def should_preempt(self, running: Process, ready: ReadyQueue) -> bool:
        return False

    def slice_expired(self, ticks_in_slice: int) -> bool:
        return False

    def describe(self) -> str:
        return self.label


class FCFSPolicy(SchedulingPolicy):
    """
    First-Come First-Serve (non-preemptive). Strict arrival order.
    """


class SJFPolicy(SchedulingPolicy):
    """
    Shortest Job First (non-preemptive), keyed on the original burst time.
    """

    name = "SJF"
    label = "SJF (non-preemptive)"

    def select_next(self, ready: ReadyQueue) -> int:
        return ready.index_of_min(lambda p: p.original_burst_time)


class SRTFPolicy(SchedulingPolicy):
    """
    Shortest Remaining Time First (preemptive SJF).

    The running process is preempted only when some ready process has a
    strictly smaller remaining time, so equal remaining times never thrash.
    """

    name = "SRTF"
    label = "SRTF"

    def select_next(self, ready: ReadyQueue) -> int:
        return ready.index_of_min(lambda p: p.remaining_time)

    def should_preempt(self, running: Process, ready: ReadyQueue) -> bool:
        if not len(ready):
            return False
        shortest = ready[self.select_next(ready)]
        return shortest.remaining_time < running.remaining_time


class RoundRobinPolicy(SchedulingPolicy):
    """
    Round Robin with a fixed time quantum.
    """

    name = "RR"
    label = "Round Robin"

    def __init__(self, quantum: int) -> None:
        if quantum is None or quantum <= 0:
            raise ValueError("Round Robin requires a positive quantum")
        self.quantum = quantum

    def slice_expired(self, ticks_in_slice: int) -> bool:
        return ticks_in_slice >= self.quantum

    def describe(self) -> str:
        return f"{self.label} (q={self.quantum})"


class PriorityPolicy(SchedulingPolicy):
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority; ties go to the
    process that has been in the ready queue longest.
    """

    name = "PRIORITY"
    label = "Priority (static)"

    def select_next(self, ready: ReadyQueue) -> int:
        return ready.index_of_min(lambda p: p.priority)


ALGORITHMS: Dict[str, Type[SchedulingPolicy]] = {
    "FCFS": FCFSPolicy,
    "SJF": SJFPolicy,
    "SRTF": SRTFPolicy,
    "RR": RoundRobinPolicy,
    "PRIORITY": PriorityPolicy,
}


def normalize_algorithm(name: Optional[str]) -> str:
    """
    Canonical algorithm key for ``name``, case-insensitive.

    Unknown names fall back to FCFS rather than failing.
    """
    key = (name or "").strip().upper()
    if key not in ALGORITHMS:
        logger.warning("Unknown scheduling algorithm %r, falling back to FCFS", name)
        return "FCFS"
    return key


def get_policy(name: Optional[str], quantum: int = 2) -> SchedulingPolicy:
    key = normalize_algorithm(name)
    if key == "RR":
        return RoundRobinPolicy(quantum)
    return ALGORITHMS[key]()
