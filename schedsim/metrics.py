from __future__ import annotations

from typing import List, Sequence

from .models import GanttEntry, Metrics, Process, ScheduledSlice


def compute_metrics(
    completed: Sequence[Process],
    gantt: Sequence[GanttEntry],
    current_time: int,
) -> Metrics:
    """
    Aggregate statistics for the run so far.

    Per-process averages only cover completed processes. Utilization is the
    share of recorded ticks in which the core was busy, as a percentage.
    """
    busy = sum(1 for entry in gantt if not entry.idle)
    cpu_utilization = busy / current_time * 100 if current_time > 0 else 0.0
    throughput = len(completed) / max(current_time, 1)

    if not completed:
        return Metrics(cpu_utilization=cpu_utilization, throughput=throughput)

    n = len(completed)
    return Metrics(
        average_waiting_time=sum(p.waiting_time for p in completed) / n,
        average_turnaround_time=sum(p.turnaround_time for p in completed) / n,
        # A completed process always has a response time; -1 would be a bug upstream.
        average_response_time=sum(max(p.response_time, 0) for p in completed) / n,
        cpu_utilization=cpu_utilization,
        throughput=throughput,
    )


def gantt_slices(gantt: Sequence[GanttEntry]) -> List[ScheduledSlice]:
    """
    Collapse per-tick Gantt entries into contiguous execution slices.

    Idle ticks produce no slice; consecutive ticks of the same process are
    merged.
    """
    slices: List[ScheduledSlice] = []
    for entry in gantt:
        if entry.idle:
            continue
        pid = str(entry.process)
        last = slices[-1] if slices else None
        if last is not None and last.pid == pid and last.end_time == entry.time:
            last.end_time = entry.time + 1
        else:
            slices.append(ScheduledSlice(pid=pid, start_time=entry.time, end_time=entry.time + 1))
    return slices
