from __future__ import annotations

from typing import Dict, List, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .metrics import gantt_slices
from .models import GanttEntry, ScheduledSlice


def render_gantt(entries: Sequence[GanttEntry]) -> str:
    """
    Plain-text Gantt chart, one character per tick. Idle ticks show as dots.
    """
    if not entries:
        return "(no execution)"

    line = "|"
    labels = ""
    time_marks = "0"

    for sl in _with_idle(gantt_slices(entries), len(entries)):
        width = sl.end_time - sl.start_time
        if sl.pid:
            line += "=" * width
            labels += sl.pid[:width].ljust(width)
        else:
            line += "." * width
            labels += " " * width
        time_marks += f"{sl.end_time:>3}"

    line += "|"

    return "\n".join(["Gantt Chart:", line, labels, time_marks])


def _with_idle(slices: List[ScheduledSlice], end: int) -> List[ScheduledSlice]:
    """Fill gaps between execution slices with idle slices (empty pid)."""
    filled: List[ScheduledSlice] = []
    last_time = 0
    for sl in slices:
        if sl.start_time > last_time:
            filled.append(ScheduledSlice(pid="", start_time=last_time, end_time=sl.start_time))
        filled.append(sl)
        last_time = sl.end_time
    if end > last_time:
        filled.append(ScheduledSlice(pid="", start_time=last_time, end_time=end))
    return filled


def build_rich_gantt(entries: Sequence[GanttEntry]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not entries:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[pid] = colors[idx]
        return pid_to_color[pid]

    timeline = Text()
    labels = Text()
    time_marks = "0"

    for sl in _with_idle(gantt_slices(entries), len(entries)):
        width = sl.end_time - sl.start_time
        if sl.pid:
            timeline.append(" " * width, style=f"on {pid_color(sl.pid)}")
            labels.append(sl.pid[:width].ljust(width), style="bold")
        else:
            timeline.append("." * width, style="dim")
            labels.append(" " * width)
        time_marks += f"{sl.end_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
