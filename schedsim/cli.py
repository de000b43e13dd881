from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS
from .config import DEFAULT_TIME_QUANTUM, EngineOptions
from .engine import SchedulingEngine
from .errors import SchedulerError
from .events import EventName
from .gantt import build_rich_gantt
from .models import EngineState, ProcessSpec
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="Tick-by-tick CPU scheduling simulator (FCFS, SJF, SRTF, RR, Priority).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log engine decisions (dispatch, preemption, completion).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (fcfs, sjf, srtf, rr, priority). Unknown names fall back to fcfs.",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_TIME_QUANTUM,
        help=f"Time quantum for round-robin (default: {DEFAULT_TIME_QUANTUM}).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Run in continuous mode, printing every tick as it happens.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds between ticks when --step is used (default: 0.3).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=[name.lower() for name in ALGORITHMS],
        help="Algorithms to compare (default: fcfs sjf srtf rr priority).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_TIME_QUANTUM,
        help=f"Time quantum used for RR when included (default: {DEFAULT_TIME_QUANTUM}).",
    )

    return parser


def configure_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _print_result(state: EngineState, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {state.algorithm}")
    if state.algorithm == "RR":
        console.print(f"[bold]Quantum:[/bold] {state.time_quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(state.gantt_chart)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "ID",
        "Name",
        "Arrive",
        "Burst",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
        "Priority",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"ID", "Name", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in state.completed_processes:
        proc_table.add_row(
            str(p.id),
            p.name,
            str(p.arrival_time),
            str(p.original_burst_time),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
            str(p.priority),
        )

    console.print(proc_table)
    console.print()

    m = state.metrics
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{m.average_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{m.average_turnaround_time:.2f}")
    sys_table.add_row("Avg response", f"{m.average_response_time:.2f}")
    sys_table.add_row("Throughput (proc/time)", f"{m.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{m.cpu_utilization:.1f}%")

    console.print(sys_table)


def _animate(engine: SchedulingEngine, console: Console) -> EngineState:
    """
    Drive the engine in continuous mode, printing one line per recorded tick.
    """
    done = threading.Event()
    printed = [0]

    def on_update(state: EngineState) -> None:
        for entry in state.gantt_chart[printed[0]:]:
            ready = ", ".join(p.name for p in state.ready_queue) or "-"
            running = entry.process_name if not entry.idle else "[idle]"
            console.print(escape(f"t={entry.time:2d}: {running:<10} ready: {ready}"))
        printed[0] = len(state.gantt_chart)

    engine.on(EventName.STATE_UPDATE, on_update)
    engine.on(EventName.SIMULATION_COMPLETE, lambda _state: done.set())

    console.print(f"[bold]Simulating {engine.policy.describe()}[/bold]")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")
    engine.start()
    poll = max(engine.speed_ms / 1000, 0.05)
    try:
        while not done.wait(poll):
            if not engine.is_ticking:
                break
    except KeyboardInterrupt:
        engine.stop()
        engine.off(EventName.STATE_UPDATE, on_update)
        console.print("[yellow]Animation skipped.[/yellow]")
        return engine.run_to_completion()

    state = engine.get_state()
    if not state.is_complete:
        # The timer thread died without finishing the run (a tick raised).
        engine.stop()
        raise SchedulerError(f"simulation stopped at t={state.current_time} before completing")
    return state


def run_workload(
    specs: Sequence[ProcessSpec],
    options: EngineOptions,
) -> EngineState:
    engine = SchedulingEngine(
        specs,
        options.algorithm,
        time_quantum=options.time_quantum,
        speed_ms=options.speed_ms,
        step_mode=options.step_mode,
    )
    return engine.run_to_completion()


def _run_compare(specs: Sequence[ProcessSpec], algorithms: List[str], quantum: int, console: Console) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util", justify="right")

    for alg in algorithms:
        state = run_workload(specs, EngineOptions(algorithm=alg, time_quantum=quantum, step_mode=True))
        m = state.metrics
        summary_table.add_row(
            state.algorithm,
            str(state.time_quantum) if state.algorithm == "RR" else "",
            f"{m.average_waiting_time:.2f}",
            f"{m.average_turnaround_time:.2f}",
            f"{m.average_response_time:.2f}",
            f"{m.cpu_utilization:.1f}%",
        )

    console.print(summary_table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    configure_logging(args.verbose, console)

    try:
        specs = load_workload(Path(args.workload))

        if args.command == "run":
            if args.step:
                engine = SchedulingEngine(
                    specs,
                    args.algorithm,
                    time_quantum=args.quantum,
                    speed_ms=max(1, int(args.step_delay * 1000)),
                )
                state = _animate(engine, console)
                engine.cleanup()
            else:
                state = run_workload(
                    specs,
                    EngineOptions(algorithm=args.algorithm, time_quantum=args.quantum, step_mode=True),
                )
            _print_result(state, console)
            return 0

        if args.command == "compare":
            _run_compare(specs, args.algorithms, args.quantum, console)
            return 0
    except (OSError, SchedulerError, ValueError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
