"""
Discrete-time CPU scheduling engine.

The engine owns every piece of simulation state (process records, the ready
queue, the single core, the completed list and the Gantt history) and
advances it one tick per :meth:`SchedulingEngine.step` call. Observers
subscribe with :meth:`SchedulingEngine.on` and only ever receive copies.

Tick semantics: the Gantt entry recorded by the step at time ``t`` names the
process that occupies the core during tick ``t``. That tick of work is
charged (``remaining_time`` decremented) by the following step, at time
``t + 1``, which is therefore also the process's completion time when it was
the last unit of its burst.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .algorithms import get_policy
from .config import DEFAULT_SPEED_MS, EngineOptions, validate_speed
from .driver import TickTimer
from .errors import EngineInvariantError, InvalidProcessSpec
from .events import EventEmitter, EventName, Listener
from .metrics import compute_metrics
from .models import (
    EngineState,
    GanttEntry,
    Metrics,
    Process,
    ProcessEvent,
    ProcessSpec,
    ProcessState,
)
from .queues import ReadyQueue

logger = logging.getLogger(__name__)

SpecLike = Union[ProcessSpec, Mapping[str, Any]]

_Pending = List[Tuple[EventName, Any]]


def _coerce_spec(spec: SpecLike) -> ProcessSpec:
    if isinstance(spec, ProcessSpec):
        return spec
    if isinstance(spec, Mapping):
        return ProcessSpec.from_mapping(spec)
    raise InvalidProcessSpec(f"Invalid process entry: {spec!r}")


def _validate_spec(spec: ProcessSpec) -> None:
    for field_name in ("arrival_time", "burst_time"):
        value = getattr(spec, field_name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidProcessSpec(f"{field_name} must be an integer, got {value!r} in {spec!r}")
    if spec.arrival_time < 0:
        raise InvalidProcessSpec(f"arrival_time must be >= 0, got {spec.arrival_time} in {spec!r}")
    if spec.burst_time <= 0:
        raise InvalidProcessSpec(f"burst_time must be > 0, got {spec.burst_time} in {spec!r}")


def admit_processes(specs: Iterable[SpecLike]) -> List[Process]:
    """
    Validate ``specs`` and build fresh process records, in input order.

    A process without an id gets its 1-based input position, or the next
    position not already claimed by another process when that one is taken.
    Only two explicitly supplied ids can collide.
    """
    coerced = [_coerce_spec(raw) for raw in specs]
    taken = set()
    for spec in coerced:
        _validate_spec(spec)
        if spec.has_id:
            if spec.id in taken:
                raise InvalidProcessSpec(f"Duplicate process id {spec.id!r}")
            taken.add(spec.id)

    processes: List[Process] = []
    for position, spec in enumerate(coerced, start=1):
        default_id = None
        if not spec.has_id:
            default_id = position
            while default_id in taken:
                default_id += 1
            taken.add(default_id)
        processes.append(Process.admit(spec, default_id))
    return processes


class SchedulingEngine:
    """
    Single-core scheduling simulator driven one tick at a time.

    ``step()`` is synchronous and not reentrant. In continuous mode the engine
    hands ``step()`` to a :class:`~schedsim.driver.TickTimer`, which guarantees
    calls never overlap; in step mode the host calls ``step()`` itself.
    """

    def __init__(
        self,
        processes: Optional[Iterable[SpecLike]] = None,
        algorithm: str = "FCFS",
        *,
        time_quantum: Optional[int] = None,
        speed_ms: int = DEFAULT_SPEED_MS,
        step_mode: bool = False,
    ) -> None:
        validate_speed(speed_ms)
        self.speed_ms = speed_ms
        self.step_mode = step_mode
        self.is_running = False
        self.is_paused = False

        self._emitter = EventEmitter()
        self._timer: Optional[TickTimer] = None
        self._in_step = False
        self._finished = False

        self.processes: List[Process] = []
        self.ready_queue = ReadyQueue()
        self.waiting_queue: List[Process] = []
        self.completed_processes: List[Process] = []
        self.running_process: Optional[Process] = None
        self.gantt_chart: List[GanttEntry] = []
        self.current_time = 0
        self.ticks_in_slice = 0

        self.initialize(processes or [], algorithm, time_quantum=time_quantum)

    # Events

    def on(self, event: Union[str, EventName], callback: Listener) -> Listener:
        return self._emitter.on(event, callback)

    def off(self, event: Union[str, EventName], callback: Listener) -> None:
        self._emitter.off(event, callback)

    def _emit_state_update(self) -> EngineState:
        state = self.get_state()
        self._emitter.emit(EventName.STATE_UPDATE, state)
        return state

    # Setup

    def initialize(
        self,
        processes: Iterable[SpecLike],
        algorithm: str = "FCFS",
        time_quantum: Optional[int] = None,
    ) -> None:
        """
        Load a new process list and algorithm, discarding any previous run.

        Raises :class:`InvalidProcessSpec` before touching existing state if
        any process is malformed.
        """
        admitted = admit_processes(processes)
        options = EngineOptions(
            algorithm=algorithm,
            time_quantum=time_quantum,
            speed_ms=self.speed_ms,
            step_mode=self.step_mode,
        )

        self._cancel_timer()
        self.is_running = False
        self.is_paused = False

        self.policy = get_policy(options.algorithm, options.time_quantum)
        self.algorithm = self.policy.name
        self.time_quantum = options.time_quantum
        self.processes = admitted
        self._clear_run_state()

        logger.debug(
            "initialized %d processes with %s", len(self.processes), self.policy.describe()
        )
        self._emit_state_update()

    def _clear_run_state(self) -> None:
        self.current_time = 0
        self.ready_queue.clear()
        self.waiting_queue = []
        self.completed_processes = []
        self.running_process = None
        self.gantt_chart = []
        self.ticks_in_slice = 0
        self._finished = False

    # Introspection

    def get_state(self) -> EngineState:
        copies = {id(p): p.snapshot() for p in self.processes}

        def view(p: Process) -> Process:
            return copies[id(p)]

        running = self.running_process
        return EngineState(
            current_time=self.current_time,
            algorithm=self.algorithm,
            time_quantum=self.time_quantum,
            processes=tuple(copies.values()),
            ready_queue=tuple(view(p) for p in self.ready_queue),
            waiting_queue=tuple(view(p) for p in self.waiting_queue),
            completed_processes=tuple(view(p) for p in self.completed_processes),
            running_process=view(running) if running is not None else None,
            gantt_chart=tuple(self.gantt_chart),
            metrics=self.calculate_metrics(),
            is_running=self.is_running,
            is_paused=self.is_paused,
            is_complete=self._finished,
            step_mode=self.step_mode,
            speed_ms=self.speed_ms,
        )

    def calculate_metrics(self) -> Metrics:
        return compute_metrics(self.completed_processes, self.gantt_chart, self.current_time)

    @property
    def is_ticking(self) -> bool:
        """True while a continuous-mode timer is driving the engine."""
        timer = self._timer
        return timer is not None and timer.active

    def is_simulation_complete(self) -> bool:
        return self._finished

    def _all_completed(self) -> bool:
        return len(self.completed_processes) == len(self.processes)

    # Stepping

    def step(self) -> EngineState:
        """
        Advance the simulation by one tick and return the new snapshot.

        Once the run is complete this is a no-op that re-emits the unchanged
        snapshot.
        """
        if self._in_step:
            raise EngineInvariantError("step() is not reentrant")
        self._in_step = True
        try:
            if self._finished:
                return self._emit_state_update()

            pending: _Pending = []
            self._retire_tick(pending)
            if self.processes and self._all_completed():
                # The tick just charged was the last one; the run ends at this boundary.
                self._finish()
            else:
                self._admit_arrivals(pending)
                self._check_preemption(pending)
                if self.running_process is None and len(self.ready_queue):
                    self._dispatch(pending)
                self.ready_queue.age_all()
                self._record_gantt()
                self.current_time += 1
                if self._all_completed():
                    self._finish()

            for event, payload in pending:
                self._emitter.emit(event, payload)
            state = self.get_state()
            if state.is_complete:
                self._emitter.emit(EventName.STOPPED, state)
                self._emitter.emit(EventName.SIMULATION_COMPLETE, state)
            self._emitter.emit(EventName.STATE_UPDATE, state)
            return state
        finally:
            self._in_step = False

    def run_to_completion(self, max_steps: Optional[int] = None) -> EngineState:
        """
        Step synchronously until the run completes.

        ``max_steps`` defaults to the longest any schedule of this workload
        can take; exceeding it is an invariant violation.
        """
        if max_steps is None:
            max_steps = (
                sum(p.original_burst_time for p in self.processes)
                + max((p.arrival_time for p in self.processes), default=0)
                + 2
            )
        state = self.get_state()
        for _ in range(max_steps):
            if self._finished:
                return state
            state = self.step()
        if not self._finished:
            raise EngineInvariantError(f"run did not complete within {max_steps} steps")
        return state

    def _retire_tick(self, pending: _Pending) -> None:
        running = self.running_process
        if running is None:
            return
        if running.remaining_time <= 0 or running.state is not ProcessState.RUNNING:
            raise EngineInvariantError(f"cannot execute {running.name}: {running!r}")

        running.remaining_time -= 1
        self.ticks_in_slice += 1

        if running.remaining_time == 0:
            self._complete(running, pending)
        elif self.policy.slice_expired(self.ticks_in_slice):
            self._preempt(running, pending, reason="quantum expired")

    def _complete(self, process: Process, pending: _Pending) -> None:
        if process.completion_time != -1 or any(p is process for p in self.completed_processes):
            raise EngineInvariantError(f"{process.name} completed twice")

        process.completion_time = self.current_time
        process.turnaround_time = process.completion_time - process.arrival_time
        process.state = ProcessState.COMPLETED
        if process.turnaround_time != process.waiting_time + process.original_burst_time:
            raise EngineInvariantError(
                f"{process.name}: turnaround {process.turnaround_time} != "
                f"waiting {process.waiting_time} + burst {process.original_burst_time}"
            )

        self.completed_processes.append(process)
        self.running_process = None
        self.ticks_in_slice = 0
        logger.debug("t=%d: %s completed", self.current_time, process.name)
        pending.append(
            (EventName.PROCESS_COMPLETED, ProcessEvent(process.snapshot(), self.current_time))
        )

    def _preempt(self, process: Process, pending: _Pending, reason: str) -> None:
        self.ready_queue.enqueue(process)
        self.running_process = None
        self.ticks_in_slice = 0
        logger.debug(
            "t=%d: %s preempted (%s), %d remaining",
            self.current_time,
            process.name,
            reason,
            process.remaining_time,
        )
        pending.append(
            (EventName.PROCESS_PREEMPTED, ProcessEvent(process.snapshot(), self.current_time))
        )

    def _admit_arrivals(self, pending: _Pending) -> None:
        for process in self.processes:
            if process.state is ProcessState.NEW and process.arrival_time == self.current_time:
                self.ready_queue.enqueue(process)
                pending.append(
                    (EventName.PROCESS_ARRIVED, ProcessEvent(process.snapshot(), self.current_time))
                )

    def _check_preemption(self, pending: _Pending) -> None:
        running = self.running_process
        if running is not None and self.policy.should_preempt(running, self.ready_queue):
            self._preempt(running, pending, reason="shorter job ready")

    def _dispatch(self, pending: _Pending) -> None:
        index = self.policy.select_next(self.ready_queue)
        process = self.ready_queue.remove_at(index)
        process.state = ProcessState.RUNNING
        if process.response_time == -1:
            process.start_time = self.current_time
            process.response_time = self.current_time - process.arrival_time

        self.running_process = process
        self.ticks_in_slice = 0
        logger.debug("t=%d: dispatched %s", self.current_time, process.name)
        pending.append(
            (EventName.PROCESS_SCHEDULED, ProcessEvent(process.snapshot(), self.current_time))
        )

    def _record_gantt(self) -> None:
        running = self.running_process
        if running is None:
            self.gantt_chart.append(GanttEntry(time=self.current_time, process=None))
        else:
            self.gantt_chart.append(
                GanttEntry(time=self.current_time, process=running.id, process_name=running.name)
            )

    def _finish(self) -> None:
        self._finished = True
        self.is_running = False
        self.is_paused = False
        self._cancel_timer()
        logger.info(
            "%s run complete at t=%d (%d processes)",
            self.algorithm,
            self.current_time,
            len(self.completed_processes),
        )

    # Lifecycle

    def start(self) -> None:
        if self.is_running or self._finished:
            return
        self.is_running = True
        self.is_paused = False
        if not self.step_mode:
            self._start_timer()
        self._emitter.emit(EventName.STARTED, self.get_state())

    def pause(self) -> None:
        if not self.is_running or self.is_paused:
            return
        self.is_paused = True
        self._cancel_timer()
        self._emitter.emit(EventName.PAUSED, self.get_state())

    def resume(self) -> None:
        if not self.is_running or not self.is_paused:
            return
        self.is_paused = False
        if not self.step_mode:
            self._start_timer()
        self._emitter.emit(EventName.RESUMED, self.get_state())

    def stop(self) -> None:
        self.is_running = False
        self.is_paused = False
        self._cancel_timer()
        self._emitter.emit(EventName.STOPPED, self.get_state())

    def reset(self) -> None:
        """Return to the freshly initialized state, keeping processes, algorithm and listeners."""
        self.stop()
        for process in self.processes:
            process.restore()
        self._clear_run_state()
        self._emit_state_update()
        self._emitter.emit(EventName.RESET, self.get_state())

    def cleanup(self) -> None:
        self.stop()
        self._emitter.clear()

    # Configuration

    def set_speed(self, speed_ms: int) -> None:
        validate_speed(speed_ms)
        self.speed_ms = speed_ms
        timer = self._timer
        if timer is None:
            return
        if timer.on_timer_thread:
            # Called from inside a tick: the loop picks up the new period once this step returns.
            timer.interval_ms = speed_ms
        else:
            self._cancel_timer()
            self._start_timer()

    def set_step_mode(self, enabled: bool) -> None:
        self.step_mode = enabled
        if enabled:
            self._cancel_timer()
        elif self.is_running and not self.is_paused and self._timer is None:
            self._start_timer()

    def _start_timer(self) -> None:
        self._timer = TickTimer(self.step, self.speed_ms)
        self._timer.start()

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    # Accessors

    def get_processes(self) -> List[Process]:
        return list(self.get_state().processes)

    def get_ready_queue(self) -> List[Process]:
        return list(self.get_state().ready_queue)

    def get_waiting_queue(self) -> List[Process]:
        return list(self.get_state().waiting_queue)

    def get_terminated_queue(self) -> List[Process]:
        return list(self.get_state().completed_processes)

    def get_metrics(self) -> Metrics:
        return self.calculate_metrics()

    def get_gantt_data(self) -> List[GanttEntry]:
        return list(self.gantt_chart)

    def get_cpu_cores(self) -> List[dict]:
        running = self.running_process
        return [
            {
                "id": 1,
                "current_process": running.snapshot() if running is not None else None,
                "utilization": 100 if running is not None else 0,
                "state": "busy" if running is not None else "idle",
            }
        ]
