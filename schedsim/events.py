from __future__ import annotations

import enum
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Union


class EventName(str, enum.Enum):
    STATE_UPDATE = "stateUpdate"
    PROCESS_ARRIVED = "processArrived"
    PROCESS_SCHEDULED = "processScheduled"
    PROCESS_PREEMPTED = "processPreempted"
    PROCESS_COMPLETED = "processCompleted"
    SIMULATION_COMPLETE = "simulationComplete"
    STARTED = "started"
    PAUSED = "paused"
    RESUMED = "resumed"
    STOPPED = "stopped"
    RESET = "reset"


_ALIASES = {
    "completed": EventName.SIMULATION_COMPLETE,
    "simulationStarted": EventName.STARTED,
    "simulationPaused": EventName.PAUSED,
    "simulationResumed": EventName.RESUMED,
    "simulationStopped": EventName.STOPPED,
    "simulationReset": EventName.RESET,
}

Listener = Callable[[Any], None]


def resolve_event(name: Union[str, EventName]) -> EventName:
    if isinstance(name, EventName):
        return name
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return EventName(name)
    except ValueError:
        raise ValueError(f"Unknown event '{name}'") from None


class EventEmitter:
    """
    Minimal publish/subscribe hub.

    Listeners run synchronously, in subscription order, on the thread that
    emits. An exception raised by a listener propagates to the emitter.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[EventName, List[Listener]] = defaultdict(list)

    def on(self, event: Union[str, EventName], callback: Listener) -> Listener:
        self._listeners[resolve_event(event)].append(callback)
        return callback

    def off(self, event: Union[str, EventName], callback: Listener) -> None:
        listeners = self._listeners.get(resolve_event(event), [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: EventName, payload: Any) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback(payload)

    def clear(self) -> None:
        self._listeners.clear()
