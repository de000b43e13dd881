from __future__ import annotations

from typing import Callable, Iterator, List, Optional

from .models import Process, ProcessState


class ReadyQueue:
    """
    Processes eligible to run, in insertion order.

    FIFO policies pop the front; scanning policies pick an index and remove it
    with :meth:`remove_at`, which keeps the rest in their original order.
    """

    def __init__(self) -> None:
        self._items: List[Process] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Process]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Process:
        return self._items[index]

    def __contains__(self, process: object) -> bool:
        return any(p is process for p in self._items)

    def enqueue(self, process: Process) -> None:
        process.state = ProcessState.READY
        self._items.append(process)

    def remove_at(self, index: int) -> Process:
        return self._items.pop(index)

    def pop_front(self) -> Optional[Process]:
        if not self._items:
            return None
        return self._items.pop(0)

    def index_of_min(self, key: Callable[[Process], int]) -> int:
        """
        Index of the process with the smallest ``key``.

        Ties go to the earliest position: a later element only wins when it is
        strictly smaller.
        """
        if not self._items:
            raise IndexError("index_of_min on empty ready queue")
        best = 0
        for i in range(1, len(self._items)):
            if key(self._items[i]) < key(self._items[best]):
                best = i
        return best

    def age_all(self, ticks: int = 1) -> None:
        for p in self._items:
            p.waiting_time += ticks

    def clear(self) -> None:
        self._items.clear()
