from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickTimer:
    """
    Fixed-delay loop that calls ``callback`` every ``interval_ms`` on a
    background thread until cancelled.

    Calls are serial: the next wait only starts after the previous callback
    returned. ``cancel()`` waits for an in-flight callback to finish unless it
    is called from the timer thread itself.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int) -> None:
        self._callback = callback
        self.interval_ms = interval_ms
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("TickTimer can only be started once")
        self._thread = threading.Thread(target=self._run, name="schedsim-tick", daemon=True)
        self._thread.start()

    @property
    def on_timer_thread(self) -> bool:
        return self._thread is not None and self._thread is threading.current_thread()

    def cancel(self) -> None:
        self._cancelled.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self) -> None:
        try:
            # interval_ms is re-read every round so a tick may change its own period.
            while not self._cancelled.wait(self.interval_ms / 1000):
                self._callback()
        finally:
            # A callback error ends the loop; the thread's excepthook reports it.
            self._cancelled.set()
            logger.debug("tick timer stopped")
