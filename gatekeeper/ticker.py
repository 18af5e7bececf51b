"""A periodic ticker that fires once immediately and then at a fixed interval."""

from __future__ import annotations

import threading
import time


class InstantTicker:
    """Deliver ticks every ``interval`` seconds, the first one at once.

    Ticks that are missed because the caller was slow are dropped rather
    than queued, so a late caller gets a single tick straight away.
    """

    def __init__(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("non-positive interval for InstantTicker")
        self._interval = float(interval)
        self._start = time.monotonic()
        self._last_due = self._start
        self._instant_pending = True
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def tick(self, timeout: float | None = None) -> float | None:
        """Wait for the next tick and return its wall-clock time.

        Returns None when the ticker is stopped, or when ``timeout`` seconds
        pass without a tick.
        """
        with self._lock:
            if self._stopped.is_set():
                return None
            if self._instant_pending:
                self._instant_pending = False
                return time.time()

            now = time.monotonic()
            due = self._last_due + self._interval
            if due > now:
                wait = due - now
                if timeout is not None and timeout < wait:
                    self._stopped.wait(max(timeout, 0.0))
                    return None
                if self._stopped.wait(wait):
                    return None
            else:
                elapsed = now - self._start
                due = self._start + (elapsed // self._interval) * self._interval
            self._last_due = due
            return time.time()

    def stop(self) -> None:
        """Stop the ticker. Calling it more than once is harmless."""
        self._stopped.set()

    def __enter__(self) -> InstantTicker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()