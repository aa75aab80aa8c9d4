"""Periodic background expiry sweep for the TTL store."""

from __future__ import annotations

import threading
from typing import Callable

from ..logging_utils import get_logger


class ExpirySweeper:
    """Run ``sweep`` every ``interval_s`` seconds on one daemon thread.

    The loop is a single timer: a slow sweep delays the next tick instead of
    overlapping with it.
    """

    def __init__(self, sweep: Callable[[], int], *, interval_s: float) -> None:
        self._sweep = sweep
        self._interval_s = float(interval_s)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._log = get_logger("store.sweeper")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="element-context-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        self._thread = None
        if thread and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _loop(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                removed = self._sweep()
            except Exception as exc:  # pragma: no cover - keep the timer alive
                self._log.exception("Expiry sweep failed: {}", exc)
                continue
            if removed:
                self._log.info("Cleanup: removed {} expired elements", removed)
