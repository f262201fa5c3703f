"""Hand-off of state mutations onto the single UI-affinity context."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class UIContext(Protocol):
    """Anything that can run a callback on the UI thread."""

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        ...


class InlineUIContext:
    """Runs callbacks immediately, serialized under one re-entrant lock.

    Suitable for tests and headless embedding where no UI loop exists.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        with self._lock:
            fn(*args)


class QueueUIContext:
    """Queues callbacks for the UI loop, which drains them with ``run_pending``."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[tuple]" = queue.Queue()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    def run_pending(self, timeout: float = 0.0) -> int:
        """Run queued callbacks on the calling (UI) thread.

        Blocks up to ``timeout`` seconds for the first callback, then drains
        whatever else is queued. Returns the number of callbacks run.
        """
        ran = 0
        block = timeout > 0
        while True:
            try:
                fn, args = self._queue.get(block=block, timeout=timeout if block else None)
            except queue.Empty:
                return ran
            block = False
            try:
                fn(*args)
            except Exception:
                logger.exception("UI callback %r failed", fn)
            ran += 1

    @property
    def pending(self) -> int:
        return self._queue.qsize()
