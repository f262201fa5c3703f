"""Deletion of artifact temp files, gated by the file tracker."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

from snapshare.runtime.file_tracker import ArtifactFileTracker, PathLike

logger = logging.getLogger(__name__)

DEFAULT_STALE_AGE = 24 * 60 * 60


class FileJanitor:
    """Deletes temp files once no tracked operation still needs them."""

    def __init__(
        self,
        tracker: ArtifactFileTracker,
        on_deleted: Optional[Callable[[Path], None]] = None,
    ):
        self.tracker = tracker
        self.on_deleted = on_deleted
        self._timers: List[threading.Timer] = []
        self._timers_lock = threading.Lock()

    def delete_if_inactive(self, path: PathLike) -> bool:
        """Delete ``path`` unless it is tracked as active.

        Returns:
            True if the file was removed, False if it was skipped or missing.
        """
        path = Path(path)
        if self.tracker.is_active(path):
            logger.warning("File %s is still active; skipping deletion", path)
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("File %s already gone", path)
            return False
        except OSError as exc:
            logger.warning("Failed to delete temp file %s: %s", path, exc)
            return False
        logger.info("Deleted temp file %s", path)
        if self.on_deleted:
            self.on_deleted(path)
        return True

    def delete_later(self, path: PathLike, delay: float) -> threading.Timer:
        """Schedule ``delete_if_inactive`` after ``delay`` seconds."""
        timer = threading.Timer(delay, self._fire, args=(Path(path),))
        timer.daemon = True
        with self._timers_lock:
            self._timers.append(timer)
        timer.start()
        return timer

    def _fire(self, path: Path) -> None:
        with self._timers_lock:
            self._timers = [t for t in self._timers if t.is_alive() and t is not threading.current_thread()]
        self.delete_if_inactive(path)

    def sweep_stale(
        self,
        directory: PathLike,
        max_age: float = DEFAULT_STALE_AGE,
        now: Optional[float] = None,
    ) -> List[Path]:
        """Delete inactive files in ``directory`` older than ``max_age`` seconds."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        cutoff = (now if now is not None else time.time()) - max_age
        removed: List[Path] = []
        for entry in directory.iterdir():
            if not entry.is_file():
                continue
            try:
                modified = entry.stat().st_mtime
            except OSError:
                continue
            if modified < cutoff and self.delete_if_inactive(entry):
                removed.append(entry)
        if removed:
            logger.info("Swept %d stale temp files from %s", len(removed), directory)
        return removed

    def cancel_pending(self) -> None:
        """Cancel deferred deletions that have not fired yet."""
        with self._timers_lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
