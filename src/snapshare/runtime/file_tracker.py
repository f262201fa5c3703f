"""Reference-counted tracking of temp files that must not be deleted yet."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from pathlib import Path
from typing import FrozenSet, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _key(path: PathLike) -> str:
    return str(Path(path))


class ArtifactFileTracker:
    """Set of file paths held by an in-flight operation (e.g. a clipboard write).

    ``register`` and ``unregister`` are reference counted: a path stays active
    until every registration has been released. All operations take a single
    lock held only for the counter mutation or lookup; no I/O happens under it.
    Any routine that deletes an artifact file must check ``is_active`` right
    before deleting and skip the delete when it returns True.
    """

    def __init__(self) -> None:
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def register(self, path: PathLike) -> None:
        key = _key(path)
        with self._lock:
            self._counts[key] += 1
        logger.debug("Registered active file %s", key)

    def unregister(self, path: PathLike) -> None:
        """Release one registration; unknown paths are ignored."""
        key = _key(path)
        with self._lock:
            count = self._counts.get(key, 0)
            if count <= 1:
                self._counts.pop(key, None)
            else:
                self._counts[key] = count - 1
        logger.debug("Unregistered active file %s", key)

    def is_active(self, path: PathLike) -> bool:
        key = _key(path)
        with self._lock:
            return self._counts.get(key, 0) > 0

    def active_paths(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._counts)
