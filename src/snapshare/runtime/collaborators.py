"""Protocols for the OS-facing collaborators the coordinator drives.

The concrete GUI integrations (notification center, save panel, system
pasteboard) live outside this package; these protocols are the seams. The small
implementations below are used for tests and headless runs.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers a titled, user-visible message."""

    def notify(self, title: str, body: str) -> None:
        ...


class SaveDialog(Protocol):
    """Asks the user for a destination; None means the user cancelled.

    Always called from the coordinator's UI context, never from a worker.
    """

    def choose_destination(self, suggested_name: str) -> Optional[Path]:
        ...


class ClipboardBackend(Protocol):
    """System clipboard access. Writes return False when rejected."""

    def write_data(self, data: bytes, type_tag: str) -> bool:
        ...

    def write_text(self, text: str) -> bool:
        ...


class LoggingNotifier:
    """Notifier that records messages and writes them to the log."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def notify(self, title: str, body: str) -> None:
        logger.info("Notification - %s: %s", title, body)
        with self._lock:
            self.messages.append((title, body))

    @property
    def titles(self) -> List[str]:
        with self._lock:
            return [title for title, _ in self.messages]


class MemoryClipboard:
    """In-memory clipboard with an optional capacity limit in bytes."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self.data: Optional[bytes] = None
        self.type_tag: Optional[str] = None
        self.text: Optional[str] = None

    def write_data(self, data: bytes, type_tag: str) -> bool:
        if self.max_bytes is not None and len(data) > self.max_bytes:
            return False
        self.data, self.type_tag, self.text = data, type_tag, None
        return True

    def write_text(self, text: str) -> bool:
        self.data, self.type_tag, self.text = None, None, text
        return True


class FixedSaveDialog:
    """Save dialog that always answers with the same destination."""

    def __init__(self, destination: Optional[Path]):
        self.destination = Path(destination) if destination else None
        self.requests: List[str] = []

    def choose_destination(self, suggested_name: str) -> Optional[Path]:
        self.requests.append(suggested_name)
        return self.destination
