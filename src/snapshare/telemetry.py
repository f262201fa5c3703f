"""Telemetry/event bus."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from snapshare.schemas import Event, EventType


def _now_iso() -> str:
    """Generate ISO-8601 timestamp."""
    return datetime.now(ZoneInfo("UTC")).isoformat()


@dataclass
class TelemetryBus:
    events: List[Event] = field(default_factory=list)
    max_events: Optional[int] = 1000

    def __post_init__(self):
        self._subscribers: List[Callable[[Event], None]] = []
        self._lock = threading.Lock()
        self._counter = 0

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        self._subscribers.append(callback)

    def emit(self, event: Event) -> None:
        """Record event and dispatch it to subscribers."""
        with self._lock:
            self.events.append(event)
            if self.max_events is not None and len(self.events) > self.max_events:
                del self.events[: len(self.events) - self.max_events]
        for callback in list(self._subscribers):
            callback(event)

    def _make(self, name: str, type_: EventType, artifact_id: Optional[str], payload: Dict[str, Any]) -> Event:
        with self._lock:
            self._counter += 1
            event_id = f"{name}-{self._counter}"
        return Event(
            event_id=event_id,
            artifact_id=artifact_id,
            type=type_,
            timestamp=_now_iso(),
            payload={"event": name, **payload},
        )

    def artifact_ready(self, artifact_id: str, kind: str, size_bytes: int) -> None:
        self.emit(self._make("artifact_ready", EventType.ARTIFACT, artifact_id, {
            "kind": kind,
            "size_bytes": size_bytes,
        }))

    def state_changed(self, artifact_id: Optional[str], old: str, new: str) -> None:
        self.emit(self._make("state_changed", EventType.STATE, artifact_id, {"from": old, "to": new}))

    def action_started(self, artifact_id: str, action: str) -> None:
        self.emit(self._make("action_started", EventType.ACTION, artifact_id, {"action": action}))

    def action_completed(self, artifact_id: str, action: str, ok: bool, detail: Optional[str] = None) -> None:
        self.emit(self._make("action_completed", EventType.ACTION, artifact_id, {
            "action": action,
            "ok": ok,
            "detail": detail,
        }))

    def action_failed(self, artifact_id: str, action: str, kind: str, reason: str) -> None:
        self.emit(self._make("action_failed", EventType.ERROR, artifact_id, {
            "action": action,
            "kind": kind,
            "reason": reason,
        }))

    def file_deleted(self, path: str) -> None:
        self.emit(self._make("file_deleted", EventType.FILE, None, {"path": path}))

    def events_named(self, name: str) -> List[Event]:
        with self._lock:
            return [e for e in self.events if e.payload.get("event") == name]
