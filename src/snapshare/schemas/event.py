"""Event schemas."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from .base import SchemaBase


class EventType(str, Enum):
    ARTIFACT = "artifact"
    STATE = "state"
    ACTION = "action"
    UPLOAD = "upload"
    FILE = "file"
    ERROR = "error"


class Event(SchemaBase):
    event_id: str
    artifact_id: Optional[str] = Field(default=None)
    type: EventType
    timestamp: Optional[str] = Field(default=None)
    payload: Dict[str, Any]
    metadata: Dict[str, Any] = Field(default_factory=dict)
