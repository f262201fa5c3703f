"""Schema exports."""

from .base import SchemaBase
from .artifact import Artifact, ArtifactKind, kind_for_path
from .event import Event, EventType
from .outcome import (
    ActionKind,
    ActionResult,
    FailureKind,
    UploadFailure,
    UploadOutcome,
    UploadSuccess,
)
from .upload import HeaderConfig, UploadTarget
from .registry import SCHEMA_REGISTRY, get_schema_json

__all__ = [
    "SchemaBase",
    "Artifact",
    "ArtifactKind",
    "kind_for_path",
    "Event",
    "EventType",
    "ActionKind",
    "ActionResult",
    "FailureKind",
    "UploadFailure",
    "UploadOutcome",
    "UploadSuccess",
    "HeaderConfig",
    "UploadTarget",
    "SCHEMA_REGISTRY",
    "get_schema_json",
]
