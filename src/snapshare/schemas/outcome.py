"""Upload and action outcome records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class FailureKind(str, Enum):
    INVALID_CONFIGURATION = "invalid_configuration"
    TRANSPORT = "transport"
    SERVER = "server"
    PROTOCOL = "protocol"
    CLIPBOARD_CAPACITY = "clipboard_capacity"
    FILESYSTEM = "filesystem"


class ActionKind(str, Enum):
    SAVE = "save"
    COPY = "copy"
    UPLOAD = "upload"
    DISMISS = "dismiss"


@dataclass(frozen=True)
class UploadSuccess:
    url: str
    ok: bool = True


@dataclass(frozen=True)
class UploadFailure:
    kind: FailureKind
    reason: str
    status_code: Optional[int] = None
    cancelled: bool = False  # aborted through the cancel token
    ok: bool = False


UploadOutcome = Union[UploadSuccess, UploadFailure]


@dataclass(frozen=True)
class ActionResult:
    """Terminal result of one coordinator action on one artifact."""
    action: ActionKind
    ok: bool
    url: Optional[str] = None
    destination: Optional[Path] = None
    failure: Optional[UploadFailure] = None
    cancelled: bool = False
