"""Captured media artifact records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo


class ArtifactKind(str, Enum):
    """Kinds of media a capture can produce."""
    IMAGE = "image"
    VIDEO = "video"


IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".tiff"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v"}

# Canonical upload filename and MIME type per kind
UPLOAD_FILENAMES = {
    ArtifactKind.IMAGE: ("screenshot.png", "image/png"),
    ArtifactKind.VIDEO: ("recording.mp4", "video/mp4"),
}


def kind_for_path(path: Union[str, Path]) -> ArtifactKind:
    """Infer the artifact kind from a file extension."""
    suffix = Path(path).suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return ArtifactKind.IMAGE
    if suffix in VIDEO_EXTENSIONS:
        return ArtifactKind.VIDEO
    raise ValueError(f"Cannot infer artifact kind from extension '{suffix}'")


def _now_iso() -> str:
    return datetime.now(ZoneInfo("UTC")).isoformat()


@dataclass(frozen=True)
class Artifact:
    """A finished capture: the temp file plus an optional in-memory copy.

    When ``data`` is present it is exactly the file contents at capture time
    and is treated as read-only by every consumer.
    """
    path: Path
    kind: ArtifactKind
    size_bytes: int = 0
    created_at: str = field(default_factory=_now_iso)  # ISO-8601
    data: Optional[bytes] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        kind: Optional[ArtifactKind] = None,
        data: Optional[bytes] = None,
    ) -> "Artifact":
        """Build an artifact for a file that already exists on disk."""
        path = Path(path)
        resolved_kind = kind or kind_for_path(path)
        size = len(data) if data is not None else path.stat().st_size
        return cls(path=path, kind=resolved_kind, size_bytes=size, data=data)

    @property
    def upload_filename(self) -> str:
        return UPLOAD_FILENAMES[self.kind][0]

    @property
    def mime_type(self) -> str:
        return UPLOAD_FILENAMES[self.kind][1]

    def read_bytes(self) -> bytes:
        """Return the in-memory buffer, or load the file contents."""
        if self.data is not None:
            return self.data
        return self.path.read_bytes()
