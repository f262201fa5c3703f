"""Copying artifact contents to the system clipboard."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Callable, Optional

from snapshare.exceptions import ClipboardCapacityError, FilesystemError
from snapshare.runtime.collaborators import ClipboardBackend
from snapshare.runtime.file_tracker import ArtifactFileTracker
from snapshare.runtime.janitor import FileJanitor
from snapshare.schemas import Artifact, ArtifactKind

logger = logging.getLogger(__name__)

PNG_TYPE = "public.png"
MPEG4_TYPE = "public.mpeg-4"
QUICKTIME_TYPE = "com.apple.quicktime-movie"
MOVIE_TYPE = "public.movie"


def clipboard_type_for(artifact: Artifact) -> str:
    """Clipboard type tag for an artifact, chosen by kind and file extension."""
    if artifact.kind == ArtifactKind.IMAGE:
        return PNG_TYPE
    extension = artifact.path.suffix.lower().lstrip(".")
    if extension == "mp4":
        return MPEG4_TYPE
    if extension == "mov":
        return QUICKTIME_TYPE
    return MOVIE_TYPE


class ClipboardCopier:
    """Writes an artifact's bytes to the clipboard while protecting its file.

    ``start`` registers the path with the tracker before the worker is even
    submitted, so no concurrent cleanup can delete it. On success the
    registration is released and the temp file deleted. On failure the file
    and its registration are left in place; whoever resolves the failure must
    call ``release``.
    """

    def __init__(self, backend: ClipboardBackend, tracker: ArtifactFileTracker, janitor: FileJanitor):
        self.backend = backend
        self.tracker = tracker
        self.janitor = janitor

    def start(
        self,
        executor: Executor,
        artifact: Artifact,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> "Future[None]":
        """Protect the file, then run ``copy`` on ``executor``."""
        self.tracker.register(artifact.path)
        return executor.submit(self.copy, artifact, on_progress)

    def copy(self, artifact: Artifact, on_progress: Optional[Callable[[float], None]] = None) -> None:
        """Copy synchronously; the caller must already hold a registration.

        Raises:
            ClipboardCapacityError: The clipboard rejected the write
            FilesystemError: The artifact could not be read
        """
        report = on_progress or (lambda fraction: None)
        report(0.1)
        try:
            data = artifact.read_bytes()
        except OSError as exc:
            raise FilesystemError(f"Could not read file: {exc}")
        report(0.5)
        type_tag = clipboard_type_for(artifact)
        report(0.8)
        try:
            written = self.backend.write_data(data, type_tag)
        except (OSError, MemoryError) as exc:
            raise ClipboardCapacityError(f"Failed to write to clipboard: {exc}")
        if not written:
            raise ClipboardCapacityError("Failed to write to clipboard - file may be too large")
        report(1.0)
        logger.info("Copied %s (%d bytes) to clipboard as %s", artifact.path, len(data), type_tag)
        self.release(artifact, delete=True)

    def release(self, artifact: Artifact, delete: bool = False) -> None:
        """Drop this copier's registration, optionally deleting the file."""
        self.tracker.unregister(artifact.path)
        if delete:
            self.janitor.delete_if_inactive(artifact.path)
