"""Action coordinator: what happens to a finished capture.

A finished artifact moves through::

    IDLE -> ARTIFACT_READY -> {SAVING | COPYING | UPLOADING} -> IDLE
                                         |
                                         v
                               CLIPBOARD_FALLBACK -> {SAVING | UPLOADING | IDLE}

Only one action may be chosen per artifact. Worker results are posted back to
the UI context before any state is touched, and every action resolves its
session future exactly once, after notification, state reset and cleanup.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, FrozenSet, Optional
from uuid import uuid4

from snapshare.exceptions import (
    ClipboardCapacityError,
    FilesystemError,
    InvalidConfigurationError,
    SnapShareError,
    TransportError,
)
from snapshare.runtime.clipboard import ClipboardCopier
from snapshare.runtime.collaborators import ClipboardBackend, Notifier, SaveDialog
from snapshare.runtime.janitor import FileJanitor
from snapshare.runtime.multipart import CancelToken
from snapshare.runtime.progress import ProgressEstimator, format_file_size
from snapshare.runtime.ui_context import InlineUIContext, UIContext
from snapshare.runtime.upload_pipeline import UploadPipeline
from snapshare.schemas import (
    ActionKind,
    ActionResult,
    Artifact,
    ArtifactKind,
    UploadFailure,
    UploadTarget,
)
from snapshare.telemetry import TelemetryBus

logger = logging.getLogger(__name__)

LARGE_FILE_THRESHOLD = 100 * 1024 * 1024
SAVE_GRACE_DELAY = 2.0


class CoordinatorState(str, Enum):
    IDLE = "idle"
    ARTIFACT_READY = "artifact_ready"
    SAVING = "saving"
    COPYING = "copying"
    UPLOADING = "uploading"
    CLIPBOARD_FALLBACK = "clipboard_fallback"


class FallbackChoice(str, Enum):
    SAVE = "save"
    UPLOAD = "upload"
    CANCEL = "cancel"


@dataclass
class ArtifactSession:
    """Everything the coordinator tracks for one artifact instance."""
    artifact: Artifact
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])
    state: CoordinatorState = CoordinatorState.ARTIFACT_READY
    progress: Optional[ProgressEstimator] = None
    cancel_token: Optional[CancelToken] = None
    observed: bool = True
    result: "Future[ActionResult]" = field(default_factory=Future)


def suggested_save_name(artifact: Artifact, now: Optional[float] = None) -> str:
    stamp = int(now if now is not None else time.time())
    if artifact.kind == ArtifactKind.VIDEO:
        return f"Recording_{stamp}.mp4"
    return f"Screenshot_{stamp}.png"


def _as_error(exc: BaseException) -> SnapShareError:
    if isinstance(exc, SnapShareError):
        return exc
    if isinstance(exc, OSError):
        return FilesystemError(str(exc))
    return TransportError(str(exc))


def _copy_file(source: Path, destination: Path) -> bool:
    """Copy ``source`` over ``destination``. Returns False if they are one file."""
    try:
        if destination.exists():
            if os.path.samefile(source, destination):
                return False
            destination.unlink()
        shutil.copy2(source, destination)
    except OSError as exc:
        raise FilesystemError(f"Could not save file: {exc}")
    return True


class ActionCoordinator:
    """State machine tying a finished capture to save, copy and upload.

    ``is_uploading`` is the busy flag that gates new captures. It is set when an
    artifact arrives and cleared on every exit path, including dismissal of the
    popup while an upload is still in flight. Dismissal stops observing an
    upload; the transfer runs to completion and its terminal effects still
    fire, unless ``cancel_upload_on_dismiss`` is enabled.
    """

    def __init__(
        self,
        *,
        pipeline: UploadPipeline,
        copier: ClipboardCopier,
        janitor: FileJanitor,
        notifier: Notifier,
        save_dialog: SaveDialog,
        clipboard: ClipboardBackend,
        target_provider: Callable[[], Optional[UploadTarget]],
        executor: Executor,
        ui_context: Optional[UIContext] = None,
        telemetry: Optional[TelemetryBus] = None,
        on_progress: Optional[Callable[[ArtifactSession], None]] = None,
        save_grace_delay: float = SAVE_GRACE_DELAY,
        large_file_threshold: int = LARGE_FILE_THRESHOLD,
        cancel_upload_on_dismiss: bool = False,
    ):
        self.pipeline = pipeline
        self.copier = copier
        self.janitor = janitor
        self.notifier = notifier
        self.save_dialog = save_dialog
        self.clipboard = clipboard
        self.target_provider = target_provider
        self.executor = executor
        self.ui = ui_context or InlineUIContext()
        self.telemetry = telemetry or TelemetryBus()
        self.on_progress = on_progress
        self.save_grace_delay = save_grace_delay
        self.large_file_threshold = large_file_threshold
        self.cancel_upload_on_dismiss = cancel_upload_on_dismiss

        self.is_uploading = False
        self._session: Optional[ArtifactSession] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CoordinatorState:
        session = self._session
        return session.state if session else CoordinatorState.IDLE

    @property
    def session(self) -> Optional[ArtifactSession]:
        return self._session

    def _set_state(self, session: ArtifactSession, new_state: CoordinatorState) -> None:
        with self._lock:
            old_state = session.state
            session.state = new_state
        logger.info("Artifact %s: %s -> %s", session.session_id, old_state.value, new_state.value)
        self.telemetry.state_changed(session.session_id, old_state.value, new_state.value)

    def _claim(
        self,
        allowed: FrozenSet[CoordinatorState],
        new_state: CoordinatorState,
        action: ActionKind,
    ) -> Optional[ArtifactSession]:
        """Atomically move the current session from an allowed state."""
        with self._lock:
            session = self._session
            if session is None or session.state not in allowed:
                current = session.state.value if session else CoordinatorState.IDLE.value
                logger.warning("Action %s not available in state %s", action.value, current)
                return None
            old_state = session.state
            session.state = new_state
        logger.info("Artifact %s: %s -> %s", session.session_id, old_state.value, new_state.value)
        self.telemetry.state_changed(session.session_id, old_state.value, new_state.value)
        self.telemetry.action_started(session.session_id, action.value)
        return session

    def _detach(self, session: ArtifactSession) -> None:
        with self._lock:
            if self._session is session:
                self._session = None
                self.is_uploading = False

    def _finish(self, session: ArtifactSession, result: ActionResult) -> None:
        """Terminal transition: back to IDLE, busy flag cleared, future resolved."""
        self._set_state(session, CoordinatorState.IDLE)
        self._detach(session)
        self.telemetry.action_completed(
            session.session_id,
            result.action.value,
            result.ok,
            result.url or (str(result.destination) if result.destination else None),
        )
        if not session.result.done():
            session.result.set_result(result)

    def _fail(self, session: ArtifactSession, action: ActionKind, failure: UploadFailure, title: str) -> None:
        """Notify, reset and keep the artifact file."""
        logger.error("%s for %s: %s", title, session.artifact.path, failure.reason)
        self.telemetry.action_failed(session.session_id, action.value, failure.kind.value, failure.reason)
        self.notifier.notify(title, failure.reason)
        self._finish(session, ActionResult(action=action, ok=False, failure=failure))

    def _progress_callback(self, session: ArtifactSession) -> Callable[[float], None]:
        def report(fraction: float) -> None:
            self.ui.post(self._apply_progress, session, fraction)
        return report

    def _apply_progress(self, session: ArtifactSession, fraction: float) -> None:
        if session.progress is None:
            return
        session.progress.update(fraction)
        if session.observed and self.on_progress:
            self.on_progress(session)

    def _size_of(self, artifact: Artifact) -> int:
        if artifact.size_bytes:
            return artifact.size_bytes
        return artifact.path.stat().st_size

    # ------------------------------------------------------------------
    # Artifact arrival and dismissal
    # ------------------------------------------------------------------

    def artifact_ready(self, artifact: Artifact) -> bool:
        """Accept a finished capture. Returns False if it was not taken."""
        if not artifact.path.exists():
            if artifact.kind == ArtifactKind.VIDEO:
                self.notifier.notify("Recording Failed", "Could not find the recorded video file")
            else:
                self.notifier.notify("Capture Failed", "No screenshot was taken")
            logger.error("Artifact file %s does not exist", artifact.path)
            return False

        with self._lock:
            if self.is_uploading:
                logger.info("Already handling an artifact; skipping %s", artifact.path)
                return False
            self.is_uploading = True
            session = ArtifactSession(artifact=artifact)
            self._session = session

        logger.info("Artifact ready: %s (%s, %d bytes)", artifact.path, artifact.kind.value, artifact.size_bytes)
        self.telemetry.artifact_ready(session.session_id, artifact.kind.value, artifact.size_bytes)
        self.telemetry.state_changed(session.session_id, CoordinatorState.IDLE.value, session.state.value)
        return True

    def dismiss(self) -> None:
        """The popup was closed.

        Clears the busy flag, except while a save or copy still owns the
        session (those finish on their own and may prompt the user again).
        """
        with self._lock:
            session = self._session
            if session is None:
                self.is_uploading = False
                return
            session.observed = False
            state = session.state

        if state == CoordinatorState.ARTIFACT_READY:
            logger.info("Popup dismissed without action; keeping %s", session.artifact.path)
            self._finish(session, ActionResult(action=ActionKind.DISMISS, ok=False, cancelled=True))
        elif state == CoordinatorState.CLIPBOARD_FALLBACK:
            self.resolve_fallback(FallbackChoice.CANCEL)
        elif state == CoordinatorState.UPLOADING:
            logger.info("Popup dismissed during upload; no longer observing")
            self._detach(session)
            if self.cancel_upload_on_dismiss and session.cancel_token:
                session.cancel_token.cancel()
        else:
            # Save and copy still own the session until they resolve
            logger.info("Popup dismissed during %s", state.value)

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self) -> Optional["Future[ActionResult]"]:
        session = self._claim(
            frozenset({CoordinatorState.ARTIFACT_READY}), CoordinatorState.SAVING, ActionKind.SAVE
        )
        if session is None:
            return None
        self._start_save(session)
        return session.result

    def _start_save(self, session: ArtifactSession) -> None:
        # Save panels are UI objects; ask from the UI context, copy on a worker
        self.ui.post(self._ask_destination, session, suggested_save_name(session.artifact))

    def _ask_destination(self, session: ArtifactSession, suggested: str) -> None:
        try:
            destination = self.save_dialog.choose_destination(suggested)
        except Exception as exc:
            logger.exception("Save dialog failed")
            self._fail(session, ActionKind.SAVE, _as_error(exc).to_failure(), "Save Failed")
            return
        if destination is None:
            logger.info("Save cancelled; keeping %s", session.artifact.path)
            self._finish(session, ActionResult(action=ActionKind.SAVE, ok=False, cancelled=True))
            return
        destination = Path(destination)
        copy_future = self.executor.submit(_copy_file, session.artifact.path, destination)
        copy_future.add_done_callback(lambda f: self.ui.post(self._after_save, session, destination, f))

    def _after_save(self, session: ArtifactSession, destination: Path, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            self._fail(session, ActionKind.SAVE, _as_error(exc).to_failure(), "Save Failed")
            return
        if session.artifact.kind == ArtifactKind.VIDEO:
            self.notifier.notify("Video Saved", f"Recording saved to {destination.name}")
        else:
            self.notifier.notify("Screenshot Saved", f"Screenshot saved to {destination.name}")
        if future.result():
            # The save panel may still hold a read handle on the source
            self.janitor.delete_later(session.artifact.path, self.save_grace_delay)
        else:
            logger.info("Saved onto the artifact itself; keeping %s", destination)
        self._finish(session, ActionResult(action=ActionKind.SAVE, ok=True, destination=destination))

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy(self) -> Optional["Future[ActionResult]"]:
        session = self._claim(
            frozenset({CoordinatorState.ARTIFACT_READY}), CoordinatorState.COPYING, ActionKind.COPY
        )
        if session is None:
            return None
        artifact = session.artifact
        try:
            size = self._size_of(artifact)
        except OSError:
            failure = FilesystemError("Could not determine file size").to_failure()
            self._fail(session, ActionKind.COPY, failure, "Copy Failed")
            return session.result

        if artifact.kind == ArtifactKind.VIDEO:
            if size > self.large_file_threshold:
                self.notifier.notify(
                    "Large File",
                    f"This video is {size // 1024 // 1024}MB and may take a moment to process.",
                )
            self.notifier.notify("Copy Started", "Video is being copied to clipboard...")

        session.progress = ProgressEstimator(size)
        future = self.copier.start(self.executor, artifact, self._progress_callback(session))
        future.add_done_callback(lambda f: self.ui.post(self._after_copy, session, f))
        return session.result

    def _after_copy(self, session: ArtifactSession, future: Future) -> None:
        exc = future.exception()
        artifact = session.artifact
        if exc is None:
            if session.progress:
                session.progress.mark_complete()
            if artifact.kind == ArtifactKind.VIDEO:
                self.notifier.notify("Video Copied", "Video content copied to clipboard")
            else:
                self.notifier.notify("Screenshot Copied", "Image copied to clipboard")
            self._finish(session, ActionResult(action=ActionKind.COPY, ok=True))
            return

        error = _as_error(exc)
        if isinstance(error, ClipboardCapacityError):
            # File and tracker registration stay until the fallback resolves
            logger.warning("Clipboard rejected %s: %s", artifact.path, error.message)
            self.telemetry.action_failed(session.session_id, ActionKind.COPY.value, error.kind.value, error.message)
            self._set_state(session, CoordinatorState.CLIPBOARD_FALLBACK)
            label = format_file_size(self._size_of(artifact))
            self.notifier.notify(
                "File Too Large for Clipboard",
                f"This file ({label}) is too large to copy to the clipboard. Please use Save or Upload instead.",
            )
            return

        self.copier.release(artifact)
        self._fail(session, ActionKind.COPY, error.to_failure(), "Copy Failed")

    def resolve_fallback(self, choice: FallbackChoice) -> Optional["Future[ActionResult]"]:
        """Answer the oversized-clipboard prompt with Save, Upload or Cancel."""
        choice = FallbackChoice(choice)
        if choice == FallbackChoice.CANCEL:
            with self._lock:
                session = self._session
                if session is None or session.state != CoordinatorState.CLIPBOARD_FALLBACK:
                    logger.warning("No clipboard fallback pending")
                    return None
            self.copier.release(session.artifact)
            logger.info("Clipboard fallback cancelled; keeping %s", session.artifact.path)
            self._finish(session, ActionResult(action=ActionKind.COPY, ok=False, cancelled=True))
            return session.result

        new_state = CoordinatorState.SAVING if choice == FallbackChoice.SAVE else CoordinatorState.UPLOADING
        action = ActionKind.SAVE if choice == FallbackChoice.SAVE else ActionKind.UPLOAD
        session = self._claim(frozenset({CoordinatorState.CLIPBOARD_FALLBACK}), new_state, action)
        if session is None:
            return None
        self.copier.release(session.artifact)
        if choice == FallbackChoice.SAVE:
            self._start_save(session)
        else:
            self._start_upload(session)
        return session.result

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(self) -> Optional["Future[ActionResult]"]:
        session = self._claim(
            frozenset({CoordinatorState.ARTIFACT_READY}), CoordinatorState.UPLOADING, ActionKind.UPLOAD
        )
        if session is None:
            return None
        self._start_upload(session)
        return session.result

    def _start_upload(self, session: ArtifactSession) -> None:
        target = self.target_provider()
        if target is None:
            failure = InvalidConfigurationError("No upload destination configured").to_failure()
            self._fail(session, ActionKind.UPLOAD, failure, "Upload Failed")
            return
        artifact = session.artifact
        try:
            size = self._size_of(artifact)
        except OSError:
            failure = FilesystemError("Could not read file").to_failure()
            self._fail(session, ActionKind.UPLOAD, failure, "Upload Failed")
            return

        session.progress = ProgressEstimator(size)
        session.cancel_token = CancelToken()
        if artifact.kind == ArtifactKind.VIDEO:
            self.notifier.notify("Upload Started", "Video is being uploaded...")
        future = self.pipeline.upload_async(
            self.executor,
            artifact,
            target,
            on_progress=self._progress_callback(session),
            cancel_token=session.cancel_token,
        )
        future.add_done_callback(lambda f: self.ui.post(self._after_upload, session, f))

    def _after_upload(self, session: ArtifactSession, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Upload worker raised", exc_info=exc)
            outcome = _as_error(exc).to_failure()
        else:
            outcome = future.result()

        if outcome.ok:
            self.clipboard.write_text(outcome.url)
            if session.progress:
                session.progress.mark_complete()
            self.notifier.notify("Upload Complete", "URL copied to clipboard")
            self._finish(session, ActionResult(action=ActionKind.UPLOAD, ok=True, url=outcome.url))
            return

        if outcome.cancelled:
            logger.info("Upload of %s cancelled after dismissal", session.artifact.path)
            self.janitor.delete_if_inactive(session.artifact.path)
            self._finish(session, ActionResult(action=ActionKind.UPLOAD, ok=False, failure=outcome, cancelled=True))
            return

        self._fail(session, ActionKind.UPLOAD, outcome, "Upload Failed")
