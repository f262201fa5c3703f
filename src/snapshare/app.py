"""SnapShare facade: wires the pipeline components for an embedding GUI."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from .paths import config_file_path, temp_dir
from .runtime.clipboard import ClipboardCopier
from .runtime.collaborators import ClipboardBackend, Notifier, SaveDialog
from .runtime.coordinator import ActionCoordinator, CoordinatorState
from .runtime.file_tracker import ArtifactFileTracker
from .runtime.janitor import DEFAULT_STALE_AGE, FileJanitor
from .runtime.target_registry import TargetRegistry
from .runtime.ui_context import UIContext
from .runtime.upload_pipeline import DEFAULT_TIMEOUT, Transport, UploadPipeline
from .schemas import Artifact, ArtifactKind, kind_for_path
from .telemetry import TelemetryBus

logger = logging.getLogger(__name__)


class SnapShare:
    """Explicitly constructed owner of every pipeline component.

    The GUI supplies the OS collaborators (notifier, save dialog, clipboard)
    and, optionally, a UI context; everything else is built here.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        notifier: Notifier,
        save_dialog: SaveDialog,
        clipboard: ClipboardBackend,
        ui_context: Optional[UIContext] = None,
        transport: Optional[Transport] = None,
        executor: Optional[Executor] = None,
        temp_root: Optional[Path] = None,
        timeout: float = DEFAULT_TIMEOUT,
        cancel_upload_on_dismiss: bool = False,
        stale_age: float = DEFAULT_STALE_AGE,
    ):
        self.registry = registry
        self.notifier = notifier
        self.telemetry = TelemetryBus()
        self.tracker = ArtifactFileTracker()
        self.janitor = FileJanitor(self.tracker, on_deleted=lambda p: self.telemetry.file_deleted(str(p)))
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="snapshare")
        self.pipeline = UploadPipeline(self.janitor, transport=transport, timeout=timeout)
        self.copier = ClipboardCopier(clipboard, self.tracker, self.janitor)
        self.coordinator = ActionCoordinator(
            pipeline=self.pipeline,
            copier=self.copier,
            janitor=self.janitor,
            notifier=notifier,
            save_dialog=save_dialog,
            clipboard=clipboard,
            target_provider=registry.current,
            executor=self.executor,
            ui_context=ui_context,
            telemetry=self.telemetry,
            cancel_upload_on_dismiss=cancel_upload_on_dismiss,
        )
        self.temp_dir = temp_dir(temp_root)
        self.janitor.sweep_stale(self.temp_dir, max_age=stale_age)

    @classmethod
    def from_config_dir(
        cls,
        notifier: Notifier,
        save_dialog: SaveDialog,
        clipboard: ClipboardBackend,
        config_dir: Optional[str] = None,
        **kwargs,
    ) -> "SnapShare":
        """Build from the targets file in ``config_dir`` (or the default location)."""
        registry = TargetRegistry(config_file_path(config_dir))
        return cls(registry, notifier, save_dialog, clipboard, **kwargs)

    @property
    def is_busy(self) -> bool:
        return self.coordinator.is_uploading

    @property
    def state(self) -> CoordinatorState:
        return self.coordinator.state

    def capture_finished(
        self,
        path: Union[str, Path],
        kind: Optional[ArtifactKind] = None,
        data: Optional[bytes] = None,
    ) -> bool:
        """Hand a finished capture to the coordinator."""
        path = Path(path)
        if kind is None:
            try:
                kind = kind_for_path(path)
            except ValueError as exc:
                logger.error("Unsupported capture %s: %s", path, exc)
                self.notifier.notify("Capture Failed", f"Unsupported file type: {path.name}")
                return False
        if not path.exists():
            # Reported as a failed capture by the coordinator
            return self.coordinator.artifact_ready(Artifact(path=path, kind=kind, data=data))
        return self.coordinator.artifact_ready(Artifact.from_file(path, kind=kind, data=data))

    def shutdown(self, wait: bool = True) -> None:
        self.janitor.cancel_pending()
        if self._owns_executor:
            self.executor.shutdown(wait=wait)
