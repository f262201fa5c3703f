"""Runtime components of the capture-to-upload pipeline."""

from .file_tracker import ArtifactFileTracker
from .janitor import FileJanitor
from .progress import ProgressEstimator, format_file_size, format_remaining
from .ui_context import InlineUIContext, QueueUIContext, UIContext
from .multipart import CancelToken, UploadRequest, build_upload_request
from .upload_pipeline import UploadPipeline, parse_upload_response
from .clipboard import ClipboardCopier, clipboard_type_for
from .collaborators import ClipboardBackend, Notifier, SaveDialog
from .target_registry import TargetRegistry
from .coordinator import ActionCoordinator, ArtifactSession, CoordinatorState, FallbackChoice

__all__ = [
    "ArtifactFileTracker",
    "FileJanitor",
    "ProgressEstimator",
    "format_file_size",
    "format_remaining",
    "InlineUIContext",
    "QueueUIContext",
    "UIContext",
    "CancelToken",
    "UploadRequest",
    "build_upload_request",
    "UploadPipeline",
    "parse_upload_response",
    "ClipboardCopier",
    "clipboard_type_for",
    "ClipboardBackend",
    "Notifier",
    "SaveDialog",
    "TargetRegistry",
    "ActionCoordinator",
    "ArtifactSession",
    "CoordinatorState",
    "FallbackChoice",
]
