"""
Custom exception classes for SnapShare.

Each pipeline error carries the ``FailureKind`` it maps to, so the coordinator
can turn any of them into an ``UploadFailure`` without inspecting the type.
"""

from typing import Optional

from snapshare.schemas.outcome import FailureKind, UploadFailure


class SnapShareError(Exception):
    """Base exception for all SnapShare errors."""

    kind: FailureKind = FailureKind.TRANSPORT

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_failure(self) -> UploadFailure:
        return UploadFailure(kind=self.kind, reason=self.message)


class InvalidConfigurationError(SnapShareError):
    """Upload target cannot be used (e.g. unparseable request URL)."""

    kind = FailureKind.INVALID_CONFIGURATION


class TransportError(SnapShareError):
    """Network-level failure: DNS, TLS, connection reset, timeout."""

    kind = FailureKind.TRANSPORT


class UploadCancelledError(TransportError):
    """Upload aborted through its cancel token."""

    def __init__(self, message: str = "Upload cancelled"):
        super().__init__(message)

    def to_failure(self) -> UploadFailure:
        return UploadFailure(kind=self.kind, reason=self.message, cancelled=True)


class ServerError(SnapShareError):
    """Server answered with an HTTP status >= 400."""

    kind = FailureKind.SERVER

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Server returned error: {status_code}")

    def to_failure(self) -> UploadFailure:
        return UploadFailure(kind=self.kind, reason=self.message, status_code=self.status_code)


class ProtocolError(SnapShareError):
    """Response body is not the expected JSON document."""

    kind = FailureKind.PROTOCOL

    def __init__(self, message: str = "Invalid server response"):
        super().__init__(message)


class ClipboardCapacityError(SnapShareError):
    """Clipboard rejected the write, typically because the payload is too large."""

    kind = FailureKind.CLIPBOARD_CAPACITY


class FilesystemError(SnapShareError):
    """Save, copy, read or delete of an artifact file failed."""

    kind = FailureKind.FILESYSTEM


class ConfigLoadError(Exception):
    """Error loading or writing the upload targets file."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        self.message = message
        super().__init__(f"Error loading {file_name}: {message}")
