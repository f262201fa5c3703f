"""multipart/form-data request construction for artifact uploads."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional
from urllib.parse import urlsplit
from uuid import uuid4

from requests.structures import CaseInsensitiveDict

from snapshare.exceptions import InvalidConfigurationError, UploadCancelledError
from snapshare.schemas import Artifact, UploadTarget

CRLF = "\r\n"
CHUNK_SIZE = 64 * 1024


def new_boundary() -> str:
    return f"Boundary-{str(uuid4()).upper()}"


def validate_request_url(url: str) -> str:
    """Return ``url`` stripped, or raise if it is not an absolute http(s) URL."""
    candidate = (url or "").strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise InvalidConfigurationError(f"Invalid upload URL: {exc}")
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        raise InvalidConfigurationError("Invalid upload URL")
    return candidate


def build_multipart_body(boundary: str, field_name: str, filename: str, content_type: str, data: bytes) -> bytes:
    head = (
        f"--{boundary}{CRLF}"
        f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"{CRLF}'
        f"Content-Type: {content_type}{CRLF}{CRLF}"
    )
    tail = f"{CRLF}--{boundary}--{CRLF}"
    return head.encode("utf-8") + data + tail.encode("utf-8")


@dataclass(frozen=True)
class UploadRequest:
    """One fully built upload attempt. Never reused across attempts."""
    url: str
    headers: CaseInsensitiveDict
    body: bytes = field(repr=False)
    boundary: str

    @property
    def content_type(self) -> str:
        return self.headers["Content-Type"]


def build_upload_request(
    artifact: Artifact,
    target: UploadTarget,
    data: Optional[bytes] = None,
    boundary: Optional[str] = None,
) -> UploadRequest:
    """Build the POST request for ``artifact`` against ``target``.

    Configured headers are applied in list order on top of the multipart
    Content-Type, so a later header with the same key wins. Keys compare
    case-insensitively, as HTTP header names do.
    """
    url = validate_request_url(target.request_url)
    boundary = boundary or new_boundary()
    headers = CaseInsensitiveDict()
    headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
    for header in target.headers:
        headers[header.key] = header.value
    payload = data if data is not None else artifact.read_bytes()
    body = build_multipart_body(
        boundary,
        target.file_form_name,
        artifact.upload_filename,
        artifact.mime_type,
        payload,
    )
    return UploadRequest(url=url, headers=headers, body=body, boundary=boundary)


class CancelToken:
    """Cooperative cancellation flag checked while the body streams."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressBody:
    """File-like view over a request body that reports the fraction sent.

    HTTP clients read it in chunks; every read reports the cumulative fraction
    to ``on_progress`` and checks the cancel token.
    """

    def __init__(
        self,
        body: bytes,
        on_progress: Optional[Callable[[float], None]] = None,
        cancel_token: Optional[CancelToken] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self._body = body
        self._offset = 0
        self._on_progress = on_progress
        self._cancel_token = cancel_token
        self._chunk_size = chunk_size

    def __len__(self) -> int:
        return len(self._body)

    def read(self, size: int = -1) -> bytes:
        if self._cancel_token is not None and self._cancel_token.cancelled:
            raise UploadCancelledError()
        if size is None or size < 0:
            size = len(self._body) - self._offset
        chunk = self._body[self._offset:self._offset + size]
        self._offset += len(chunk)
        if chunk and self._on_progress is not None:
            self._on_progress(self._offset / len(self._body))
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                return
            yield chunk
