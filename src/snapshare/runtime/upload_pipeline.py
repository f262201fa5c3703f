"""Multipart upload of artifacts to a configured HTTP target."""

from __future__ import annotations

import json
import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional

from snapshare.exceptions import (
    FilesystemError,
    InvalidConfigurationError,
    ProtocolError,
    ServerError,
    SnapShareError,
    TransportError,
)
from snapshare.runtime.janitor import FileJanitor
from snapshare.runtime.multipart import (
    CancelToken,
    ProgressBody,
    UploadRequest,
    build_upload_request,
    validate_request_url,
)
from snapshare.schemas import (
    Artifact,
    FailureKind,
    UploadFailure,
    UploadOutcome,
    UploadSuccess,
    UploadTarget,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300

# transport(request, body, timeout) -> response with .status_code and .content
Transport = Callable[[UploadRequest, ProgressBody, float], Any]


def parse_upload_response(status_code: int, content: Optional[bytes]) -> str:
    """Return ``files[0].url`` from a server response or raise.

    Raises:
        ServerError: status_code >= 400
        ProtocolError: body is not JSON or lacks ``files[0].url``
    """
    if status_code >= 400:
        raise ServerError(status_code)
    if not content:
        raise ProtocolError()
    try:
        data = json.loads(content)
    except (ValueError, UnicodeDecodeError):
        raise ProtocolError()
    if not isinstance(data, dict):
        raise ProtocolError()
    files = data.get("files")
    if not isinstance(files, list) or not files or not isinstance(files[0], dict):
        raise ProtocolError()
    url = files[0].get("url")
    if not isinstance(url, str):
        raise ProtocolError()
    return url


def _requests_transport(request: UploadRequest, body: ProgressBody, timeout: float) -> Any:
    import requests

    try:
        return requests.post(request.url, headers=request.headers, data=body, timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(str(exc))


class UploadPipeline:
    """Builds, sends and interprets one upload per call.

    ``upload`` blocks and always returns an outcome; ``upload_async`` runs it on
    an executor. Only a successful upload releases the artifact's temp file
    (through the janitor, which honours the file tracker). Failed uploads keep
    the file so the caller can retry, save or copy it. No retries happen here.
    """

    def __init__(
        self,
        janitor: FileJanitor,
        transport: Optional[Transport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.janitor = janitor
        self.transport = transport or _requests_transport
        self.timeout = timeout

    def upload(
        self,
        artifact: Artifact,
        target: UploadTarget,
        on_progress: Optional[Callable[[float], None]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> UploadOutcome:
        try:
            request = build_upload_request(artifact, target)
        except InvalidConfigurationError as exc:
            logger.error("Invalid upload URL for target %s: %r", target.name, target.request_url)
            return exc.to_failure()
        except OSError as exc:
            logger.error("Could not read artifact %s: %s", artifact.path, exc)
            return FilesystemError(f"Could not read file: {exc}").to_failure()

        logger.info(
            "Uploading %s (%d bytes) to %s", artifact.upload_filename, len(request.body), request.url
        )
        body = ProgressBody(request.body, on_progress=on_progress, cancel_token=cancel_token)
        try:
            response = self.transport(request, body, self.timeout)
            url = parse_upload_response(response.status_code, getattr(response, "content", None))
        except SnapShareError as exc:
            logger.error("Upload of %s failed: %s", artifact.path, exc.message)
            return exc.to_failure()
        except OSError as exc:
            logger.error("Upload of %s failed: %s", artifact.path, exc)
            return UploadFailure(kind=FailureKind.TRANSPORT, reason=str(exc))

        logger.info("Upload successful, URL: %s", url)
        self.janitor.delete_if_inactive(artifact.path)
        return UploadSuccess(url=url)

    def upload_async(
        self,
        executor: Executor,
        artifact: Artifact,
        target: UploadTarget,
        on_progress: Optional[Callable[[float], None]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> "Future[UploadOutcome]":
        """Submit ``upload`` to ``executor``.

        An unusable request URL fails synchronously: the returned future is
        already resolved and no work is submitted.
        """
        try:
            validate_request_url(target.request_url)
        except InvalidConfigurationError as exc:
            logger.error("Invalid upload URL for target %s: %r", target.name, target.request_url)
            future: "Future[UploadOutcome]" = Future()
            future.set_result(exc.to_failure())
            return future
        return executor.submit(self.upload, artifact, target, on_progress, cancel_token)
