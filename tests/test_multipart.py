"""Tests for multipart upload request construction."""

import re

import pytest

from snapshare.exceptions import InvalidConfigurationError, UploadCancelledError
from snapshare.runtime.multipart import (
    CancelToken,
    ProgressBody,
    build_upload_request,
    new_boundary,
    validate_request_url,
)
from snapshare.schemas import ArtifactKind
from tests.helpers.fakes import make_artifact, make_target


class TestRequestUrlValidation:
    @pytest.mark.parametrize("url", ["https://x.example/api/upload", "http://localhost:3000/u", "  https://a.b/c  "])
    def test_accepts_absolute_http_urls(self, url):
        assert validate_request_url(url) == url.strip()

    @pytest.mark.parametrize("url", ["", "not a url", "/relative/path", "ftp://files.example/x", "https://"])
    def test_rejects_unusable_urls(self, url):
        with pytest.raises(InvalidConfigurationError):
            validate_request_url(url)


class TestBuildUploadRequest:
    def test_image_body_and_headers(self, tmp_path):
        artifact = make_artifact(tmp_path, ArtifactKind.IMAGE, content=b"PNGDATA")
        target = make_target(headers=[("X-Foo", "Bar")], file_form_name="file")

        request = build_upload_request(artifact, target)

        assert [k for k in request.headers if k.lower() == "x-foo"] == ["X-Foo"]
        assert request.headers["X-Foo"] == "Bar"
        assert b'filename="screenshot.png"' in request.body
        assert b"Content-Type: image/png" in request.body
        assert b'name="file"' in request.body
        assert b"PNGDATA" in request.body

    def test_video_uses_canonical_name_and_type(self, tmp_path):
        artifact = make_artifact(tmp_path, ArtifactKind.VIDEO, content=b"MOOV", name="raw.mov")
        request = build_upload_request(artifact, make_target(file_form_name="upload"))
        assert b'name="upload"; filename="recording.mp4"' in request.body
        assert b"Content-Type: video/mp4\r\n\r\nMOOV\r\n" in request.body

    def test_boundary_used_consistently(self, tmp_path):
        artifact = make_artifact(tmp_path)
        request = build_upload_request(artifact, make_target())

        assert re.fullmatch(r"Boundary-[0-9A-F-]{36}", request.boundary)
        assert request.content_type == f"multipart/form-data; boundary={request.boundary}"
        assert request.body.startswith(f"--{request.boundary}\r\n".encode())
        assert request.body.endswith(f"\r\n--{request.boundary}--\r\n".encode())
        assert request.body.count(request.boundary.encode()) == 2

    def test_boundary_is_fresh_per_request(self, tmp_path):
        artifact = make_artifact(tmp_path)
        target = make_target()
        first = build_upload_request(artifact, target)
        second = build_upload_request(artifact, target)
        assert first.boundary != second.boundary
        assert new_boundary() != new_boundary()

    def test_later_header_wins(self, tmp_path):
        artifact = make_artifact(tmp_path)
        target = make_target(headers=[("Authorization", "old"), ("authorization", "new")])
        request = build_upload_request(artifact, target)
        assert request.headers["Authorization"] == "new"
        assert len([k for k in request.headers if k.lower() == "authorization"]) == 1

    def test_header_values_sent_as_configured(self, tmp_path):
        artifact = make_artifact(tmp_path)
        target = make_target(headers=[("X-Signature", " abc= ")])
        request = build_upload_request(artifact, target)
        assert request.headers["X-Signature"] == " abc= "

    def test_in_memory_buffer_preferred(self, tmp_path):
        artifact = make_artifact(tmp_path, content=b"on-disk")
        request = build_upload_request(artifact, make_target(), data=b"in-memory")
        assert b"in-memory" in request.body
        assert b"on-disk" not in request.body

    def test_invalid_url_raises_before_reading_file(self, tmp_path):
        artifact = make_artifact(tmp_path)
        artifact.path.unlink()
        with pytest.raises(InvalidConfigurationError):
            build_upload_request(artifact, make_target(url="nope"))


class TestProgressBody:
    def test_reports_cumulative_fraction(self):
        fractions = []
        body = ProgressBody(b"0123456789", on_progress=fractions.append)
        chunks = [body.read(4), body.read(4), body.read(4), body.read(4)]
        assert b"".join(chunks) == b"0123456789"
        assert fractions == [0.4, 0.8, 1.0]
        assert len(body) == 10

    def test_iteration_yields_whole_body(self):
        body = ProgressBody(b"abcdef", chunk_size=4)
        assert list(body) == [b"abcd", b"ef"]

    def test_cancel_token_aborts_read(self):
        token = CancelToken()
        body = ProgressBody(b"abcdef", cancel_token=token)
        body.read(2)
        token.cancel()
        with pytest.raises(UploadCancelledError):
            body.read(2)
