"""Tests for multipart bodies and the multipart POST builder."""

from __future__ import annotations

import contextlib
from pathlib import Path

import httpx
import pytest

from corenet.exceptions import UnreadableFile
from corenet.request import (
    FileField,
    FormField,
    MultipartBody,
    build_multipart,
    media_type_for,
    multipart_post_request,
)

URL = "https://api.example.com/upload"


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    path = tmp_path / "photo.JPG"
    path.write_bytes(b"\xff\xd8\xff\xe0jpeg-bytes")
    return path


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    path = tmp_path / "archive.zip"
    path.write_bytes(b"PK\x03\x04zip-bytes")
    return path


class TestMediaTypes:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("photo.JPG", "image/jpeg"),
            ("photo.jpeg", "image/jpeg"),
            ("scan.PNG", "image/png"),
            ("report.Pdf", "application/pdf"),
            ("notes.txt", "text/plain"),
            ("archive.zip", "application/octet-stream"),
            ("Makefile", "application/octet-stream"),
            ("archive.tar.gz", "application/octet-stream"),
        ],
    )
    def test_media_type_from_extension(self, filename: str, expected: str) -> None:
        assert media_type_for(filename) == expected

    def test_file_fields_infer_media_type(self, photo: Path, archive: Path) -> None:
        descriptor = multipart_post_request(
            "https://api.example.com/upload", files={"image": photo, "bundle": archive}
        )
        body = descriptor.body
        assert isinstance(body, MultipartBody)
        media_types = {p.name: p.media_type for p in body.parts if isinstance(p, FileField)}
        assert media_types == {"image": "image/jpeg", "bundle": "application/octet-stream"}


class TestPartOrder:
    def test_literals_then_files_in_mapping_order(self, photo: Path, archive: Path) -> None:
        body = build_multipart(
            form_data={"title": "Holiday", "album": "2024"},
            files={"second": archive, "first": photo},
        )
        assert [p.name for p in body.parts] == ["title", "album", "second", "first"]
        assert isinstance(body.parts[0], FormField)
        assert isinstance(body.parts[2], FileField)

    def test_builder_is_a_post_with_multipart_content_type(self, photo: Path) -> None:
        descriptor = multipart_post_request(
            "https://api.example.com/upload", form_data={"a": "1"}, files={"f": photo}
        )
        assert descriptor.method == "POST"
        assert descriptor.wire_headers()["content-type"].startswith(
            "multipart/form-data; boundary="
        )


def _encoded(body: MultipartBody) -> httpx.Request:
    """The request httpx builds for *body*, already read."""
    with contextlib.ExitStack() as uploads:
        request = httpx.Request(
            "POST", URL, headers={"Content-Type": body.media_type}, **body.encode(uploads)
        )
        request.read()
    return request


class TestEncoding:
    def test_encoded_body_layout(self, photo: Path) -> None:
        body = build_multipart({"title": "Holiday"}, {"image": photo}, boundary="XyZ")
        assert _encoded(body).content == (
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="title"\r\n\r\n'
            b"Holiday\r\n"
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="image"; filename="photo.JPG"\r\n'
            b"Content-Type: image/jpeg\r\n\r\n"
            b"\xff\xd8\xff\xe0jpeg-bytes\r\n"
            b"--XyZ--\r\n"
        )

    def test_content_length_matches_encoding(self, photo: Path, archive: Path) -> None:
        request = _encoded(build_multipart({"a": "ü"}, {"p": photo, "z": archive}))
        assert request.headers["content-length"] == str(len(request.content))

    def test_boundary_follows_media_type(self, photo: Path) -> None:
        body = build_multipart({"a": "1"}, {"p": photo})
        request = _encoded(body)
        assert request.headers["content-type"] == body.media_type
        assert request.content.startswith(f"--{body.boundary}\r\n".encode())

    def test_quotes_are_escaped_in_names(self) -> None:
        body = build_multipart({'we"ird\nname': "v"}, boundary="b")
        assert b'name="we%22ird%0Aname"' in _encoded(body).content

    def test_file_is_read_at_dispatch_time(self, tmp_path: Path) -> None:
        path = tmp_path / "late.txt"
        path.write_text("before")
        body = build_multipart(files={"f": path}, boundary="b")
        path.write_text("after!")
        assert b"after!" in _encoded(body).content

    def test_files_are_closed_with_the_upload_scope(self, photo: Path) -> None:
        body = build_multipart(files={"p": photo})
        with contextlib.ExitStack() as uploads:
            entries = body.encode(uploads)["files"]
            handle = entries[0][1][1]
            assert not handle.closed
        assert handle.closed


class TestUnreadableFiles:
    def test_missing_file_fails_at_build_time(self, tmp_path: Path) -> None:
        with pytest.raises(UnreadableFile) as exc_info:
            multipart_post_request(
                "https://api.example.com/upload", files={"f": tmp_path / "missing.png"}
            )
        assert exc_info.value.path == str(tmp_path / "missing.png")
        assert exc_info.value.exit_code == 2

    def test_directory_is_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(UnreadableFile):
            build_multipart(files={"f": tmp_path})

    def test_file_removed_before_dispatch(self, tmp_path: Path) -> None:
        path = tmp_path / "gone.txt"
        path.write_text("x")
        body = build_multipart(files={"f": path})
        path.unlink()
        with pytest.raises(UnreadableFile):
            _encoded(body)
