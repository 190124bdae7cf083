"""``multipart/form-data`` bodies with file parts streamed from disk.

Part order is the order fields were added. :func:`build_multipart` adds the
literal fields first, then the file fields, each group in mapping order.

File media types come from the lowercased extension via
:data:`MEDIA_TYPES_BY_EXTENSION`; anything else is
``application/octet-stream``. The multipart encoding itself is httpx's: every
part is handed over as an entry of ``files``, literal fields without a
filename, so part order survives exactly.
"""

from __future__ import annotations

import contextlib
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Optional, Union

from corenet.exceptions import UnreadableFile
from corenet.request.body import RequestBody

DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES_BY_EXTENSION: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "pdf": "application/pdf",
    "txt": "text/plain",
}

PathLike = Union[str, "os.PathLike[str]"]


def media_type_for(filename: str) -> str:
    """Infer a media type from the (case-insensitive) extension of *filename*."""
    suffix = Path(filename).suffix
    extension = suffix[1:].lower() if suffix else ""
    return MEDIA_TYPES_BY_EXTENSION.get(extension, DEFAULT_MEDIA_TYPE)


@dataclass(frozen=True)
class FormField:
    """A literal ``name=value`` part."""

    name: str
    value: str

    def as_file_entry(self, uploads: contextlib.ExitStack) -> tuple[str, tuple[Any, ...]]:
        return self.name, (None, self.value)


@dataclass(frozen=True)
class FileField:
    """A file part streamed from ``path`` at dispatch time."""

    name: str
    filename: str
    media_type: str
    path: Path

    @classmethod
    def from_path(cls, name: str, path: PathLike) -> FileField:
        """Build a file part, checking that *path* can be opened for reading.

        Raises:
            UnreadableFile: If the file is missing, a directory, or unreadable.
        """
        path = Path(path)
        with _opened(path):
            pass
        return cls(name=name, filename=path.name, media_type=media_type_for(path.name), path=path)

    def as_file_entry(self, uploads: contextlib.ExitStack) -> tuple[str, tuple[Any, ...]]:
        handle = uploads.enter_context(_opened(self.path))
        return self.name, (self.filename, handle, self.media_type)


def _opened(path: Path) -> IO[bytes]:
    try:
        return open(path, "rb")
    except OSError as exc:
        raise UnreadableFile(f"Cannot open {path} for upload: {exc}", str(path)) from exc


MultipartField = Union[FormField, FileField]


@dataclass(frozen=True)
class MultipartBody(RequestBody):
    """An ordered sequence of form and file parts under one boundary.

    httpx takes the boundary from the ``Content-Type`` header the descriptor
    sends, so :attr:`media_type` and the encoded body always agree.
    """

    parts: tuple[MultipartField, ...]
    boundary: str

    @property
    def media_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def encode(self, uploads: contextlib.ExitStack) -> dict[str, Any]:
        return {"files": [part.as_file_entry(uploads) for part in self.parts]}


def build_multipart(
    form_data: Optional[Mapping[str, str]] = None,
    files: Optional[Mapping[str, PathLike]] = None,
    boundary: Optional[str] = None,
) -> MultipartBody:
    """Assemble a :class:`MultipartBody`: literal fields first, then files.

    Raises:
        UnreadableFile: If any referenced file cannot be opened.
    """
    parts: list[MultipartField] = [
        FormField(name, str(value)) for name, value in (form_data or {}).items()
    ]
    parts.extend(FileField.from_path(name, path) for name, path in (files or {}).items())
    return MultipartBody(tuple(parts), boundary or uuid.uuid4().hex)
