"""Request body variants.

A :class:`~corenet.request.RequestDescriptor` carries no body (``None``) or
one of:

* :class:`FormBody` -- ``application/x-www-form-urlencoded`` fields.
* :class:`RawBody` -- arbitrary bytes with an explicit media type
  (:func:`json_body` and :func:`text_body` build the common ones).
* :class:`~corenet.request.multipart.MultipartBody` -- ``multipart/form-data``
  parts, possibly streamed from files.

Bodies are immutable descriptions. Encoding is left to httpx: at dispatch
:class:`~corenet.client.Client` passes :meth:`RequestBody.encode` to
:meth:`httpx.Client.build_request`, which produces the wire bytes and the
``Content-Length``.
"""

from __future__ import annotations

import contextlib
import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
JSON_MEDIA_TYPE = "application/json; charset=utf-8"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


class RequestBody(ABC):
    """Base class of all request bodies."""

    @property
    @abstractmethod
    def media_type(self) -> str:
        """Value sent as the request ``Content-Type``."""

    @abstractmethod
    def encode(self, uploads: contextlib.ExitStack) -> dict[str, Any]:
        """Keyword arguments for :meth:`httpx.Client.build_request` carrying this body.

        Files opened for the request are registered on *uploads*, which the
        caller closes once the response has been read.
        """


@dataclass(frozen=True)
class FormBody(RequestBody):
    """URL-encoded form fields.

    Duplicate names are allowed; values of a repeated name are sent together
    at the position of its first occurrence.
    """

    fields: tuple[tuple[str, str], ...] = ()

    @property
    def media_type(self) -> str:
        return FORM_MEDIA_TYPE

    def encode(self, uploads: contextlib.ExitStack) -> dict[str, Any]:
        grouped: dict[str, list[str]] = {}
        for name, value in self.fields:
            grouped.setdefault(name, []).append(value)
        return {"data": grouped}


@dataclass(frozen=True)
class RawBody(RequestBody):
    """Bytes sent as-is under an explicit media type."""

    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def media_type(self) -> str:
        return self.content_type

    def encode(self, uploads: contextlib.ExitStack) -> dict[str, Any]:
        return {"content": self.content}


FormFields = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


def form_body(fields: Optional[FormFields] = None) -> FormBody:
    """Build a :class:`FormBody` from a mapping or a sequence of pairs.

    Example::

        form_body({"name": "a", "tags": "x"})
        form_body([("tag", "x"), ("tag", "y")])
    """
    if fields is None:
        return FormBody()
    pairs = fields.items() if isinstance(fields, Mapping) else fields
    return FormBody(tuple((str(name), str(value)) for name, value in pairs))


def json_body(data: Any) -> RawBody:
    """Serialise *data* as a UTF-8 JSON body."""
    return RawBody(json.dumps(data, ensure_ascii=False).encode("utf-8"), JSON_MEDIA_TYPE)


def text_body(text: str, media_type: str = TEXT_MEDIA_TYPE) -> RawBody:
    return RawBody(text.encode("utf-8"), media_type)


def raw_body(content: bytes, media_type: str = "application/octet-stream") -> RawBody:
    return RawBody(bytes(content), media_type)


EMPTY_FORM_BODY = FormBody()
"""Default body of the POST/PUT/PATCH/DELETE builders."""
