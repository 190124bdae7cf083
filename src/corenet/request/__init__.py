"""Request descriptors, bodies and the builders that produce them."""

from corenet.request.body import (
    EMPTY_FORM_BODY,
    FormBody,
    RawBody,
    RequestBody,
    form_body,
    json_body,
    raw_body,
    text_body,
)
from corenet.request.builders import (
    delete_request,
    get_request,
    multipart_post_request,
    parse_url,
    patch_request,
    post_request,
    put_request,
)
from corenet.request.descriptor import RequestDescriptor
from corenet.request.multipart import (
    FileField,
    FormField,
    MultipartBody,
    MultipartField,
    build_multipart,
    media_type_for,
)

__all__ = [
    "EMPTY_FORM_BODY",
    "FileField",
    "FormBody",
    "FormField",
    "MultipartBody",
    "MultipartField",
    "RawBody",
    "RequestBody",
    "RequestDescriptor",
    "build_multipart",
    "delete_request",
    "form_body",
    "get_request",
    "json_body",
    "media_type_for",
    "multipart_post_request",
    "parse_url",
    "patch_request",
    "post_request",
    "put_request",
    "raw_body",
    "text_body",
]
