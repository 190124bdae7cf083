"""Tests for the request builders and body helpers."""

from __future__ import annotations

import contextlib
import json

import httpx
import pytest

from corenet.cache.control import DEFAULT_CACHE_CONTROL, FORCE_NETWORK, NO_STORE, CacheControl
from corenet.exceptions import InvalidURL
from corenet.request import (
    EMPTY_FORM_BODY,
    FormBody,
    RawBody,
    delete_request,
    form_body,
    get_request,
    json_body,
    parse_url,
    patch_request,
    post_request,
    put_request,
    raw_body,
    text_body,
)


# ---------------------------------------------------------------------------
# URL handling
# ---------------------------------------------------------------------------


class TestParseUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://api.example.com/items",
            "http://localhost:8080/a/b?x=1&y=2",
            "https://example.com",
            "https://user@example.com:8443/path#frag",
        ],
    )
    def test_string_and_parsed_forms_build_equal_descriptors(self, url: str) -> None:
        from_string = get_request(url)
        from_parsed = get_request(httpx.URL(url))
        assert from_string == from_parsed
        assert from_string.headers == from_parsed.headers
        assert from_string.cache_control == from_parsed.cache_control
        assert from_string.url == from_parsed.url

    @pytest.mark.parametrize(
        "url",
        ["", "not a url", "/relative/path", "ftp://example.com/file", "mailto:a@b.c"],
    )
    def test_rejects_non_http_urls(self, url: str) -> None:
        with pytest.raises(InvalidURL):
            parse_url(url)

    def test_invalid_url_exit_code(self) -> None:
        with pytest.raises(InvalidURL) as exc_info:
            get_request("example.com/no-scheme")
        assert exc_info.value.exit_code == 2


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_get_has_no_body_and_default_cache_control(self) -> None:
        descriptor = get_request("https://api.example.com/items")
        assert descriptor.method == "GET"
        assert descriptor.body is None
        assert descriptor.cache_control == DEFAULT_CACHE_CONTROL
        assert len(descriptor.headers) == 0

    @pytest.mark.parametrize(
        "builder,method",
        [
            (post_request, "POST"),
            (put_request, "PUT"),
            (patch_request, "PATCH"),
            (delete_request, "DELETE"),
        ],
    )
    def test_mutating_builders_default_to_empty_form(self, builder, method: str) -> None:
        descriptor = builder("https://api.example.com/items/1")
        assert descriptor.method == method
        assert descriptor.body is EMPTY_FORM_BODY
        assert descriptor.cache_control == DEFAULT_CACHE_CONTROL

    def test_wire_headers_include_cache_control(self) -> None:
        wire = get_request("https://api.example.com/items").wire_headers()
        assert wire["Cache-Control"] == "max-age=600"

    def test_empty_directive_removes_caller_cache_control(self) -> None:
        descriptor = get_request(
            "https://api.example.com/items",
            headers={"Cache-Control": "no-store"},
            cache_control=CacheControl(),
        )
        assert "cache-control" not in descriptor.wire_headers()

    def test_directive_replaces_caller_cache_control(self) -> None:
        descriptor = get_request(
            "https://api.example.com/items",
            headers={"Cache-Control": "max-age=5"},
            cache_control=FORCE_NETWORK,
        )
        assert descriptor.wire_headers().get_list("cache-control") == ["no-cache"]

    def test_no_store_is_rendered(self) -> None:
        descriptor = post_request("https://api.example.com/items", cache_control=NO_STORE)
        assert descriptor.wire_headers()["cache-control"] == "no-store"


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_duplicates_and_order_preserved(self) -> None:
        descriptor = get_request(
            "https://api.example.com/items",
            headers=[("X-Tag", "a"), ("Accept", "application/json"), ("X-Tag", "b")],
        )
        assert descriptor.headers.get_list("x-tag") == ["a", "b"]
        assert [name for name, _ in descriptor.header_items] == ["X-Tag", "Accept", "X-Tag"]

    def test_headers_are_case_insensitive(self) -> None:
        descriptor = get_request("https://api.example.com", headers={"Authorization": "Bearer t"})
        assert descriptor.headers["authorization"] == "Bearer t"

    def test_body_media_type_replaces_caller_content_type(self) -> None:
        descriptor = post_request(
            "https://api.example.com/items",
            headers={"Content-Type": "text/plain", "Content-Length": "99"},
            body=form_body({"name": "a"}),
        )
        wire = descriptor.wire_headers()
        assert wire["content-type"] == "application/x-www-form-urlencoded"
        assert "content-length" not in wire

    def test_descriptor_is_immutable(self) -> None:
        descriptor = get_request("https://api.example.com")
        with pytest.raises(AttributeError):
            descriptor.method = "POST"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Bodies
# ---------------------------------------------------------------------------


def _sent(body, method: str = "POST") -> httpx.Request:
    """The request httpx builds for *body*, already read."""
    with contextlib.ExitStack() as uploads:
        request = httpx.Request(
            method,
            "https://api.example.com/items",
            headers={"Content-Type": body.media_type},
            **body.encode(uploads),
        )
        request.read()
    return request


class TestBodies:
    def test_form_body_from_mapping(self) -> None:
        body = form_body({"name": "a b", "q": "x&y"})
        assert isinstance(body, FormBody)
        request = _sent(body)
        assert request.content == b"name=a+b&q=x%26y"
        assert request.headers["content-length"] == str(len(request.content))
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"

    def test_form_body_from_pairs_keeps_duplicates(self) -> None:
        body = form_body([("tag", "x"), ("tag", "y")])
        assert _sent(body).content == b"tag=x&tag=y"

    def test_empty_form_body(self) -> None:
        request = _sent(EMPTY_FORM_BODY)
        assert request.content == b""
        assert request.headers["content-length"] == "0"

    def test_json_body(self) -> None:
        body = json_body({"id": 1, "name": "é"})
        assert isinstance(body, RawBody)
        assert body.media_type.startswith("application/json")
        assert json.loads(_sent(body).content.decode("utf-8")) == {"id": 1, "name": "é"}

    def test_text_and_raw_bodies(self) -> None:
        assert text_body("hi").media_type == "text/plain; charset=utf-8"
        assert _sent(raw_body(b"\x00\x01", "application/x-bin")).content == b"\x00\x01"
