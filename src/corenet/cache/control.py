"""``Cache-Control`` directives as an immutable value.

:class:`CacheControl` is used on both sides of an exchange: request builders
attach one to every :class:`~corenet.request.RequestDescriptor` (rendered as
the request's ``Cache-Control`` header), and the cache interceptor reads the
request directives back to decide whether a stored response is looked up at
all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

MAX_STALE_FOREVER = 2**31 - 1
"""Sentinel ``max-stale`` value meaning "accept any staleness"."""


@dataclass(frozen=True)
class CacheControl:
    """Parsed ``Cache-Control`` directives.

    All durations are whole seconds. Unknown directives are ignored on parse.

    Example::

        CacheControl(max_age=600).to_header()          # "max-age=600"
        CacheControl.parse("no-cache, max-age=0").no_cache  # True
    """

    no_cache: bool = False
    no_store: bool = False
    max_age: Optional[int] = None
    s_maxage: Optional[int] = None
    private: bool = False
    public: bool = False
    must_revalidate: bool = False
    max_stale: Optional[int] = None
    min_fresh: Optional[int] = None
    only_if_cached: bool = False
    no_transform: bool = False
    immutable: bool = False

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    @classmethod
    def parse(cls, value: Optional[str]) -> CacheControl:
        """Parse a single ``Cache-Control`` header value."""
        return cls.parse_values([value] if value else [])

    @classmethod
    def parse_values(cls, values: Iterable[str], pragma_no_cache: bool = False) -> CacheControl:
        """Parse one or more header values into a single :class:`CacheControl`."""
        fields: dict[str, object] = {"no_cache": pragma_no_cache}
        for value in values:
            for directive, argument in _split_directives(value):
                if directive == "no-cache":
                    fields["no_cache"] = True
                elif directive == "no-store":
                    fields["no_store"] = True
                elif directive == "max-age":
                    fields["max_age"] = _seconds(argument, -1)
                elif directive == "s-maxage":
                    fields["s_maxage"] = _seconds(argument, -1)
                elif directive == "private":
                    fields["private"] = True
                elif directive == "public":
                    fields["public"] = True
                elif directive == "must-revalidate":
                    fields["must_revalidate"] = True
                elif directive == "max-stale":
                    fields["max_stale"] = _seconds(argument, MAX_STALE_FOREVER)
                elif directive == "min-fresh":
                    fields["min_fresh"] = _seconds(argument, -1)
                elif directive == "only-if-cached":
                    fields["only_if_cached"] = True
                elif directive == "no-transform":
                    fields["no_transform"] = True
                elif directive == "immutable":
                    fields["immutable"] = True
        # Malformed numeric arguments are dropped rather than guessed.
        for key in ("max_age", "s_maxage", "min_fresh"):
            if fields.get(key) == -1:
                fields.pop(key)
        return cls(**fields)  # type: ignore[arg-type]

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> CacheControl:
        """Parse every ``Cache-Control`` header plus a legacy ``Pragma: no-cache``."""
        pragma = any(
            "no-cache" in value.lower() for value in headers.get_list("pragma")
        )
        return cls.parse_values(headers.get_list("cache-control"), pragma_no_cache=pragma)

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def to_header(self) -> str:
        """Render the directives as a header value (empty string when none are set)."""
        parts: list[str] = []
        if self.no_cache:
            parts.append("no-cache")
        if self.no_store:
            parts.append("no-store")
        if self.max_age is not None:
            parts.append(f"max-age={self.max_age}")
        if self.s_maxage is not None:
            parts.append(f"s-maxage={self.s_maxage}")
        if self.private:
            parts.append("private")
        if self.public:
            parts.append("public")
        if self.must_revalidate:
            parts.append("must-revalidate")
        if self.max_stale is not None:
            parts.append(f"max-stale={self.max_stale}")
        if self.min_fresh is not None:
            parts.append(f"min-fresh={self.min_fresh}")
        if self.only_if_cached:
            parts.append("only-if-cached")
        if self.no_transform:
            parts.append("no-transform")
        if self.immutable:
            parts.append("immutable")
        return ", ".join(parts)

    @property
    def is_empty(self) -> bool:
        return not self.to_header()

    def __str__(self) -> str:
        return self.to_header()


def _split_directives(value: str) -> list[tuple[str, Optional[str]]]:
    """Split ``a, b=1, c="x, y"`` into ``[(a, None), (b, "1"), (c, "x, y")]``."""
    directives: list[tuple[str, Optional[str]]] = []
    pos = 0
    length = len(value)
    while pos < length:
        end = pos
        while end < length and value[end] not in ",=":
            end += 1
        name = value[pos:end].strip().lower()
        argument: Optional[str] = None
        pos = end
        if pos < length and value[pos] == "=":
            pos += 1
            while pos < length and value[pos] == " ":
                pos += 1
            if pos < length and value[pos] == '"':
                close = value.find('"', pos + 1)
                close = length if close == -1 else close
                argument = value[pos + 1 : close]
                pos = close + 1
                while pos < length and value[pos] != ",":
                    pos += 1
            else:
                end = pos
                while end < length and value[end] != ",":
                    end += 1
                argument = value[pos:end].strip()
                pos = end
        pos += 1  # skip the comma
        if name:
            directives.append((name, argument))
    return directives


def _seconds(argument: Optional[str], default: int) -> int:
    if argument is None:
        return default
    try:
        seconds = int(argument)
    except ValueError:
        return default
    return max(0, min(seconds, MAX_STALE_FOREVER))


DEFAULT_CACHE_CONTROL = CacheControl(max_age=600)
"""Shared builder default: responses may be reused for ten minutes."""

FORCE_NETWORK = CacheControl(no_cache=True)
"""Never serve from cache; always validate with the server."""

FORCE_CACHE = CacheControl(only_if_cached=True, max_stale=MAX_STALE_FOREVER)
"""Serve only from cache, however stale; 504 when nothing is stored."""

NO_STORE = CacheControl(no_store=True)
"""Neither read nor write the cache for this request."""
