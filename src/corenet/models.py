"""Pydantic models shared across corenet.

:class:`ClientConfig` is the single source of truth for how a client is
assembled by :func:`~corenet.client.build_client`. It is frozen: once a
client has been built from it, its timeouts and cache bounds cannot change.
Loading it from the environment and the user config file is handled by
:func:`corenet.config.load_client_config`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_CALL_TIMEOUT = 120.0
DEFAULT_CACHE_MAX_BYTES = 5 * 1024 * 1024  # 5 MiB
DEFAULT_CACHE_DIRNAME = "network_cache"


def _default_cache_directory() -> Path:
    from corenet.config import get_cache_dir

    return get_cache_dir() / DEFAULT_CACHE_DIRNAME


class ClientConfig(BaseModel):
    """Timeouts, cache bounds and logging switch for a :class:`~corenet.client.Client`.

    Example::

        ClientConfig(
            connect_timeout=10,
            read_timeout=20,
            call_timeout=60,
            cache_directory="/tmp/http-cache",
            cache_max_bytes=10 * 1024 * 1024,
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT, description="Connect timeout in seconds"
    )
    read_timeout: float = Field(
        default=DEFAULT_READ_TIMEOUT, description="Read (and write) timeout in seconds"
    )
    call_timeout: float = Field(
        default=DEFAULT_CALL_TIMEOUT,
        description="Deadline for the whole call, interceptors and body included",
    )
    cache_directory: Path = Field(
        default_factory=_default_cache_directory,
        description="Directory holding the on-disk response cache",
    )
    cache_max_bytes: int = Field(
        default=DEFAULT_CACHE_MAX_BYTES,
        description="Upper bound of the response cache in bytes (0 disables it)",
    )
    enable_verbose_logging: bool = Field(
        default=False, description="Log full request/response exchanges"
    )

    @field_validator("connect_timeout", "read_timeout", "call_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be greater than zero")
        return value

    @field_validator("cache_max_bytes")
    @classmethod
    def _non_negative_size(cls, value: int) -> int:
        if value < 0:
            raise ValueError("cache_max_bytes must not be negative")
        return value

    @property
    def cache_enabled(self) -> bool:
        """Whether a disk cache should be attached at all."""
        return self.cache_max_bytes > 0
