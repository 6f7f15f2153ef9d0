# pixfetch/schemas/models.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# =========================
# Shared literals
# =========================

# Where the bytes of a resolved resource came from.
ResourceSource = Literal["cache", "network"]

# Error taxonomy surfaced to callers through LoadEvent.error_kind.
ErrorKind = Literal["invalid_url", "target_not_set", "download", "load", "io", "decode"]

# The single notification channel of an ImageRequest.
EventKind = Literal["started", "progress", "downloaded", "loaded", "error", "ended"]

_DEFAULT_CACHE_DIR = Path(".cache") / "pixfetch"


def _env_cache_dir() -> Path:
    env_dir = os.getenv("PIXFETCH_CACHE_DIR")
    return Path(env_dir) if env_dir else _DEFAULT_CACHE_DIR


# ============================================================
# Loader configuration
# ============================================================


class LoaderPolicy(BaseModel):
    """
    Process-level configuration for an ImageLoader.

    Controls where the content store lives, how the network collaborator
    behaves, and the defaults new requests start from.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    cache_dir: Path = Field(
        default_factory=_env_cache_dir,
        description="Flat directory holding one file per cached resource (named by its key).",
    )
    cache_enabled: bool = Field(
        True,
        description="Default cache flag for new requests. Requests may override it.",
    )
    timeout_s: float = Field(
        15.0,
        gt=0,
        description="HTTP timeout in seconds passed to the transport.",
    )
    user_agent: str = Field(
        "pixfetch/0.1 (+image-cache)",
        description="User-Agent string used in HTTP requests.",
    )
    allow_non_200: bool = Field(
        False,
        description="If False, any status outside 2xx is a download error.",
    )
    max_bytes: int = Field(
        32 * 1024 * 1024,
        ge=1,
        description="Upper bound on a response body; larger payloads fail the download.",
    )
    chunk_size: int = Field(
        64 * 1024,
        ge=1,
        description="Streaming chunk size in bytes. Progress and cancellation are checked per chunk.",
    )
    max_workers: int = Field(
        4,
        ge=1,
        description="Worker threads used to resolve requests.",
    )
    fade_s: float = Field(
        1.0,
        ge=0,
        description="Default fade duration in seconds for new requests. 0 disables fading.",
    )
    tick_hz: float = Field(
        60.0,
        gt=0,
        description="Tick rate of the background animation driver.",
    )
    log_enabled: bool = Field(
        False,
        description="Default per-request logging flag.",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> LoaderPolicy:
        """Build a policy from PIXFETCH_* environment variables; explicit overrides win."""
        values: dict[str, Any] = {}
        timeout = os.getenv("PIXFETCH_TIMEOUT_S")
        if timeout:
            values["timeout_s"] = float(timeout)
        ua = os.getenv("PIXFETCH_USER_AGENT")
        if ua:
            values["user_agent"] = ua
        values.update(overrides)
        return cls(**values)


class RequestOptions(BaseModel):
    """
    Frozen snapshot of one request's configuration.

    Builder calls on ImageRequest replace this snapshot; `start()` hands it
    to the pipeline by value so later mutation cannot leak across threads.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    url: str | None = Field(None, description="Raw URL as supplied by the caller.")
    fade_s: float = Field(1.0, ge=0, description="Fade duration in seconds. 0 disables the fade.")
    cached: bool = Field(True, description="Read from and write to the content store.")
    loading_placeholder: Any | None = Field(None, description="Image presented while the request resolves.")
    error_placeholder: Any | None = Field(None, description="Image presented when the request fails.")
    log_enabled: bool = Field(False, description="Log this request's lifecycle at INFO level.")

    @classmethod
    def from_policy(cls, policy: LoaderPolicy) -> RequestOptions:
        return cls(fade_s=policy.fade_s, cached=policy.cache_enabled, log_enabled=policy.log_enabled)


# ============================================================
# Pipeline results / events
# ============================================================


class LoadedResource(BaseModel):
    """Raw bytes produced by ResourceLoader.load, with provenance."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(..., description="Canonical URL the bytes were resolved for.")
    key: str = Field(..., min_length=64, max_length=64, description="Resource key (SHA-256 hex of the canonical URL).")
    data: bytes = Field(..., description="Undecoded payload.")
    source: ResourceSource = Field(..., description="'cache' on a store hit, 'network' otherwise.")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal issues (e.g. cache write failures).")


class LoadEvent(BaseModel):
    """
    Lifecycle notification delivered to a request's event handler.

    kind:
      - started:    request validated and handed to the engine
      - progress:   `progress` holds 0..100
      - downloaded: bytes came from the network
      - loaded:     bytes came from the content store
      - error:      `error_kind` and `message` describe the failure
      - ended:      terminal; fires exactly once per started request
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: EventKind
    url: str | None = None
    progress: int | None = Field(None, ge=0, le=100)
    error_kind: ErrorKind | None = None
    message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


__all__ = [
    "ResourceSource",
    "ErrorKind",
    "EventKind",
    "LoaderPolicy",
    "RequestOptions",
    "LoadedResource",
    "LoadEvent",
]
