"""
Typed errors + utilities for the image fetch/cache pipeline.

Exports
-------
- PixfetchError, InvalidUrlError, TargetNotSetError, DownloadError,
  LoadError, CacheIOError, DecodeError
- LOADER_ERRORS
- classify_loader_error(exc)
- loader_error_guard()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pixfetch.schemas.models import ErrorKind

# =========================
# Exception types
# =========================


class PixfetchError(RuntimeError):
    """Base class for loader failures. `kind` maps onto LoadEvent.error_kind."""

    kind: ErrorKind = "download"


class InvalidUrlError(PixfetchError):
    """URL missing or malformed. Raised before any I/O."""

    kind: ErrorKind = "invalid_url"


class TargetNotSetError(PixfetchError):
    """A request was started without a presentation target."""

    kind: ErrorKind = "target_not_set"


class DownloadError(PixfetchError):
    """Transport failure, timeout, cancellation or non-2xx status."""

    kind: ErrorKind = "download"


class LoadError(PixfetchError):
    """A cache entry exists but could not be read."""

    kind: ErrorKind = "load"


class CacheIOError(PixfetchError, OSError):
    """Content store read/write failure. Non-fatal when raised by a cache write."""

    kind: ErrorKind = "io"


class DecodeError(PixfetchError):
    """Payload is not a decodable image."""

    kind: ErrorKind = "decode"


# Selector tuple for grouped exception handling
LOADER_ERRORS = (
    InvalidUrlError,
    TargetNotSetError,
    DownloadError,
    LoadError,
    CacheIOError,
    DecodeError,
)

# =========================
# Classification helpers
# =========================


def classify_loader_error(exc: BaseException) -> PixfetchError:
    """
    Map arbitrary exceptions raised inside the pipeline to a typed PixfetchError.

    Heuristics:
      - PixfetchError subclasses → passed through
      - requests.* errors → DownloadError
      - PIL.UnidentifiedImageError / PIL decompression bombs → DecodeError
      - Fallback → PixfetchError
    """
    if isinstance(exc, PixfetchError):
        return exc

    import requests

    if isinstance(exc, requests.RequestException):
        return DownloadError(f"{type(exc).__name__}: {exc}")

    from PIL import Image, UnidentifiedImageError

    if isinstance(exc, (UnidentifiedImageError, Image.DecompressionBombError)):
        return DecodeError(f"{type(exc).__name__}: {exc}")

    return PixfetchError(f"{type(exc).__name__}: {exc}")


@contextmanager
def loader_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from pipeline internals."""
    try:
        yield
    except LOADER_ERRORS:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_loader_error(exc) from exc


__all__ = [
    "PixfetchError",
    "InvalidUrlError",
    "TargetNotSetError",
    "DownloadError",
    "LoadError",
    "CacheIOError",
    "DecodeError",
    "LOADER_ERRORS",
    "classify_loader_error",
    "loader_error_guard",
]
