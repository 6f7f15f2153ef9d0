from .cache import ContentStore, _sha256, canonicalize_url, resource_key
from .errors import (
    LOADER_ERRORS,
    CacheIOError,
    DecodeError,
    DownloadError,
    InvalidUrlError,
    LoadError,
    PixfetchError,
    TargetNotSetError,
    classify_loader_error,
    loader_error_guard,
)
from .http import fetch_bytes
from .registry import FetchDedupRegistry, FetchRole, FetchTicket

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
    "ContentStore",
    "canonicalize_url",
    "resource_key",
    "_sha256",
    "fetch_bytes",
    "FetchDedupRegistry",
    "FetchRole",
    "FetchTicket",
]
