"""
pixfetch: download, cache and fade in remote images.

    import pixfetch

    pixfetch.get().load("https://example.com/cat.png").into(target).start()

Exports the engine (`ImageLoader`), the request handle, configuration and
event models, the error taxonomy and the cache maintenance helpers.
"""

from __future__ import annotations

from pixfetch.core.anim import Animator, Tween
from pixfetch.core.fetch import (
    CacheIOError,
    ContentStore,
    DecodeError,
    DownloadError,
    FetchDedupRegistry,
    InvalidUrlError,
    LoadError,
    PixfetchError,
    TargetNotSetError,
    canonicalize_url,
    resource_key,
)
from pixfetch.core.media import (
    ImageLoader,
    ImageRequest,
    ImageTarget,
    ResourceLoader,
    clear_all_cache,
    clear_cache_entry,
    default_loader,
    get,
)
from pixfetch.schemas import LoadedResource, LoadEvent, LoaderPolicy, RequestOptions

__version__ = "0.1.0"

__all__ = [
    "Animator",
    "Tween",
    "CacheIOError",
    "ContentStore",
    "DecodeError",
    "DownloadError",
    "FetchDedupRegistry",
    "InvalidUrlError",
    "LoadError",
    "PixfetchError",
    "TargetNotSetError",
    "canonicalize_url",
    "resource_key",
    "ImageLoader",
    "ImageRequest",
    "ImageTarget",
    "ResourceLoader",
    "clear_all_cache",
    "clear_cache_entry",
    "default_loader",
    "get",
    "LoadedResource",
    "LoadEvent",
    "LoaderPolicy",
    "RequestOptions",
]
