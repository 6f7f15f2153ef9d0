# pixfetch/core/media/loader.py
"""
Fetch-or-load pipeline: content store first, then a single-flight network fetch.
"""

from __future__ import annotations

import threading

from pixfetch.core.fetch.cache import ContentStore, _sha256, canonicalize_url
from pixfetch.core.fetch.errors import CacheIOError, DownloadError, LoadError, classify_loader_error
from pixfetch.core.fetch.http import FetchFn, ProgressFn, fetch_bytes
from pixfetch.core.fetch.registry import FetchDedupRegistry
from pixfetch.core.log import get_logger
from pixfetch.schemas.models import LoadedResource, LoaderPolicy

logger = get_logger(__name__)


class ResourceLoader:
    def __init__(
        self,
        store: ContentStore,
        registry: FetchDedupRegistry,
        policy: LoaderPolicy,
        fetch: FetchFn = fetch_bytes,
    ) -> None:
        self.store = store
        self.registry = registry
        self.policy = policy
        self._fetch = fetch

    def load(
        self,
        url: str,
        *,
        cached: bool = True,
        on_progress: ProgressFn | None = None,
        cancel: threading.Event | None = None,
    ) -> LoadedResource:
        """
        Resolve `url` to raw bytes.

        Raises:
          InvalidUrlError  malformed URL (no I/O attempted)
          LoadError        cache entry present but unreadable (no network fallback)
          DownloadError    fetch failed; followers of the same key get the same error
        """
        canonical = canonicalize_url(url)
        key = _sha256(canonical)

        if cached and self.store.has(key):
            try:
                data = self.store.read(key)
            except CacheIOError as e:
                raise LoadError(str(e)) from e
            _emit(on_progress, 100)
            logger.debug("cache hit %s -> %s", canonical, key)
            return LoadedResource(url=canonical, key=key, data=data, source="cache")

        ticket = self.registry.begin_or_join(key)
        if not ticket.is_leader:
            logger.debug("joining in-flight fetch for %s", canonical)
            data = ticket.result()
            _emit(on_progress, 100)
            return LoadedResource(url=canonical, key=key, data=data, source="network")

        try:
            data = self._fetch(canonical, policy=self.policy, on_progress=on_progress, cancel=cancel)
        except Exception as exc:
            err = classify_loader_error(exc)
            if not isinstance(err, DownloadError):
                err = DownloadError(f"Download error: {err}")
            self.registry.fail(key, err)
            if err is exc:
                raise
            raise err from exc
        except BaseException:
            # followers must never wait on a leader that is gone
            self.registry.fail(key, DownloadError("Download error: interrupted"))
            raise

        warnings: list[str] = []
        if cached:
            try:
                self.store.write(key, data)
            except CacheIOError as e:
                logger.warning("[pixfetch] %s (%s)", e, canonical)
                warnings.append(str(e))
            except BaseException as exc:
                self.registry.fail(key, DownloadError(f"Download error: {exc}"))
                raise

        self.registry.resolve(key, data)
        _emit(on_progress, 100)
        logger.debug("downloaded %s (%d bytes)", canonical, len(data))
        return LoadedResource(url=canonical, key=key, data=data, source="network", warnings=warnings)


def _emit(on_progress: ProgressFn | None, pct: int) -> None:
    if on_progress is not None:
        on_progress(pct)


__all__ = ["ResourceLoader"]
