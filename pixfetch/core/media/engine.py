# pixfetch/core/media/engine.py
"""
ImageLoader: owns the store, registry, animator and worker pool, and
deduplicates simultaneous requests for the same key at the presentation level.

Two dedup layers:
  - here, requests for a key that is already resolving become waiters on the
    running job (one load, one decode, N presentations);
  - in ResourceLoader, the FetchDedupRegistry keeps one network fetch per key
    across every loader sharing the registry.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from pixfetch.core.anim.animator import Animator
from pixfetch.core.fetch.cache import ContentStore, resource_key
from pixfetch.core.fetch.errors import DecodeError, PixfetchError, classify_loader_error
from pixfetch.core.fetch.http import FetchFn, fetch_bytes
from pixfetch.core.fetch.registry import FetchDedupRegistry
from pixfetch.core.log import get_logger
from pixfetch.core.media.decode import decode_image
from pixfetch.core.media.loader import ResourceLoader
from pixfetch.core.media.request import ImageRequest
from pixfetch.schemas.models import LoaderPolicy, RequestOptions

logger = get_logger(__name__)

DecodeFn = Callable[[bytes], Any]


@dataclass
class _Job:
    key: str
    url: str
    cached: bool
    waiters: list[ImageRequest] = field(default_factory=list)
    cancel: threading.Event = field(default_factory=threading.Event)


class ImageLoader:
    def __init__(
        self,
        policy: LoaderPolicy | None = None,
        *,
        store: ContentStore | None = None,
        registry: FetchDedupRegistry | None = None,
        animator: Animator | None = None,
        executor: Executor | None = None,
        fetch: FetchFn = fetch_bytes,
        decode: DecodeFn = decode_image,
    ) -> None:
        self.policy = policy or LoaderPolicy.from_env()
        self.store = store or ContentStore(self.policy.cache_dir)
        self.registry = registry or FetchDedupRegistry.default()
        self.animator = animator or Animator(tick_hz=self.policy.tick_hz)
        self.loader = ResourceLoader(self.store, self.registry, self.policy, fetch=fetch)
        self._decode = decode
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._resolving: dict[str, _Job] = {}
        self._active: set[ImageRequest] = set()
        self._closed = False

    # -------------------------
    # Public API
    # -------------------------

    def request(self, url: str | None = None) -> ImageRequest:
        """New request pre-filled with this loader's defaults."""
        req = ImageRequest(self, RequestOptions.from_policy(self.policy))
        return req.load(url) if url is not None else req

    def clear_cache_entry(self, url: str) -> None:
        """Delete one cache entry. Missing entries are not an error."""
        self.store.delete(resource_key(url))
        logger.info("[pixfetch] Cached file has been cleared: %s", url)

    def clear_all_cache(self) -> None:
        """Delete the whole content store. A missing store is not an error."""
        self.store.delete_all()
        logger.info("[pixfetch] All cached files have been cleared.")

    def waiter_count(self, key: str) -> int:
        """Requests attached to the job currently resolving `key` (0 if none)."""
        with self._lock:
            job = self._resolving.get(key)
            return len(job.waiters) if job is not None else 0

    @property
    def active_requests(self) -> int:
        with self._lock:
            return len(self._active)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work, wait for running jobs, then cancel anything still fading."""
        with self._lock:
            self._closed = True
            executor = self._executor if self._owns_executor else None
        if executor is not None:
            executor.shutdown(wait=wait)
        with self._lock:
            leftovers = list(self._active)
        for req in leftovers:
            req.cancel()

    def __enter__(self) -> ImageLoader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    # -------------------------
    # Request plumbing
    # -------------------------

    def _enqueue(self, req: ImageRequest) -> None:
        assert req.key is not None and req.canonical_url is not None
        with self._lock:
            self._active.add(req)
            job = self._resolving.get(req.key)
            # a job whose waiters all cancelled is winding down; start a fresh one
            if job is not None and not job.cancel.is_set():
                job.waiters.append(req)
                return
            job = _Job(key=req.key, url=req.canonical_url, cached=req.options.cached, waiters=[req])
            self._resolving[req.key] = job
            closed = self._closed

        if closed:
            self._fail_job(job, PixfetchError("loader has been shut down"))
            return
        try:
            self._get_executor().submit(self._run_job, job)
        except RuntimeError as e:
            self._fail_job(job, PixfetchError(f"could not schedule request: {e}"))

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.policy.max_workers, thread_name_prefix="pixfetch")
            return self._executor

    def _run_job(self, job: _Job) -> None:
        try:
            resource = self.loader.load(
                job.url,
                cached=job.cached,
                on_progress=lambda pct: self._broadcast_progress(job, pct),
                cancel=job.cancel,
            )
        except Exception as exc:
            self._fail_job(job, classify_loader_error(exc))
            return

        with self._lock:
            waiters = list(job.waiters)
        for req in waiters:
            req._on_decoding()

        image: Any | None = None
        error: PixfetchError | None = None
        try:
            image = self._decode(resource.data)
        except Exception as exc:
            error = classify_loader_error(exc)
            if not isinstance(error, DecodeError):
                error = DecodeError(f"Decode error: {error}")

        for req in self._close_job(job):
            req._on_resolved(resource, image, error)

    def _fail_job(self, job: _Job, error: PixfetchError) -> None:
        for req in self._close_job(job):
            req._on_failed(error)

    def _close_job(self, job: _Job) -> list[ImageRequest]:
        with self._lock:
            if self._resolving.get(job.key) is job:
                del self._resolving[job.key]
            waiters, job.waiters = job.waiters, []
        return waiters

    def _broadcast_progress(self, job: _Job, pct: int) -> None:
        with self._lock:
            waiters = list(job.waiters)
        for req in waiters:
            req._on_progress(pct)

    def _forget(self, req: ImageRequest) -> None:
        """Detach a cancelled request; the fetch is cancelled once nobody waits on it."""
        with self._lock:
            job = self._resolving.get(req.key) if req.key is not None else None
            if job is not None and req in job.waiters:
                job.waiters.remove(req)
                if not job.waiters:
                    job.cancel.set()

    def _release(self, req: ImageRequest) -> None:
        with self._lock:
            self._active.discard(req)


# -------------------------
# Process-wide default
# -------------------------

_DEFAULT: ImageLoader | None = None
_DEFAULT_LOCK = threading.Lock()


def default_loader() -> ImageLoader:
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = ImageLoader()
        return _DEFAULT


def get() -> ImageRequest:
    """Fresh request on the default loader."""
    return default_loader().request()


def clear_cache_entry(url: str) -> None:
    """Best-effort: failures (bad URL, disk errors) are logged, never raised."""
    try:
        default_loader().clear_cache_entry(url)
    except PixfetchError as e:
        logger.error("[pixfetch] Error while removing cached file: %s", e)


def clear_all_cache() -> None:
    try:
        default_loader().clear_all_cache()
    except PixfetchError as e:
        logger.error("[pixfetch] Error while removing cached files: %s", e)


__all__ = ["ImageLoader", "default_loader", "get", "clear_cache_entry", "clear_all_cache"]
