# pixfetch/core/media/request.py
"""
Per-call request handle: chained configuration, one event channel, `start()`.

State machine (terminal states in brackets):
  configured → validating → [error_out] | resolving → decoding → presenting → (animating) → [done]
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pixfetch.core.anim.animator import Tween
from pixfetch.core.fetch.cache import _sha256, canonicalize_url
from pixfetch.core.fetch.errors import (
    InvalidUrlError,
    PixfetchError,
    TargetNotSetError,
)
from pixfetch.core.log import get_logger
from pixfetch.core.media.targets import ImageTarget, as_target, supports_fade
from pixfetch.schemas.models import LoadedResource, LoadEvent, RequestOptions

if TYPE_CHECKING:
    from pixfetch.core.media.engine import ImageLoader

logger = get_logger(__name__)

EventHandler = Callable[[LoadEvent], None]
RequestState = Literal[
    "configured", "validating", "error_out", "resolving", "decoding", "presenting", "animating", "done"
]


class ImageRequest:
    """
    Build with chained setters, then `start()`:

        ImageLoader(policy).request().load(url).into(target).fade(0.5).on_event(print).start()

    Setters replace a frozen RequestOptions snapshot; after `start()` they raise.
    """

    def __init__(self, engine: ImageLoader, options: RequestOptions) -> None:
        self._engine = engine
        self._options = options
        self._target: ImageTarget | None = None
        self._handler: EventHandler | None = None
        self._state: RequestState = "configured"
        self._lock = threading.RLock()
        self._ended = threading.Event()
        self._closed = False
        self._cancelled = False
        self._tween: Tween | None = None
        self.canonical_url: str | None = None
        self.key: str | None = None
        self.store_path: Path | None = None

    # -------------------------
    # Builder
    # -------------------------

    def load(self, url: str) -> ImageRequest:
        return self._update(url=url)

    def into(self, target: ImageTarget | Callable[[Any], None]) -> ImageRequest:
        self._ensure_configurable()
        self._target = as_target(target)
        self._log("target set: %r", self._target)
        return self

    def fade(self, seconds: float) -> ImageRequest:
        """Fade duration in seconds. 0 disables fading."""
        return self._update(fade_s=max(0.0, float(seconds)))

    def cached(self, enabled: bool = True) -> ImageRequest:
        return self._update(cached=bool(enabled))

    def loading_placeholder(self, image: Any) -> ImageRequest:
        return self._update(loading_placeholder=image)

    def error_placeholder(self, image: Any) -> ImageRequest:
        return self._update(error_placeholder=image)

    def log(self, enabled: bool = True) -> ImageRequest:
        return self._update(log_enabled=bool(enabled))

    def on_event(self, handler: EventHandler | None) -> ImageRequest:
        self._ensure_configurable()
        self._handler = handler
        return self

    def _update(self, **changes: Any) -> ImageRequest:
        self._ensure_configurable()
        self._options = self._options.model_copy(update=changes)
        self._log("options updated: %s", ", ".join(sorted(changes)))
        return self

    def _ensure_configurable(self) -> None:
        if self._state != "configured":
            raise RuntimeError(f"request can no longer be configured (state={self._state})")

    # -------------------------
    # Introspection
    # -------------------------

    @property
    def options(self) -> RequestOptions:
        return self._options

    @property
    def target(self) -> ImageTarget | None:
        return self._target

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def ended(self) -> bool:
        return self._ended.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until `ended` fired. Returns False on timeout."""
        return self._ended.wait(timeout)

    # -------------------------
    # Lifecycle
    # -------------------------

    def start(self) -> ImageRequest:
        with self._lock:
            self._ensure_configurable()
            self._state = "validating"
        opts = self._options

        try:
            canonical = canonicalize_url(opts.url)
            if self._target is None:
                raise TargetNotSetError("Target has not been set. Use 'into' function to set target component.")
        except (InvalidUrlError, TargetNotSetError) as e:
            self._fail(e)
            return self

        self.canonical_url = canonical
        self.key = _sha256(canonical)
        self.store_path = self._engine.store.path_for(self.key)
        self._log("start working: %s", canonical)

        if opts.loading_placeholder is not None:
            self._present(opts.loading_placeholder)
        self._emit(LoadEvent(kind="started", url=canonical))

        with self._lock:
            if self._closed:
                return self
            self._state = "resolving"
        self._engine._enqueue(self)
        return self

    def cancel(self) -> None:
        """Tear down: stop a running fade, ignore any later result, emit `ended`."""
        with self._lock:
            if self._closed:
                return
            self._cancelled = True
            tween = self._tween
        if tween is not None:
            tween.cancel()
        self._engine._forget(self)
        self._log("cancelled")
        self._finish()

    # -------------------------
    # Engine callbacks (worker threads)
    # -------------------------

    def _on_progress(self, pct: int) -> None:
        if self._cancelled or self._closed:
            return
        self._emit(LoadEvent(kind="progress", url=self.canonical_url, progress=pct))

    def _on_decoding(self) -> None:
        with self._lock:
            if not self._closed:
                self._state = "decoding"

    def _on_resolved(self, resource: LoadedResource, image: Any | None, error: PixfetchError | None) -> None:
        if self._cancelled or self._closed:
            return

        kind = "downloaded" if resource.source == "network" else "loaded"
        self._emit(LoadEvent(kind=kind, url=resource.url))
        for warning in resource.warnings:
            self._emit(LoadEvent(kind="error", url=resource.url, error_kind="io", message=warning))

        if error is not None:
            self._fail(error)
            return
        self._show(image)

    def _on_failed(self, error: PixfetchError) -> None:
        if self._cancelled or self._closed:
            return
        self._fail(error)

    # -------------------------
    # Internals
    # -------------------------

    def _show(self, image: Any) -> None:
        target = self._target
        assert target is not None
        fade_s = self._options.fade_s
        fadeable = fade_s > 0 and supports_fade(target)
        max_alpha = float(getattr(target, "alpha", 1.0)) if fadeable else 1.0

        with self._lock:
            if self._cancelled:
                return
            self._state = "presenting"
        self._present(image)
        self._log("image has been loaded")

        if not fadeable:
            self._finish()
            return

        def _set_alpha(value: float) -> None:
            target.alpha = value  # type: ignore[attr-defined]

        with self._lock:
            if self._cancelled:
                return
            self._state = "animating"
            self._tween = self._engine.animator.run(_set_alpha, 0.0, max_alpha, fade_s)
            tween = self._tween
        tween.add_done_callback(lambda _t: self._finish())

    def _fail(self, error: PixfetchError) -> None:
        with self._lock:
            self._state = "error_out"
        message = str(error)
        if self._options.log_enabled:
            logger.error("[pixfetch] Error : %s", message)
        else:
            logger.debug("request failed (%s): %s", error.kind, message)
        self._emit(LoadEvent(kind="error", url=self.canonical_url or self._options.url, error_kind=error.kind, message=message))

        if self._options.error_placeholder is not None and self._target is not None:
            self._present(self._options.error_placeholder)
        self._finish()

    def _finish(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._state != "error_out":
                self._state = "done"
        self._log("operation has been finished")
        self._emit(LoadEvent(kind="ended", url=self.canonical_url or self._options.url))
        self._engine._release(self)
        # set last: wait() returns only after `ended` reached the handler
        self._ended.set()

    def _present(self, image: Any) -> None:
        if self._target is None:
            return
        try:
            self._target.present(image)
        except Exception:
            logger.exception("target %r failed to present image", self._target)

    def _emit(self, event: LoadEvent) -> None:
        if self._handler is None:
            return
        try:
            self._handler(event)
        except Exception:
            logger.exception("event handler failed on %s", event.kind)

    def _log(self, msg: str, *args: Any) -> None:
        if self._options.log_enabled:
            logger.info("[pixfetch] " + msg, *args)

    def __repr__(self) -> str:
        return f"ImageRequest(url={self._options.url!r}, state={self._state})"


__all__ = ["ImageRequest", "EventHandler", "RequestState"]
