# tests/utils.py
"""
Single source of truth for test data, fakes and helpers.
"""

from __future__ import annotations

import io
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from PIL import Image

from pixfetch.schemas.models import LoadEvent, LoaderPolicy

DEFAULT_URL = "https://cdn.example.com/img/a.png"


# -----------------------------
# Payloads
# -----------------------------


def png_bytes(w: int = 8, h: int = 8, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color=color).save(buf, format="PNG", compress_level=0)
    return buf.getvalue()


def make_policy(cache_dir: Path, **overrides: Any) -> LoaderPolicy:
    values: dict[str, Any] = {
        "cache_dir": cache_dir,
        "timeout_s": 2.0,
        "user_agent": "pixfetch-tests/1.0",
        "fade_s": 0.0,
        "max_workers": 8,
    }
    values.update(overrides)
    return LoaderPolicy(**values)


# -----------------------------
# Fakes
# -----------------------------


class FakeResp:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(self, *, status: int = 200, body: bytes = b"", headers: dict[str, str] | None = None, chunk: int = 4):
        self.status_code = status
        self.headers = headers if headers is not None else {"Content-Length": str(len(body))}
        self._body = body
        self._chunk = chunk
        self.closed = False

    def iter_content(self, chunk_size: int = 1024) -> Iterable[bytes]:
        sz = min(chunk_size, self._chunk)
        for i in range(0, len(self._body), sz):
            yield self._body[i : i + sz]

    def close(self) -> None:
        self.closed = True


class CountingFetch:
    """
    Fake network collaborator with the `fetch_bytes` signature.

    `gate`, when given, blocks every call until it is set, so tests can pile up
    concurrent callers behind one in-flight fetch.
    """

    def __init__(self, payload: bytes | Callable[[str], bytes] | None = None, *, gate: threading.Event | None = None, error: Exception | None = None):
        self.payload = payload if payload is not None else png_bytes()
        self.gate = gate
        self.error = error
        self.calls: list[str] = []
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.calls)

    def __call__(self, url: str, *, policy: LoaderPolicy, on_progress=None, cancel=None) -> bytes:
        with self._lock:
            self.calls.append(url)
        if self.gate is not None:
            while not self.gate.wait(0.01):
                if cancel is not None and cancel.is_set():
                    from pixfetch.core.fetch.errors import DownloadError

                    raise DownloadError("Download error: cancelled")
        if self.error is not None:
            raise self.error
        if on_progress is not None:
            on_progress(50)
        return self.payload(url) if callable(self.payload) else self.payload


class RecordingTarget:
    """Fadeable target that records every presented image and alpha value."""

    def __init__(self, alpha: float = 1.0) -> None:
        self.presented: list[Any] = []
        self.alphas: list[float] = []
        self._alpha = alpha

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = value
        self.alphas.append(value)

    def present(self, image: Any) -> None:
        self.presented.append(image)


class PlainTarget:
    """Target without an alpha channel (never faded)."""

    def __init__(self) -> None:
        self.presented: list[Any] = []

    def present(self, image: Any) -> None:
        self.presented.append(image)


class EventLog:
    """Thread-safe event recorder usable as an ImageRequest event handler."""

    def __init__(self) -> None:
        self.events: list[LoadEvent] = []
        self._lock = threading.Lock()

    def __call__(self, ev: LoadEvent) -> None:
        with self._lock:
            self.events.append(ev)

    @property
    def kinds(self) -> list[str]:
        with self._lock:
            return [e.kind for e in self.events]

    def errors(self) -> list[LoadEvent]:
        with self._lock:
            return [e for e in self.events if e.kind == "error"]


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.005) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
