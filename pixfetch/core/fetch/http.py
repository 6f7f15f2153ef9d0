# pixfetch/core/fetch/http.py
"""
Network collaborator: stream an image over HTTP GET and return its bytes.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import requests

from pixfetch.schemas.models import LoaderPolicy

from .errors import DownloadError

ProgressFn = Callable[[int], None]
# Fetch signature used by ResourceLoader; tests swap in fakes with the same shape.
FetchFn = Callable[..., bytes]


def _headers_for(policy: LoaderPolicy) -> dict[str, str]:
    return {"User-Agent": policy.user_agent, "Accept": "image/*,*/*;q=0.8"}


def _content_length(resp: requests.Response) -> int | None:
    raw = resp.headers.get("Content-Length")
    if not raw:
        return None
    try:
        n = int(raw)
    except ValueError:
        return None
    return n if n > 0 else None


def fetch_bytes(
    url: str,
    *,
    policy: LoaderPolicy,
    on_progress: ProgressFn | None = None,
    cancel: threading.Event | None = None,
) -> bytes:
    """
    GET `url` and return the full body.

    - Status outside 2xx → DownloadError (unless policy.allow_non_200).
    - Timeouts / transport errors → DownloadError.
    - `cancel` is checked between chunks; a set event aborts with DownloadError.
    - `on_progress` receives 0..99 while streaming when Content-Length is known.
      The terminal 100 is left to the caller.
    """
    if cancel is not None and cancel.is_set():
        raise DownloadError("Download error: cancelled before start")

    try:
        resp = requests.get(url, headers=_headers_for(policy), timeout=policy.timeout_s, stream=True)
    except requests.RequestException as e:
        raise DownloadError(f"Download error: {e}") from e

    try:
        ok = 200 <= resp.status_code < 300
        if not ok and not policy.allow_non_200:
            raise DownloadError(f"Download error: HTTP {resp.status_code} for {url}")

        total = _content_length(resp)
        if total is not None and total > policy.max_bytes:
            raise DownloadError(f"Download error: content too large ({total} > {policy.max_bytes} bytes)")

        buf = bytearray()
        last_pct = -1
        for chunk in resp.iter_content(chunk_size=policy.chunk_size):
            if cancel is not None and cancel.is_set():
                raise DownloadError("Download error: cancelled")
            if not chunk:
                continue
            buf.extend(chunk)
            if len(buf) > policy.max_bytes:
                raise DownloadError(f"Download error: content exceeds {policy.max_bytes} bytes")
            if on_progress is not None and total is not None:
                pct = min(99, len(buf) * 100 // total)
                if pct != last_pct:
                    last_pct = pct
                    on_progress(pct)
    except requests.RequestException as e:
        raise DownloadError(f"Download error: {e}") from e
    finally:
        resp.close()

    return bytes(buf)


__all__ = ["fetch_bytes", "FetchFn", "ProgressFn"]
