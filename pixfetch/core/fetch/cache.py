# pixfetch/core/fetch/cache.py
"""
Deterministic on-disk content store for fetched image bytes.

Layout (flat, no sharding):
  <root>/<sha256(canonical_url)>
"""

from __future__ import annotations

import os
import shutil
import tempfile
from hashlib import sha256 as _sha256lib
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from .errors import CacheIOError, InvalidUrlError

_ALLOWED_SCHEMES = {"http", "https"}
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _sha256(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8", errors="ignore")
    return _sha256lib(data).hexdigest()


def canonicalize_url(url: str | None) -> str:
    """
    Return the absolute, canonical form of `url` or raise InvalidUrlError.

    Normalized: surrounding whitespace, scheme/host case, default port,
    empty path ("/"), fragment (dropped).
    Kept byte-exact: path, query (parameter order and percent-encoding case).
    """
    if url is None:
        raise InvalidUrlError("Url has not been set. Use 'load' function to set image url.")

    raw = url.strip()
    if not raw or any(ch.isspace() for ch in raw):
        raise InvalidUrlError(f"URL error: invalid URI: {url!r}")

    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as e:
        raise InvalidUrlError(f"URL error: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidUrlError(f"URL error: unsupported or missing scheme in {url!r}")
    host = (parts.hostname or "").lower()
    if not host:
        raise InvalidUrlError(f"URL error: missing host in {url!r}")

    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def resource_key(url: str) -> str:
    """Stable cache/dedup key: sha256 hex of the canonical URL."""
    return _sha256(canonicalize_url(url))


class ContentStore:
    """Flat directory of cache entries addressed by resource key."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / key

    def has(self, key: str) -> bool:
        p = self.path_for(key)
        return p.is_file() and os.access(p, os.R_OK)

    def read(self, key: str) -> bytes:
        try:
            return self.path_for(key).read_bytes()
        except OSError as e:
            raise CacheIOError(f"Load file error: {e}") from e

    def write(self, key: str, data: bytes) -> Path:
        """
        Persist `data` under `key`.

        Bytes go to a temp file in the same directory and are moved onto the
        final name with `replace()`, so readers never see a partial entry.
        """
        final_path = self.path_for(key)
        tmp_path: Path | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(prefix="dl_", suffix=".part", delete=False, dir=str(self.root)) as tf:
                tmp_path = Path(tf.name)
                tf.write(data)
            tmp_path.replace(final_path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise CacheIOError(f"Save file error: {e}") from e
        return final_path

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(f"Error while removing cached file: {e}") from e

    def delete_all(self) -> None:
        if not self.root.exists():
            return
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            return
        except OSError as e:
            raise CacheIOError(f"Error while removing cache directory: {e}") from e

    def __repr__(self) -> str:
        return f"ContentStore(root={str(self.root)!r})"
