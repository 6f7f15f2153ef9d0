# fetch_cli.py

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import Any

from pixfetch.core.fetch.errors import PixfetchError
from pixfetch.core.media.engine import ImageLoader
from pixfetch.schemas.models import LoadEvent, LoaderPolicy


class _SaveTarget:
    """Writes the presented image to disk and reports its size. `alpha` makes it fadeable."""

    def __init__(self, url: str, out_dir: Path | None) -> None:
        self.url = url
        self.out_dir = out_dir
        self.alpha = 1.0
        self.size: tuple[int, int] | None = None
        self.saved_to: Path | None = None

    def present(self, image: Any) -> None:
        self.size = getattr(image, "size", None)
        if self.out_dir is None or not hasattr(image, "save"):
            return
        self.out_dir.mkdir(parents=True, exist_ok=True)
        name = Path(self.url.split("?", 1)[0].rstrip("/")).name or "image"
        path = self.out_dir / f"{Path(name).stem}.png"
        image.save(path)
        self.saved_to = path


def _printer(url: str, lock: threading.Lock, verbose: bool):
    def _on_event(ev: LoadEvent) -> None:
        if ev.kind == "progress" and not verbose:
            return
        detail = ""
        if ev.kind == "progress":
            detail = f" {ev.progress}%"
        elif ev.kind == "error":
            detail = f" [{ev.error_kind}] {ev.message}"
        with lock:
            print(f"{ev.kind:<10} {url}{detail}")

    return _on_event


def main() -> int:
    p = argparse.ArgumentParser(description="Fetch and cache images")
    p.add_argument("urls", nargs="*", help="Image URLs to fetch concurrently")
    p.add_argument("--cache-dir", type=str, default=None, help="Content store directory (default: $PIXFETCH_CACHE_DIR or .cache/pixfetch)")
    p.add_argument("--no-cache", action="store_true", help="Bypass the content store for this run")
    p.add_argument("--fade", type=float, default=0.0, help="Fade duration in seconds (0 disables)")
    p.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    p.add_argument("--out", type=str, default=None, help="Directory to save decoded images as PNG")
    p.add_argument("--clear", action="append", default=[], metavar="URL", help="Delete the cache entry for URL (repeatable)")
    p.add_argument("--clear-all", action="store_true", help="Delete the whole content store")
    p.add_argument("--verbose", "-v", action="store_true", help="Show progress events and request logs")

    args = p.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(levelname)s %(name)s %(message)s")

    overrides: dict[str, Any] = {"log_enabled": bool(args.verbose)}
    if args.cache_dir:
        overrides["cache_dir"] = Path(args.cache_dir)
    if args.timeout is not None:
        overrides["timeout_s"] = args.timeout
    policy = LoaderPolicy.from_env(**overrides)

    with ImageLoader(policy) as loader:
        try:
            if args.clear_all:
                loader.clear_all_cache()
                print(f"cleared  {policy.cache_dir}")
            for url in args.clear:
                loader.clear_cache_entry(url)
                print(f"cleared  {url}")
        except PixfetchError as e:
            print(f"error    {e}")
            return 2

        out_dir = Path(args.out) if args.out else None
        lock = threading.Lock()
        jobs = []
        for url in args.urls:
            target = _SaveTarget(url, out_dir)
            req = (
                loader.request(url)
                .into(target)
                .cached(not args.no_cache)
                .fade(args.fade)
                .on_event(_printer(url, lock, args.verbose))
                .start()
            )
            jobs.append((req, target))

        failed = 0
        for req, target in jobs:
            req.wait(timeout=policy.timeout_s * 4 + args.fade + 5)
            if target.size is None:
                failed += 1
                continue
            where = f" -> {target.saved_to}" if target.saved_to else ""
            print(f"image    {target.url} {target.size[0]}x{target.size[1]}{where}")

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
