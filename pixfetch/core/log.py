# pixfetch/core/log.py
"""
Logging helpers: namespaced module loggers plus an opt-in rotating debug log.

Set PIXFETCH_DEBUG=1 to mirror all `pixfetch.*` records at DEBUG level into
logs/pixfetch_debug.log.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

_ROOT_NAME = "pixfetch"
_DEBUG_HANDLER: logging.Handler | None = None


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the `pixfetch` namespace."""
    if name == _ROOT_NAME or name.startswith(_ROOT_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{_ROOT_NAME}.{name}")
    if debug_enabled():
        configure_debug_log()
    return logger


def debug_enabled() -> bool:
    return os.getenv("PIXFETCH_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def configure_debug_log(log_path: str | Path | None = None) -> logging.Handler | None:
    """Attach a rotating file handler to the `pixfetch` logger (idempotent)."""
    global _DEBUG_HANDLER
    if _DEBUG_HANDLER is not None:
        return _DEBUG_HANDLER

    path = Path(log_path) if log_path else Path("logs") / "pixfetch_debug.log"
    root = logging.getLogger(_ROOT_NAME)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError as e:
        # a missing log file must not break loading
        root.warning("[pixfetch] debug log unavailable: %s", e)
        return None

    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="(%Y-%m-%d %H:%M:%S)",
        )
    )
    handler.setLevel(logging.DEBUG)
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    _DEBUG_HANDLER = handler
    return handler


__all__ = ["get_logger", "debug_enabled", "configure_debug_log"]
