# pixfetch/core/fetch/registry.py
"""
Single-flight coordination for network fetches, keyed by resource key.

At most one fetch per key is in flight. The first caller for a key becomes the
LEADER and must finish with `resolve()` or `fail()`; everyone arriving while
that fetch is pending becomes a FOLLOWER and shares its outcome.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

# on_result(data, error): exactly one of the two is not None
ResultCallback = Callable[[bytes | None, BaseException | None], None]


class FetchRole(str, Enum):
    LEADER = "leader"
    FOLLOWER = "follower"


@dataclass
class _InFlightFetch:
    key: str
    future: Future[bytes] = field(default_factory=Future)
    followers: int = 0


@dataclass(frozen=True)
class FetchTicket:
    """Handle returned by `begin_or_join`. Followers and the leader share one future."""

    key: str
    role: FetchRole
    _future: Future[bytes] = field(repr=False)

    @property
    def is_leader(self) -> bool:
        return self.role is FetchRole.LEADER

    def subscribe(self, on_result: ResultCallback) -> None:
        """
        Register `on_result`; callbacks run in subscription order.

        If the fetch already resolved, `on_result` runs immediately with the
        stored outcome, so no subscriber can miss a result.
        """

        def _done(fut: Future[bytes]) -> None:
            exc = fut.exception()
            if exc is not None:
                on_result(None, exc)
            else:
                on_result(fut.result(), None)

        self._future.add_done_callback(_done)

    def result(self, timeout: float | None = None) -> bytes:
        """Block until the fetch resolves; re-raises the leader's failure."""
        return self._future.result(timeout=timeout)


class FetchDedupRegistry:
    """Table of in-flight fetches. Safe to share between threads."""

    _default: ClassVar[FetchDedupRegistry | None] = None
    _default_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: dict[str, _InFlightFetch] = {}

    @classmethod
    def default(cls) -> FetchDedupRegistry:
        """Process-wide instance, created on first use."""
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls()
            return cls._default

    def begin_or_join(self, key: str) -> FetchTicket:
        with self._lock:
            entry = self._in_flight.get(key)
            if entry is None:
                entry = _InFlightFetch(key=key)
                # running futures cannot be cancelled by a subscriber
                entry.future.set_running_or_notify_cancel()
                self._in_flight[key] = entry
                return FetchTicket(key=key, role=FetchRole.LEADER, _future=entry.future)
            entry.followers += 1
            return FetchTicket(key=key, role=FetchRole.FOLLOWER, _future=entry.future)

    def resolve(self, key: str, data: bytes) -> None:
        """Remove the entry for `key`, then hand `data` to every subscriber."""
        entry = self._pop(key)
        entry.future.set_result(data)

    def fail(self, key: str, error: BaseException) -> None:
        """Remove the entry for `key`, then hand `error` to every subscriber."""
        entry = self._pop(key)
        entry.future.set_exception(error)

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    def follower_count(self, key: str) -> int:
        with self._lock:
            entry = self._in_flight.get(key)
            return entry.followers if entry is not None else 0

    def _pop(self, key: str) -> _InFlightFetch:
        with self._lock:
            entry = self._in_flight.pop(key, None)
        if entry is None:
            raise KeyError(f"no in-flight fetch for key {key!r}")
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._in_flight)
