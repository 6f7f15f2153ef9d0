# tests/unit/test_fetch_registry.py
from __future__ import annotations

import threading

import pytest

from pixfetch.core.fetch.errors import DownloadError
from pixfetch.core.fetch.registry import FetchDedupRegistry, FetchRole


def test_first_caller_leads_later_callers_follow(registry: FetchDedupRegistry) -> None:
    leader = registry.begin_or_join("k")
    follower = registry.begin_or_join("k")
    other = registry.begin_or_join("other")

    assert leader.role is FetchRole.LEADER and leader.is_leader
    assert follower.role is FetchRole.FOLLOWER and not follower.is_leader
    assert other.is_leader  # keys are independent
    assert registry.in_flight("k")
    assert registry.follower_count("k") == 1
    assert len(registry) == 2


def test_resolve_notifies_subscribers_in_order_and_removes_entry(registry: FetchDedupRegistry) -> None:
    registry.begin_or_join("k")
    seen: list[tuple[str, bytes | None, BaseException | None]] = []
    for name in ("a", "b", "c"):
        ticket = registry.begin_or_join("k")
        ticket.subscribe(lambda data, err, name=name: seen.append((name, data, err)))

    registry.resolve("k", b"payload")

    assert [s[0] for s in seen] == ["a", "b", "c"]
    assert all(s[1] == b"payload" and s[2] is None for s in seen)
    assert not registry.in_flight("k")
    assert registry.follower_count("k") == 0


def test_subscribe_after_resolution_still_receives_result(registry: FetchDedupRegistry) -> None:
    registry.begin_or_join("k")
    late = registry.begin_or_join("k")
    registry.resolve("k", b"x")

    got: list[bytes | None] = []
    late.subscribe(lambda data, err: got.append(data))
    assert got == [b"x"]
    assert late.result(timeout=0) == b"x"


def test_fail_propagates_error_to_followers(registry: FetchDedupRegistry) -> None:
    leader = registry.begin_or_join("k")
    follower = registry.begin_or_join("k")
    errors: list[BaseException | None] = []
    follower.subscribe(lambda data, err: errors.append(err))

    boom = DownloadError("Download error: HTTP 500")
    registry.fail("k", boom)

    assert errors == [boom]
    with pytest.raises(DownloadError):
        follower.result(timeout=0)
    with pytest.raises(DownloadError):
        leader.result(timeout=0)
    # the key is free again: next caller leads a fresh fetch
    assert registry.begin_or_join("k").is_leader


def test_resolve_is_exactly_once(registry: FetchDedupRegistry) -> None:
    registry.begin_or_join("k")
    registry.resolve("k", b"x")
    with pytest.raises(KeyError):
        registry.resolve("k", b"x")
    with pytest.raises(KeyError):
        registry.fail("never-started", DownloadError("x"))


def test_concurrent_begin_or_join_elects_a_single_leader(registry: FetchDedupRegistry) -> None:
    n = 32
    barrier = threading.Barrier(n)
    roles: list[FetchRole] = []
    lock = threading.Lock()

    def _worker() -> None:
        barrier.wait()
        ticket = registry.begin_or_join("same")
        with lock:
            roles.append(ticket.role)

    threads = [threading.Thread(target=_worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert roles.count(FetchRole.LEADER) == 1
    assert roles.count(FetchRole.FOLLOWER) == n - 1
    assert registry.follower_count("same") == n - 1


def test_follower_blocks_until_leader_resolves(registry: FetchDedupRegistry) -> None:
    registry.begin_or_join("k")
    follower = registry.begin_or_join("k")
    out: list[bytes] = []

    t = threading.Thread(target=lambda: out.append(follower.result(timeout=5)))
    t.start()
    assert out == []
    registry.resolve("k", b"late")
    t.join(timeout=5)
    assert out == [b"late"]


def test_default_registry_is_process_wide() -> None:
    assert FetchDedupRegistry.default() is FetchDedupRegistry.default()
    assert FetchDedupRegistry() is not FetchDedupRegistry.default()
