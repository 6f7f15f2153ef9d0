# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from pixfetch.core.anim.animator import Animator
from pixfetch.core.fetch.cache import ContentStore
from pixfetch.core.fetch.registry import FetchDedupRegistry
from pixfetch.core.media.engine import ImageLoader
from tests.utils import CountingFetch, make_policy
from tests.utils import png_bytes as _make_png


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    # never touch the developer's real cache or debug log
    monkeypatch.setenv("PIXFETCH_CACHE_DIR", str(tmp_path / "env-cache"))
    monkeypatch.delenv("PIXFETCH_DEBUG", raising=False)
    monkeypatch.delenv("PIXFETCH_TIMEOUT_S", raising=False)
    monkeypatch.delenv("PIXFETCH_USER_AGENT", raising=False)
    yield


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def policy(cache_dir: Path):
    return make_policy(cache_dir)


@pytest.fixture
def store(cache_dir: Path) -> ContentStore:
    return ContentStore(cache_dir)


@pytest.fixture
def registry() -> FetchDedupRegistry:
    return FetchDedupRegistry()


@pytest.fixture
def manual_animator() -> Animator:
    """Animator that only advances when the test calls tick(dt)."""
    return Animator(autostart=False)


@pytest.fixture
def png_bytes():
    """
    Callable producing PNG bytes.
    Usage:
        data = png_bytes(16, 16)
    """
    return _make_png


@pytest.fixture
def loader_factory(policy, store, registry, manual_animator):
    """
    Build ImageLoaders sharing this test's store/registry/animator.

    Usage:
        loader = loader_factory(fetch=CountingFetch())
    """
    created: list[ImageLoader] = []

    def _factory(*, fetch=None, **overrides) -> ImageLoader:
        kwargs = {
            "store": store,
            "registry": registry,
            "animator": manual_animator,
            "fetch": fetch if fetch is not None else CountingFetch(),
        }
        kwargs.update(overrides)
        loader = ImageLoader(policy, **kwargs)
        created.append(loader)
        return loader

    yield _factory

    for loader in created:
        loader.shutdown(wait=True)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
