# tests/unit/test_schemas.py
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pixfetch.schemas.models import LoadedResource, LoadEvent, LoaderPolicy, RequestOptions


def test_policy_defaults_are_sane(tmp_path: Path) -> None:
    p = LoaderPolicy(cache_dir=tmp_path)
    assert p.cache_dir == tmp_path
    assert p.cache_enabled is True
    assert p.fade_s == pytest.approx(1.0)
    assert p.allow_non_200 is False
    assert p.max_workers >= 1
    assert isinstance(p.user_agent, str) and p.user_agent


def test_policy_cache_dir_defaults_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PIXFETCH_CACHE_DIR", str(tmp_path / "elsewhere"))
    assert LoaderPolicy().cache_dir == tmp_path / "elsewhere"


def test_policy_from_env_with_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PIXFETCH_TIMEOUT_S", "3.5")
    monkeypatch.setenv("PIXFETCH_USER_AGENT", "UnitTest/0.1")
    p = LoaderPolicy.from_env(cache_dir=tmp_path, user_agent="Explicit/1.0")
    assert p.timeout_s == pytest.approx(3.5)
    assert p.user_agent == "Explicit/1.0"


@pytest.mark.parametrize("field,value", [("timeout_s", 0), ("fade_s", -1), ("max_workers", 0), ("max_bytes", 0)])
def test_policy_rejects_out_of_range_values(tmp_path: Path, field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        LoaderPolicy(cache_dir=tmp_path, **{field: value})


def test_policy_is_frozen(tmp_path: Path) -> None:
    p = LoaderPolicy(cache_dir=tmp_path)
    with pytest.raises(ValidationError):
        p.timeout_s = 99  # type: ignore[misc]


def test_request_options_inherit_policy_defaults(tmp_path: Path) -> None:
    p = LoaderPolicy(cache_dir=tmp_path, fade_s=0.25, cache_enabled=False, log_enabled=True)
    opts = RequestOptions.from_policy(p)
    assert opts.url is None
    assert opts.fade_s == pytest.approx(0.25)
    assert opts.cached is False
    assert opts.log_enabled is True
    assert opts.loading_placeholder is None and opts.error_placeholder is None


def test_load_event_progress_bounds() -> None:
    assert LoadEvent(kind="progress", progress=100).progress == 100
    with pytest.raises(ValidationError):
        LoadEvent(kind="progress", progress=101)
    with pytest.raises(ValidationError):
        LoadEvent(kind="finished")  # type: ignore[arg-type]


def test_load_event_is_error() -> None:
    ev = LoadEvent(kind="error", error_kind="download", message="Download error: HTTP 404")
    assert ev.is_error
    assert not LoadEvent(kind="ended").is_error


def test_loaded_resource_requires_full_key() -> None:
    with pytest.raises(ValidationError):
        LoadedResource(url="https://x.example/", key="short", data=b"", source="cache")
    res = LoadedResource(url="https://x.example/", key="a" * 64, data=b"x", source="network")
    assert res.warnings == []
