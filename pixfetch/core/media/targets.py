# pixfetch/core/media/targets.py
"""
Presentation contracts.

A request renders into an `ImageTarget`: anything with `present(image)`.
Targets that also expose a float `alpha` attribute are `FadeableTarget`s and
get faded in from 0 to their alpha at presentation time. Plain callables are
wrapped in `CallableTarget`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ImageTarget(Protocol):
    def present(self, image: Any) -> None: ...


@runtime_checkable
class FadeableTarget(ImageTarget, Protocol):
    alpha: float


class CallableTarget:
    """Adapter turning `fn(image)` into an ImageTarget (no fading)."""

    def __init__(self, fn: Callable[[Any], None]) -> None:
        self._fn = fn

    def present(self, image: Any) -> None:
        self._fn(image)

    def __repr__(self) -> str:
        return f"CallableTarget({self._fn!r})"


def as_target(target: ImageTarget | Callable[[Any], None] | None) -> ImageTarget | None:
    if target is None or isinstance(target, ImageTarget):
        return target
    if callable(target):
        return CallableTarget(target)
    raise TypeError(f"target must provide present(image) or be callable, got {type(target).__name__}")


def supports_fade(target: ImageTarget) -> bool:
    return isinstance(target, FadeableTarget)


__all__ = ["ImageTarget", "FadeableTarget", "CallableTarget", "as_target", "supports_fade"]
