# pixfetch/core/anim/animator.py
"""
Cooperative, time-stepped linear tween scheduler.

Each `Tween` interpolates a scalar from `start` to `end` over `duration`
seconds and calls `action(value)` at most once per tick. Ticks come either
from the host (`Animator.tick(dt)`, e.g. once per frame) or from a daemon
`TickDriver` thread the animator starts while tweens are active.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from pixfetch.core.log import get_logger

logger = get_logger(__name__)

StepAction = Callable[[float], None]


def linear(start: float, end: float, elapsed: float, duration: float) -> float:
    return start + (end - start) * elapsed / duration


class Tween:
    """State of one animation run. Mutated only by the owning Animator's tick."""

    def __init__(self, action: StepAction, start: float, end: float, duration: float) -> None:
        self.action = action
        self.start = float(start)
        self.end = float(end)
        self.duration = float(duration)
        self.elapsed = 0.0
        self._done = threading.Event()
        self._cancelled = False
        self._callbacks: list[Callable[[Tween], None]] = []
        # held while `action` runs, so cancel() returns only after the current step
        self._lock = threading.RLock()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not (self._done.is_set() or self._cancelled)

    def cancel(self) -> None:
        """Stop further `action` calls. Already applied values stay applied."""
        with self._lock:
            if self._done.is_set():
                return
            self._cancelled = True
        # wake waiters; done callbacks only fire on natural completion
        self._done.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def add_done_callback(self, fn: Callable[[Tween], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(fn)
                return
            finished = not self._cancelled
        if finished:
            fn(self)

    def _step(self, dt: float) -> bool:
        """Advance by `dt`; returns True when the run finished on this step."""
        if dt <= 0:
            return False
        with self._lock:
            if not self.active:
                return False
            self.elapsed += dt
            if self.elapsed < self.duration:
                self.action(linear(self.start, self.end, self.elapsed, self.duration))
                return False
            self.action(self.end)
        self._finish()
        return True

    def _finish(self) -> None:
        with self._lock:
            if not self.active:
                return
            callbacks, self._callbacks = self._callbacks, []
            self._done.set()
        for fn in callbacks:
            try:
                fn(self)
            except Exception:
                logger.exception("tween done callback failed")

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("done" if self.done else "active")
        return f"Tween({self.start}->{self.end}, {self.elapsed:.3f}/{self.duration:.3f}s, {state})"


class Animator:
    """
    Owns active tweens and steps them.

    autostart=True:  a TickDriver thread ticks at `tick_hz` while any tween is active.
    autostart=False: the host must call `tick(dt)`.
    """

    def __init__(
        self,
        *,
        autostart: bool = True,
        tick_hz: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.autostart = autostart
        self.tick_hz = tick_hz
        self.clock = clock
        self._tweens: list[Tween] = []
        self._lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._driver: TickDriver | None = None

    def run(self, action: StepAction, start: float, end: float, duration: float) -> Tween:
        tween = Tween(action, start, end, duration)
        if duration <= 0:
            action(tween.end)
            tween._finish()
            return tween

        action(tween.start)
        with self._lock:
            self._tweens.append(tween)
            if self.autostart and (self._driver is None or not self._driver.is_alive()):
                self._driver = TickDriver(self, hz=self.tick_hz, clock=self.clock)
                self._driver.start()
        return tween

    def tick(self, dt: float) -> int:
        """Advance every active tween by `dt` seconds. Returns the number still active."""
        with self._tick_lock:
            with self._lock:
                current = list(self._tweens)
            for tween in current:
                try:
                    tween._step(dt)
                except Exception:
                    logger.exception("tween step failed; cancelling %r", tween)
                    tween.cancel()
            with self._lock:
                self._tweens = [t for t in self._tweens if t.active]
                return len(self._tweens)

    @property
    def active_count(self) -> int:
        with self._lock:
            return sum(1 for t in self._tweens if t.active)

    def cancel_all(self) -> None:
        with self._lock:
            tweens, self._tweens = self._tweens, []
        for t in tweens:
            t.cancel()


class TickDriver(threading.Thread):
    """Daemon thread pumping `animator.tick(dt)` with wall-clock deltas until no tween is active."""

    def __init__(self, animator: Animator, *, hz: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(name="pixfetch-tick", daemon=True)
        self.animator = animator
        self.interval = 1.0 / hz
        self.clock = clock

    def run(self) -> None:
        last = self.clock()
        while True:
            time.sleep(self.interval)
            now = self.clock()
            remaining = self.animator.tick(now - last)
            last = now
            if remaining == 0:
                with self.animator._lock:
                    # a tween queued between tick() and here keeps us alive
                    if not any(t.active for t in self.animator._tweens):
                        self.animator._driver = None
                        return


__all__ = ["Animator", "Tween", "TickDriver", "linear", "StepAction"]
