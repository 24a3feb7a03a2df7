"""Tick sources that drive timed exam sessions.

A clock hands out one-second ticks to subscribers. ``on_tick`` returns a
cancel function; once called, the subscriber receives no further ticks.
Both clocks here are single-threaded: ticks are delivered from whichever
call advances the clock.
"""
import time
from typing import Callable, Protocol


class Clock(Protocol):
    def on_tick(self, callback: Callable[[], None]) -> Callable[[], None]:
        ...


class _Subscriptions:
    def __init__(self):
        self._callbacks: list = []

    def add(self, callback: Callable[[], None]) -> Callable[[], None]:
        entry = [callback]
        self._callbacks.append(entry)

        def cancel() -> None:
            if entry in self._callbacks:
                self._callbacks.remove(entry)

        return cancel

    def deliver(self) -> None:
        # Copy: a callback may cancel itself or others mid-delivery.
        for entry in list(self._callbacks):
            if entry in self._callbacks:
                entry[0]()

    def __len__(self) -> int:
        return len(self._callbacks)


class ManualClock:
    """Clock advanced explicitly by the caller. Used by tests and scripts."""

    def __init__(self):
        self._subs = _Subscriptions()

    def on_tick(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._subs.add(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def advance(self, seconds: int = 1) -> None:
        for _ in range(seconds):
            if not self._subs:
                break
            self._subs.deliver()


class PolledClock:
    """Wall-clock ticks delivered on demand.

    Each ``poll()`` delivers one tick per whole second elapsed since the last
    delivered tick, so an interactive loop that blocks on input catches up
    when it wakes.
    """

    def __init__(self, now: Callable[[], float] = time.monotonic):
        self._now = now
        self._subs = _Subscriptions()
        self._last = now()

    def on_tick(self, callback: Callable[[], None]) -> Callable[[], None]:
        if not self._subs:
            self._last = self._now()
        return self._subs.add(callback)

    def poll(self) -> int:
        """Deliver pending ticks. Returns how many were delivered."""
        elapsed = int(self._now() - self._last)
        delivered = 0
        for _ in range(elapsed):
            if not self._subs:
                break
            self._subs.deliver()
            delivered += 1
        self._last += elapsed
        return delivered
