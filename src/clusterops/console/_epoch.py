"""Cancellation epoch shared by the console's timers."""

from __future__ import annotations


class Epoch:
    """Monotonic counter that invalidates work started before a stop.

    Timers and in-flight calls capture ``current`` when they begin and
    check ``is_current`` before touching shared state.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value

    def __repr__(self) -> str:
        return f"Epoch({self._value})"
