"""A value shared between threads, guarded by a lock and a condition."""

from __future__ import annotations

import threading
import time
from typing import Generic, TypeVar

T = TypeVar("T")


class SyncedValue(Generic[T]):
    """Holds one value that several threads read, write and wait on."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._last = initial
        self._condition = threading.Condition()

    def assign(self, value: T) -> None:
        """Replace the value."""
        with self._condition:
            self._value = self._last = value

    def get(self) -> T:
        """Return a snapshot of the value."""
        with self._condition:
            self._last = self._value
            return self._last

    def assign_and_notify_all(self, value: T) -> None:
        """Replace the value and wake every thread waiting for a signal."""
        with self._condition:
            self._value = value
            self._condition.notify_all()

    def notify_all(self) -> None:
        """Wake every thread waiting for a signal."""
        with self._condition:
            self._condition.notify_all()

    def wait_for_signal(self, timeout: float | None = None) -> T:
        """Block until notified, then return the value.

        Raises TimeoutError if ``timeout`` seconds pass without a signal.
        """
        with self._condition:
            if not self._condition.wait(timeout):
                raise TimeoutError("no signal received")
            self._last = self._value
            return self._last

    def get_after(self, wait_us: int = 33000) -> T:
        """Sleep for ``wait_us`` microseconds, then return the value."""
        time.sleep(wait_us / 1_000_000)
        return self.get()

    def increment(self) -> None:
        """Add one to the value."""
        with self._condition:
            self._value += 1  # type: ignore[operator]