"""Progress tracking shared between conversion workers."""

import threading
from typing import Callable, Optional


class ProgressCounter:
    """Counts completed tasks out of a known total.

    ``advance`` is atomic; the optional callback runs while the lock is held,
    so reports are emitted in counter order.
    """

    def __init__(self, total: int, on_advance: Optional[Callable[[int, int], None]] = None):
        self.total = total
        self.on_advance = on_advance
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    @property
    def is_complete(self) -> bool:
        return self.value >= self.total

    def advance(self) -> int:
        """Increment by one and return the new count."""
        with self._lock:
            self._value += 1
            if self.on_advance:
                self.on_advance(self._value, self.total)
            return self._value
