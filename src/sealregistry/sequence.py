"""Monotonic identifier allocation for the ledgers."""

import threading


class SequenceAllocator:
    """
    Gapless counter starting at ``start``.

    Increment-and-read is one atomic step. Issued values are never reused.
    """

    def __init__(self, start: int = 1):
        if start < 1:
            raise ValueError("sequence must start at a positive integer")
        self._next = start
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """The value the next allocate() call will return."""
        with self._lock:
            return self._next

    @property
    def last(self) -> int:
        """Most recently issued value, 0 before the first allocation."""
        with self._lock:
            return self._next - 1
