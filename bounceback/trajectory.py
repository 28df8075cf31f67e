"""
Fixed-capacity history of recent ball positions.
"""

from typing import Iterator, List, Optional

from models.primitives import Point2D

DEFAULT_CAPACITY = 100


class TrajectoryBuffer:
    """Circular buffer of the most recent ball centroids.

    Positions are indexed backwards from the newest insertion: at(0) is the
    latest point, at(1) the one before it, and so on. Once full, inserting
    overwrites the oldest slot.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data: List[Optional[Point2D]] = [None] * capacity
        self._tail = 0  # Slot the next insertion goes to
        self._size = 0

    def reset(self) -> None:
        """Discard all stored positions."""
        self._data = [None] * self.capacity
        self._tail = 0
        self._size = 0

    def insert(self, point: Point2D) -> None:
        """Append a position as the most recent, evicting the oldest if full."""
        self._data[self._tail] = point
        self._tail = (self._tail + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def at(self, k: int) -> Point2D:
        """Return the position inserted k steps before the newest one.

        Raises:
            IndexError: If k is negative or not below the current size
        """
        if k < 0 or k >= self._size:
            raise IndexError(f"Trajectory index {k} out of range (size {self._size})")
        return self._data[(self._tail - 1 - k) % self.capacity]

    def recent(self, n: Optional[int] = None) -> Iterator[Point2D]:
        """Iterate newest-first over up to n stored positions."""
        count = self._size if n is None else min(n, self._size)
        for k in range(count):
            yield self.at(k)

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0
