# -*- coding: utf-8 -*-
"""
In-memory signal history for trend detection.
Fixed-capacity ring buffers keyed by signal field name.

This is READ-OPTIMIZED, NOT DURABLE: history is lost on restart.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class DataPoint:
    """Single timestamped sample of a signal."""
    value: float
    timestamp_ms: int


class HistoryBuffer:
    """
    Fixed-size ring buffer of DataPoints.

    - Backing list is allocated once at construction
    - O(1) push, overwrites the oldest entry when full
    - Index 0 is always the oldest sample

    Usage:
        buffer = HistoryBuffer(capacity=3)
        buffer.push(1.0, 1000)
        buffer.push(2.0, 2000)
        recent = buffer.last(2)
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"HistoryBuffer capacity must be at least 1 (got {capacity})")
        self._capacity = capacity
        self._items: List[Optional[DataPoint]] = [None] * capacity
        self._head = 0  # next write position
        self._count = 0

    def push(self, value: float, timestamp_ms: int) -> DataPoint:
        """Append a sample, evicting the oldest one if the buffer is full."""
        point = DataPoint(value=value, timestamp_ms=timestamp_ms)
        self._items[self._head] = point
        self._head = (self._head + 1) % self._capacity
        if self._count < self._capacity:
            self._count += 1
        return point

    def get(self, index: int) -> Optional[DataPoint]:
        """Get sample at index (0 = oldest, len-1 = newest), None if out of range."""
        if index < 0 or index >= self._count:
            return None
        actual = (self._head - self._count + index) % self._capacity
        return self._items[actual]

    def peek(self) -> Optional[DataPoint]:
        """Newest sample."""
        if self._count == 0:
            return None
        return self._items[(self._head - 1) % self._capacity]

    def peek_oldest(self) -> Optional[DataPoint]:
        return self.get(0)

    def last(self, n: int) -> List[DataPoint]:
        """
        Get the last n samples in chronological order (oldest first).

        Returns every held sample when fewer than n exist.
        """
        start = max(0, self._count - max(n, 0))
        return [self.get(i) for i in range(start, self._count)]

    def to_list(self) -> List[DataPoint]:
        return self.last(self._count)

    def clear(self) -> None:
        """Reset pointers; slots are overwritten on the next pushes."""
        self._head = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_empty(self) -> bool:
        return self._count == 0

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[DataPoint]:
        for i in range(self._count):
            yield self.get(i)


class HistoryStore:
    """
    Per-field history buffers, created lazily on first update.

    Structure: field -> HistoryBuffer
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1 (got {capacity})")
        self.capacity = capacity
        self._buffers: Dict[str, HistoryBuffer] = {}

    def update(self, field: str, value: float, timestamp_ms: int) -> DataPoint:
        """Record a sample for field."""
        buffer = self._buffers.get(field)
        if buffer is None:
            buffer = HistoryBuffer(self.capacity)
            self._buffers[field] = buffer
        return buffer.push(value, timestamp_ms)

    def get(self, field: str) -> Optional[HistoryBuffer]:
        return self._buffers.get(field)

    def fields(self) -> List[str]:
        return list(self._buffers.keys())

    def clear(self) -> None:
        self._buffers.clear()

    def stats(self) -> Dict[str, int]:
        """Sample count per field."""
        return {field: len(buffer) for field, buffer in self._buffers.items()}
