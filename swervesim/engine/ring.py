from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class SampleRing(Generic[T]):
    """Fixed-capacity FIFO backed by a preallocated list.

    The ring is always full: it is created with ``fill`` in every slot and
    each ``push`` overwrites the oldest sample.
    """

    def __init__(self, capacity: int, fill: T):
        if capacity < 1:
            raise ValueError(f"ring capacity must be >= 1, got {capacity}")
        self._slots: list[T] = [fill] * capacity
        self._head = 0  # index of the oldest sample

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[T]:
        n = len(self._slots)
        for i in range(n):
            yield self._slots[(self._head + i) % n]

    def push(self, sample: T) -> None:
        self._slots[self._head] = sample
        self._head = (self._head + 1) % len(self._slots)

    def latest(self) -> T:
        return self._slots[self._head - 1]

    def snapshot(self) -> list[T]:
        return list(self)
