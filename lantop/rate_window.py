"""Fixed-width moving average of per-tick byte deltas for one host."""

from __future__ import annotations

from collections import deque
from typing import Deque, Tuple


class HostRateWindow:
    """Sliding window of the last ``capacity`` tick deltas plus their running sum."""

    __slots__ = ("_capacity", "_tick_seconds", "_samples", "_sum")

    def __init__(self, capacity: int, tick_seconds: float) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be greater than 0")
        self._capacity = int(capacity)
        self._tick_seconds = float(tick_seconds)
        self._samples: Deque[int] = deque()
        self._sum: int = 0

    def update(self, byte_delta: int) -> float:
        """Push this tick's delta, evicting the oldest sample past capacity."""
        self._samples.append(byte_delta)
        self._sum += byte_delta
        if len(self._samples) > self._capacity:
            self._sum -= self._samples.popleft()
        return self.average_rate

    # ------------------------------------------------------------------
    @property
    def average_rate(self) -> float:
        """Bytes per second over the samples currently held."""
        if not self._samples:
            return 0.0
        return self._sum / (len(self._samples) * self._tick_seconds)

    @property
    def running_sum(self) -> int:
        return self._sum

    @property
    def samples(self) -> Tuple[int, ...]:
        return tuple(self._samples)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._samples)


__all__ = ["HostRateWindow"]
