"""Global per-tick traffic history used for charting, plus lifetime counters."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List


class HistoryBuffer:
    """Constant-length sequence of the most recent per-tick totals (oldest first)."""

    __slots__ = ("_values",)

    def __init__(self, length: int) -> None:
        if length < 1:
            raise ValueError("history length must be at least 1")
        self._values: Deque[int] = deque([0] * length, maxlen=length)

    def push(self, value: int) -> None:
        self._values.append(value)

    def values(self) -> List[int]:
        return list(self._values)

    @property
    def latest(self) -> int:
        return self._values[-1]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)


@dataclass
class TrafficTotals:
    """Lifetime byte totals and the largest single-tick totals seen so far."""

    total_inbound: int = 0
    total_outbound: int = 0
    peak_inbound: int = 0
    peak_outbound: int = 0

    def add_tick(self, inbound: int, outbound: int) -> None:
        self.total_inbound += inbound
        self.total_outbound += outbound
        if inbound > self.peak_inbound:
            self.peak_inbound = inbound
        if outbound > self.peak_outbound:
            self.peak_outbound = outbound


__all__ = ["HistoryBuffer", "TrafficTotals"]
