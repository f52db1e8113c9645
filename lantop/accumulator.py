"""Shared per-host byte deltas written by the capture thread and drained per tick."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Dict, Optional


@unique
class Direction(Enum):
    INBOUND = "in"
    OUTBOUND = "out"


class AccumulatorLockError(RuntimeError):
    """Raised when exclusive access to the accumulator cannot be obtained."""


@dataclass
class DrainedDeltas:
    """Point-in-time contents of the accumulator handed to the consumer."""

    hosts: Dict[bytes, int] = field(default_factory=dict)
    inbound: int = 0
    outbound: int = 0

    @property
    def total(self) -> int:
        return self.inbound + self.outbound


class DeltaAccumulator:
    """Bytes seen since the last drain, per host and per direction.

    ``record``/``record_frame`` are called from the capture thread for every
    frame; ``drain_and_reset`` is called once per tick by the consumer. All
    three serialize on one lock, so every recorded byte lands in exactly one
    drain.
    """

    __slots__ = ("_lock", "_classifier", "_lock_timeout", "_hosts", "_inbound", "_outbound")

    def __init__(
        self,
        classifier: Callable[[bytes], bool],
        *,
        lock_timeout: Optional[float] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._classifier = classifier
        self._lock_timeout = lock_timeout
        self._hosts: Dict[bytes, int] = {}
        self._inbound = 0
        self._outbound = 0

    # ------------------------------------------------------------------
    def record(self, host: bytes, byte_length: int, direction: Direction) -> None:
        """Attribute ``byte_length`` to ``host`` (when local) and to ``direction``."""
        tracked = self._classifier(host)
        with self._lock:
            self._add_direction(byte_length, direction)
            if tracked:
                self._hosts[host] = self._hosts.get(host, 0) + byte_length

    def record_frame(self, src: bytes, dst: bytes, byte_length: int, direction: Direction) -> None:
        """Account one frame: the direction total once, each local endpoint once."""
        src_tracked = self._classifier(src)
        dst_tracked = self._classifier(dst)
        with self._lock:
            self._add_direction(byte_length, direction)
            if src_tracked:
                self._hosts[src] = self._hosts.get(src, 0) + byte_length
            if dst_tracked:
                self._hosts[dst] = self._hosts.get(dst, 0) + byte_length

    # ------------------------------------------------------------------
    def drain_and_reset(self, timeout: Optional[float] = None) -> DrainedDeltas:
        """Swap out the accumulated deltas and start again from empty."""
        wait = self._lock_timeout if timeout is None else timeout
        acquired = self._lock.acquire() if wait is None else self._lock.acquire(timeout=wait)
        if not acquired:
            raise AccumulatorLockError(f"Could not lock the delta accumulator within {wait}s")
        try:
            drained = DrainedDeltas(self._hosts, self._inbound, self._outbound)
            self._hosts = {}
            self._inbound = 0
            self._outbound = 0
        finally:
            self._lock.release()
        return drained

    def pending_bytes(self) -> int:
        with self._lock:
            return self._inbound + self._outbound

    # ------------------------------------------------------------------
    def _add_direction(self, byte_length: int, direction: Direction) -> None:
        if direction is Direction.OUTBOUND:
            self._outbound += byte_length
        else:
            self._inbound += byte_length


__all__ = ["Direction", "AccumulatorLockError", "DrainedDeltas", "DeltaAccumulator"]
