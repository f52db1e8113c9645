"""Tick-driven aggregation of captured bytes into rates, history and rankings."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .accumulator import DeltaAccumulator, Direction
from .config import HISTORY_WINDOW_SECS, MonitorConfig
from .frame_info import FrameInfo
from .history import HistoryBuffer, TrafficTotals
from .ranking import HostRate, rank_hosts
from .rate_window import HostRateWindow
from .subnet import LocalSubnetClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BandwidthSnapshot:
    """Everything the renderer may read after a tick.

    Byte figures are per tick unless the name says ``rate`` (bytes/second).
    """

    tick_seconds: float
    inbound_history: Tuple[int, ...] = ()
    outbound_history: Tuple[int, ...] = ()
    current_inbound: int = 0
    current_outbound: int = 0
    peak_inbound: int = 0
    peak_outbound: int = 0
    total_inbound: int = 0
    total_outbound: int = 0
    ranking: Tuple[HostRate, ...] = field(default_factory=tuple)
    window_secs: float = HISTORY_WINDOW_SECS

    @property
    def tracked_hosts(self) -> int:
        return len(self.ranking)

    @property
    def current_inbound_rate(self) -> float:
        return self.current_inbound / self.tick_seconds

    @property
    def current_outbound_rate(self) -> float:
        return self.current_outbound / self.tick_seconds

    @property
    def peak_inbound_rate(self) -> float:
        return self.peak_inbound / self.tick_seconds

    @property
    def peak_outbound_rate(self) -> float:
        return self.peak_outbound / self.tick_seconds


class BandwidthEngine:
    """Consumer side of the monitor: drains the accumulator once per tick.

    The engine is Idle between ticks. ``poll`` switches it to Ticking when a
    full tick interval has elapsed, runs exactly one pass and returns to
    Idle. Only the accumulator is shared with the capture thread; windows,
    history buffers and the ranking are touched by the consumer alone.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        *,
        accumulator: Optional[DeltaAccumulator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or MonitorConfig()
        self.classifier = LocalSubnetClassifier(self.config.local_subnets)
        self.accumulator = accumulator or DeltaAccumulator(self.classifier)
        self._clock = clock

        samples = self.config.window_samples
        self.inbound_history = HistoryBuffer(samples)
        self.outbound_history = HistoryBuffer(samples)
        self.totals = TrafficTotals()
        self._windows: Dict[bytes, HostRateWindow] = {}
        self._ranking: List[HostRate] = []
        self._tick_count = 0
        self._last_tick = clock()
        self._snapshot = self._build_snapshot()

    # ------------------------------------------------------------------
    def on_frame(self, frame: FrameInfo) -> None:
        """Producer entry point, called from the capture thread."""
        local = self.config.local_address
        if local is not None and frame.is_outbound(local):
            direction = Direction.OUTBOUND
        else:
            direction = Direction.INBOUND
        self.accumulator.record_frame(frame.src, frame.dst, frame.length, direction)

    # ------------------------------------------------------------------
    def time_until_next_tick(self, now: Optional[float] = None) -> float:
        current = self._clock() if now is None else now
        remaining = self.config.tick_seconds - (current - self._last_tick)
        return max(remaining, 0.0)

    def poll(self, now: Optional[float] = None) -> bool:
        """Run one pass if the tick interval has elapsed; report whether it ran."""
        current = self._clock() if now is None else now
        if current - self._last_tick < self.config.tick_seconds:
            return False
        self.tick()
        self._last_tick = current if now is not None else self._clock()
        return True

    def tick(self) -> BandwidthSnapshot:
        """One synchronous update pass over the drained deltas."""
        drained = self.accumulator.drain_and_reset()

        self.inbound_history.push(drained.inbound)
        self.outbound_history.push(drained.outbound)
        self.totals.add_tick(drained.inbound, drained.outbound)

        hosts = list(self._windows)
        hosts.extend(host for host in drained.hosts if host not in self._windows)

        kept: List[HostRate] = []
        for host in hosts:
            window = self._windows.get(host)
            if window is None:
                window = HostRateWindow(self.config.window_samples, self.config.tick_seconds)
                self._windows[host] = window
            rate = window.update(drained.hosts.get(host, 0))
            if window.running_sum == 0:
                del self._windows[host]
            else:
                kept.append((host, rate))

        self._ranking = rank_hosts(kept)
        self._tick_count += 1
        self._snapshot = self._build_snapshot()

        logger.debug(
            "tick %d: in=%d out=%d hosts=%d",
            self._tick_count,
            drained.inbound,
            drained.outbound,
            len(self._windows),
        )
        return self._snapshot

    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> BandwidthSnapshot:
        return self._snapshot

    @property
    def ranking(self) -> List[HostRate]:
        return list(self._ranking)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def is_tracked(self, host: bytes) -> bool:
        return host in self._windows

    def window_for(self, host: bytes) -> Optional[HostRateWindow]:
        return self._windows.get(host)

    def _build_snapshot(self) -> BandwidthSnapshot:
        return BandwidthSnapshot(
            tick_seconds=self.config.tick_seconds,
            inbound_history=tuple(self.inbound_history),
            outbound_history=tuple(self.outbound_history),
            current_inbound=self.inbound_history.latest,
            current_outbound=self.outbound_history.latest,
            peak_inbound=self.totals.peak_inbound,
            peak_outbound=self.totals.peak_outbound,
            total_inbound=self.totals.total_inbound,
            total_outbound=self.totals.total_outbound,
            ranking=tuple(self._ranking),
            window_secs=self.config.history_window_secs,
        )


__all__ = ["BandwidthSnapshot", "BandwidthEngine"]
