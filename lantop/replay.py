"""Offline driver that runs the engine over a pcap on capture-time ticks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from .config import MonitorConfig
from .engine import BandwidthEngine, BandwidthSnapshot
from .frame_info import FrameInfo
from .packet_reader import PacketReader

logger = logging.getLogger(__name__)


@dataclass
class ReplayResult:
    frames: int
    ticks: int
    snapshot: BandwidthSnapshot
    first_timestamp: Optional[int] = None
    last_timestamp: Optional[int] = None

    @property
    def duration_s(self) -> float:
        if self.first_timestamp is None or self.last_timestamp is None:
            return 0.0
        return (self.last_timestamp - self.first_timestamp) / 1_000_000


def replay_frames(frames: Iterable[FrameInfo], engine: BandwidthEngine) -> ReplayResult:
    """Feed frames in timestamp order, ticking whenever a tick boundary passes.

    The first tick after a gap flushes the traffic recorded before it, and
    ``window_samples`` more empty every host window and history buffer, so no
    more than that many ticks are run per gap.
    """
    tick_us = engine.config.tick_interval_ms * 1000
    max_gap_ticks = engine.config.window_samples + 1
    next_boundary: Optional[int] = None
    first_ts: Optional[int] = None
    last_ts: Optional[int] = None
    count = 0

    for frame in frames:
        if next_boundary is None:
            first_ts = frame.timestamp
            next_boundary = frame.timestamp + tick_us
        elif frame.timestamp >= next_boundary:
            crossed = (frame.timestamp - next_boundary) // tick_us + 1
            for _ in range(min(crossed, max_gap_ticks)):
                engine.tick()
            next_boundary += crossed * tick_us
        engine.on_frame(frame)
        last_ts = frame.timestamp
        count += 1

    if count:
        engine.tick()

    logger.debug("Replayed %d frames over %d ticks", count, engine.tick_count)
    return ReplayResult(
        frames=count,
        ticks=engine.tick_count,
        snapshot=engine.snapshot,
        first_timestamp=first_ts,
        last_timestamp=last_ts,
    )


def replay_pcap(pcap_path: Union[str, Path], config: Optional[MonitorConfig] = None) -> ReplayResult:
    engine = BandwidthEngine(config)
    with PacketReader(pcap_path) as reader:
        result = replay_frames(reader, engine)
        logger.info(
            "Replayed %s: frames=%d skipped=%d ticks=%d",
            reader.path.name,
            result.frames,
            reader.skipped_frames,
            result.ticks,
        )
    return result


__all__ = ["ReplayResult", "replay_frames", "replay_pcap"]
