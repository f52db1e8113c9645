"""Live per-host bandwidth aggregation for the local network."""

from .accumulator import AccumulatorLockError, DeltaAccumulator, Direction, DrainedDeltas
from .config import MonitorConfig
from .engine import BandwidthEngine, BandwidthSnapshot
from .frame_info import FrameInfo
from .history import HistoryBuffer, TrafficTotals
from .live_capture import LiveCapture, LiveCaptureError
from .packet_reader import PacketReader
from .ranking import rank_hosts
from .rate_window import HostRateWindow
from .replay import ReplayResult, replay_frames, replay_pcap
from .subnet import LocalSubnetClassifier

__all__ = [
    "AccumulatorLockError",
    "DeltaAccumulator",
    "Direction",
    "DrainedDeltas",
    "MonitorConfig",
    "BandwidthEngine",
    "BandwidthSnapshot",
    "FrameInfo",
    "HistoryBuffer",
    "TrafficTotals",
    "LiveCapture",
    "LiveCaptureError",
    "PacketReader",
    "rank_hosts",
    "HostRateWindow",
    "ReplayResult",
    "replay_frames",
    "replay_pcap",
    "LocalSubnetClassifier",
]
