"""Interface capture feeding frame events to the engine from scapy's sniffer thread."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable, Optional

from .frame_info import FrameInfo
from .listeners import FrameListener

logger = logging.getLogger(__name__)

MICROS_PER_SECOND = 1_000_000

try:  # pragma: no cover - exercised only when Scapy is available at runtime
    from scapy.all import AsyncSniffer, IP  # type: ignore
except ImportError:  # pragma: no cover - import guard for optional dependency
    AsyncSniffer = None  # type: ignore[assignment]
    IP = None  # type: ignore[assignment]


class LiveCaptureError(RuntimeError):
    """Raised when live capture cannot be started or operated."""


def frame_from_packet(packet) -> Optional[FrameInfo]:
    """IPv4 addresses and on-wire length of a sniffed packet, or None."""
    if IP is None or not packet.haslayer(IP):
        return None

    ip_layer = packet[IP]
    try:
        src = socket.inet_aton(ip_layer.src)
        dst = socket.inet_aton(ip_layer.dst)
    except OSError:
        return None

    # wirelen is only set when scapy read the frame off a socket or file.
    length = getattr(packet, "wirelen", None) or len(packet)
    timestamp = int(float(getattr(packet, "time", 0.0)) * MICROS_PER_SECOND)
    return FrameInfo(src=src, dst=dst, length=int(length), timestamp=timestamp)


class LiveCapture:
    """Sniff one interface on a background thread and forward IPv4 frames.

    The listener's ``on_frame`` runs on scapy's sniffer thread, so it must be
    safe to call concurrently with the consumer.
    """

    def __init__(
        self,
        interface: Optional[str],
        *,
        frame_listener: Optional[FrameListener] = None,
        bpf_filter: Optional[str] = None,
        status_handler: Optional[Callable[[str], None]] = None,
        promiscuous: bool = True,
    ) -> None:
        self.interface = interface
        self.frame_listener = frame_listener
        self.bpf_filter = bpf_filter
        self.status_handler = status_handler
        self.promiscuous = promiscuous

        self._lock = threading.Lock()
        self._sniffer = None
        self.frames_seen = 0
        self.frames_ignored = 0

    def start(self) -> None:
        if AsyncSniffer is None:  # pragma: no cover - requires Scapy at runtime
            raise LiveCaptureError("Live capture needs scapy; install it with `pip install scapy`.")

        with self._lock:
            if self._sniffer is not None:
                raise LiveCaptureError(f"Capture on {self.interface} is already running")
            sniffer = AsyncSniffer(
                iface=self.interface,
                prn=self._on_packet,
                store=False,
                filter=self.bpf_filter,
                promisc=self.promiscuous,
            )
            try:
                sniffer.start()
            except Exception as exc:  # pragma: no cover - depends on privileges and platform
                raise LiveCaptureError(f"Cannot capture on interface '{self.interface}'") from exc
            self._sniffer = sniffer

        logger.info("Capturing on %s (filter: %s)", self.interface, self.bpf_filter or "none")
        self._status(f"capturing {self.interface}")

    def stop(self) -> None:
        with self._lock:
            sniffer, self._sniffer = self._sniffer, None
        if sniffer is None:
            return

        try:
            sniffer.stop()
        except Exception:  # pragma: no cover - depends on platform
            logger.exception("Sniffer on %s did not stop cleanly", self.interface)

        logger.info(
            "Capture on %s stopped: %d frames forwarded, %d ignored",
            self.interface,
            self.frames_seen,
            self.frames_ignored,
        )
        self._status(f"stopped {self.interface}")

    def is_running(self) -> bool:
        with self._lock:
            return self._sniffer is not None

    # ------------------------------------------------------------------
    def _on_packet(self, packet) -> None:
        try:
            frame = frame_from_packet(packet)
        except Exception:  # pragma: no cover - malformed layers from the wire
            logger.exception("Dropping packet that could not be converted")
            self.frames_ignored += 1
            return

        if frame is None:
            self.frames_ignored += 1
            return
        self.frames_seen += 1
        if self.frame_listener is not None:
            self.frame_listener.on_frame(frame)

    def _status(self, message: str) -> None:
        if self.status_handler is None:
            return
        try:
            self.status_handler(message)
        except Exception:  # pragma: no cover - caller supplied handler
            logger.exception("Status handler failed")


__all__ = ["LiveCapture", "LiveCaptureError", "frame_from_packet"]
