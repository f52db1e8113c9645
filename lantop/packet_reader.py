"""Capture-file source yielding IPv4 frame events for offline replay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Callable, Iterator, Optional, Union

import dpkt

from .frame_info import FrameInfo

logger = logging.getLogger(__name__)

MICROS_PER_SECOND = 1_000_000
PCAPNG_MAGIC = b"\x0a\x0d\x0d\x0a"

DLT_EN10MB = 1
DLT_RAW = 101
DLT_LINUX_SLL = 113
# BSD and OpenBSD numbered raw IP differently before LINKTYPE_RAW existed.
RAW_IP_LINKTYPES = frozenset({DLT_RAW, 12, 14})


def _ethernet_payload(buf: bytes):
    payload = dpkt.ethernet.Ethernet(buf).data
    # dpkt unwraps 802.1Q tags itself; nested tags surface as the tag object.
    while isinstance(payload, dpkt.ethernet.VLANtag8021Q):
        payload = payload.data
    return payload


def _sll_payload(buf: bytes):
    return dpkt.sll.SLL(buf).data


def _raw_payload(buf: bytes):
    if buf and buf[0] >> 4 == 4:
        return dpkt.ip.IP(buf)
    return None


class PacketReader:
    """Iterate the IPv4 frames of a pcap or pcapng file in capture order.

    ``length`` is the captured length of the whole frame, link header
    included, which matches the wire length unless the capture was
    truncated by a snap length.
    """

    def __init__(self, pcap_path: Union[str, Path]) -> None:
        path = Path(pcap_path)
        if not path.is_file():
            raise FileNotFoundError(f"PCAP file does not exist: {path}")

        self.path = path
        self._file: Optional[IO[bytes]] = None
        self._reader = None
        self._decode: Optional[Callable[[bytes], object]] = None

        self.frames_read = 0
        self.skipped_frames = 0
        self.truncated = False
        self.first_timestamp: Optional[int] = None
        self.last_timestamp: Optional[int] = None

    def __enter__(self) -> "PacketReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    def open(self) -> None:
        if self._reader is not None:
            return
        try:
            self._file = self.path.open("rb")
            magic = self._file.read(4)
            self._file.seek(0)
            if magic == PCAPNG_MAGIC:
                self._reader = dpkt.pcapng.Reader(self._file)
            else:
                self._reader = dpkt.pcap.Reader(self._file)
        except (OSError, ValueError, dpkt.dpkt.NeedData) as exc:
            self.close()
            raise RuntimeError(f"Failed to open capture file: {self.path}") from exc

        self._decode = self._decoder_for(self._reader.datalink())
        logger.debug("Opened %s (linktype %d)", self.path, self._reader.datalink())

    def close(self) -> None:
        self._reader = None
        if self._file is not None:
            try:
                self._file.close()
            except OSError:
                logger.debug("Failed to close capture file", exc_info=True)
            finally:
                self._file = None

    def __iter__(self) -> Iterator[FrameInfo]:
        """Yield frames until the end of the file or its first incomplete record."""
        self.open()
        records = iter(self._reader)
        while True:
            try:
                ts, buf = next(records)
            except StopIteration:
                return
            except dpkt.UnpackError:
                # A capture killed mid-write leaves a partial last block.
                self.truncated = True
                logger.warning(
                    "%s ends in an incomplete record; stopping after %d frames",
                    self.path.name,
                    self.frames_read,
                )
                return
            frame = self._to_frame(ts, buf)
            if frame is None:
                self.skipped_frames += 1
                continue
            self.frames_read += 1
            yield frame

    # ------------------------------------------------------------------
    def _decoder_for(self, linktype: int) -> Callable[[bytes], object]:
        if linktype == DLT_EN10MB:
            return _ethernet_payload
        if linktype == DLT_LINUX_SLL:
            return _sll_payload
        if linktype in RAW_IP_LINKTYPES:
            return _raw_payload
        self.close()
        raise RuntimeError(f"Unsupported link type {linktype} in {self.path}")

    def _to_frame(self, ts: float, buf: bytes) -> Optional[FrameInfo]:
        try:
            packet = self._decode(buf)
        except (dpkt.UnpackError, ValueError):
            logger.debug("Skipping undecodable frame at %.6f", ts, exc_info=True)
            return None

        if not isinstance(packet, dpkt.ip.IP):
            return None

        micros = int(round(ts * MICROS_PER_SECOND))
        if self.first_timestamp is None:
            self.first_timestamp = micros
        self.last_timestamp = micros
        return FrameInfo(src=packet.src, dst=packet.dst, length=len(buf), timestamp=micros)


__all__ = ["PacketReader"]
