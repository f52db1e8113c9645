"""Frame event handed from a capture source to the bandwidth engine."""

from __future__ import annotations

from dataclasses import dataclass

from .formatting import format_ip


@dataclass
class FrameInfo:
    src: bytes
    dst: bytes
    length: int
    timestamp: int = 0

    def __post_init__(self) -> None:
        self.src = bytes(self.src)
        self.dst = bytes(self.dst)

    @property
    def src_ip(self) -> str:
        return format_ip(self.src)

    @property
    def dst_ip(self) -> str:
        return format_ip(self.dst)

    def is_outbound(self, local_address: bytes) -> bool:
        return self.src == bytes(local_address)


__all__ = ["FrameInfo"]
