"""Listener interface for captured frame events."""

from __future__ import annotations

from typing import Protocol

from .frame_info import FrameInfo


class FrameListener(Protocol):
    def on_frame(self, frame: FrameInfo) -> None:  # pragma: no cover - protocol definition
        ...


__all__ = ["FrameListener"]
