"""Human-readable byte, rate and address formatting."""

from __future__ import annotations

import ipaddress
from typing import Union

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB


def format_bps(bytes_per_second: float) -> str:
    """Render a byte rate as bits per second, stepping by 1024."""
    if bytes_per_second >= MIB:
        return f"{bytes_per_second * 8.0 / MIB:.2f} Mb/s"
    if bytes_per_second >= KIB:
        return f"{bytes_per_second * 8.0 / KIB:.2f} Kb/s"
    return f"{bytes_per_second * 8.0:.0f} b/s"


def format_bytes_total(total: int) -> str:
    if total >= GIB:
        return f"{total / GIB:.2f} GiB"
    if total >= MIB:
        return f"{total / MIB:.2f} MiB"
    if total >= KIB:
        return f"{total / KIB:.2f} KiB"
    return f"{total} B"


def format_window(seconds: float) -> str:
    """Short label for a smoothing window: whole minutes as "N min", else seconds."""
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} min"
    return f"{seconds:g} s"


def format_ip(value: Union[bytes, bytearray, str]) -> str:
    """Convert a raw IP buffer into a printable string."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) == 4:
            return ".".join(str(b & 0xFF) for b in value)
        if len(value) == 16:
            return str(ipaddress.IPv6Address(bytes(value)))
    return str(value)


__all__ = ["KIB", "MIB", "GIB", "format_bps", "format_bytes_total", "format_ip", "format_window"]
