"""Monitor configuration fixed at startup."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Optional, Tuple

TICK_RATE_MS = 500
HISTORY_WINDOW_SECS = 60
MAX_SAMPLES = HISTORY_WINDOW_SECS * 1000 // TICK_RATE_MS
DEFAULT_LOCAL_SUBNETS: Tuple[str, ...] = ("192.168.0.0/16", "10.0.0.0/8")
TOP_TALKERS_LIMIT = 20


@dataclass
class MonitorConfig:
    """Tick cadence, smoothing window and local-subnet ranges for one run."""

    tick_interval_ms: int = TICK_RATE_MS
    history_window_secs: float = HISTORY_WINDOW_SECS
    local_subnets: Tuple[str, ...] = field(default=DEFAULT_LOCAL_SUBNETS)
    local_address: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.local_subnets = tuple(self.local_subnets)
        if self.local_address is not None:
            self.local_address = bytes(self.local_address)
        self.validate()

    @property
    def tick_seconds(self) -> float:
        return self.tick_interval_ms / 1000.0

    @property
    def window_samples(self) -> int:
        """Samples per host window and per global history buffer."""
        return int(round(self.history_window_secs * 1000)) // self.tick_interval_ms

    def validate(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be greater than 0")
        if self.history_window_secs <= 0:
            raise ValueError("history_window_secs must be greater than 0")
        if self.window_samples < 1:
            raise ValueError(
                "history window must cover at least one tick "
                f"({self.history_window_secs}s < {self.tick_interval_ms}ms)"
            )
        if self.local_address is not None and len(self.local_address) != 4:
            raise ValueError("local_address must be a 4-byte IPv4 address")
        if not self.local_subnets:
            raise ValueError("at least one local subnet is required")
        for subnet in self.local_subnets:
            if ipaddress.ip_network(subnet, strict=False).version != 4:
                raise ValueError(f"Only IPv4 networks are supported: {subnet}")


__all__ = [
    "TICK_RATE_MS",
    "HISTORY_WINDOW_SECS",
    "MAX_SAMPLES",
    "DEFAULT_LOCAL_SUBNETS",
    "TOP_TALKERS_LIMIT",
    "MonitorConfig",
]
