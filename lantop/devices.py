"""Interface discovery used to pick the capture device and its own address."""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import List, Optional, Sequence

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkDevice:
    """A capture-capable interface and the IPv4 addresses bound to it."""

    name: str
    addresses: Sequence[str]
    is_loopback: bool = False

    @property
    def primary_address(self) -> Optional[str]:
        return self.addresses[0] if self.addresses else None


def list_devices(*, include_loopback: bool = True) -> List[NetworkDevice]:
    """Enumerate interfaces through psutil, falling back to the socket module."""

    devices: List[NetworkDevice] = []
    seen: set[str] = set()

    try:
        for name, addr_list in psutil.net_if_addrs().items():
            ipv4 = [
                entry.address
                for entry in addr_list
                if getattr(entry, "family", None) == socket.AF_INET and getattr(entry, "address", "")
            ]
            devices.append(NetworkDevice(name=name, addresses=tuple(ipv4), is_loopback=_is_loopback(name, ipv4)))
            seen.add(name)
    except Exception:  # pragma: no cover - platform dependent
        logger.debug("Failed to enumerate interfaces via psutil", exc_info=True)

    if not devices:
        try:
            for _, name in socket.if_nameindex():
                if name not in seen:
                    devices.append(NetworkDevice(name=name, addresses=(), is_loopback=_is_loopback(name, ())))
        except OSError:  # pragma: no cover - platform dependent
            logger.debug("socket.if_nameindex() failed", exc_info=True)

    if not include_loopback:
        devices = [dev for dev in devices if not dev.is_loopback]
    devices.sort(key=lambda dev: dev.name)
    return devices


def get_local_address(interface: str) -> Optional[bytes]:
    """Return the first IPv4 address of *interface*, packed, or None."""
    for device in list_devices():
        if device.name == interface and device.primary_address is not None:
            return socket.inet_aton(device.primary_address)
    return None


def default_interface() -> Optional[str]:
    """First non-loopback interface that carries an IPv4 address."""
    for device in list_devices(include_loopback=False):
        if device.addresses:
            return device.name
    return None


def _is_loopback(name: str, addresses: Sequence[str]) -> bool:
    if any(addr.startswith("127.") for addr in addresses):
        return True
    return name.lower().startswith(("lo", "loopback"))


__all__ = ["NetworkDevice", "list_devices", "get_local_address", "default_interface"]
