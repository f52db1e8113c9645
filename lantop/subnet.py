"""Local-subnet predicate deciding which hosts are tracked individually."""

from __future__ import annotations

import ipaddress
from typing import Iterable, Tuple, Union

from .config import DEFAULT_LOCAL_SUBNETS


class LocalSubnetClassifier:
    """Pure membership test of a packed IPv4 address against a set of networks."""

    __slots__ = ("_networks",)

    def __init__(self, networks: Iterable[Union[str, ipaddress.IPv4Network]] = DEFAULT_LOCAL_SUBNETS) -> None:
        parsed = []
        for network in networks:
            net = ipaddress.ip_network(network, strict=False)
            if net.version != 4:
                raise ValueError(f"Only IPv4 networks are supported: {network}")
            parsed.append(net)
        self._networks: Tuple[ipaddress.IPv4Network, ...] = tuple(parsed)

    @classmethod
    def from_strings(cls, networks: Iterable[str]) -> "LocalSubnetClassifier":
        return cls(list(networks))

    @property
    def networks(self) -> Tuple[ipaddress.IPv4Network, ...]:
        return self._networks

    def __call__(self, host: bytes) -> bool:
        if len(host) != 4:
            return False
        address = ipaddress.IPv4Address(bytes(host))
        return any(address in network for network in self._networks)

    def __repr__(self) -> str:
        nets = ", ".join(str(net) for net in self._networks)
        return f"LocalSubnetClassifier([{nets}])"


__all__ = ["LocalSubnetClassifier"]
