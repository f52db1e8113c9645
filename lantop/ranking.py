"""Top-talker ordering of tracked hosts."""

from __future__ import annotations

from operator import itemgetter
from typing import Iterable, List, Sequence, Tuple

HostRate = Tuple[bytes, float]


def rank_hosts(pairs: Iterable[HostRate]) -> List[HostRate]:
    """Return (host, rate) pairs sorted by rate, highest first."""
    return sorted(pairs, key=itemgetter(1), reverse=True)


def top(ranking: Sequence[HostRate], limit: int) -> List[HostRate]:
    if limit <= 0:
        return []
    return list(ranking[:limit])


__all__ = ["HostRate", "rank_hosts", "top"]
