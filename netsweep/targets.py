from __future__ import annotations

import ipaddress
from itertools import islice
from typing import Iterator, List, Optional, Union

from .config import MAX_BLOCK_ADDRESSES
from .errors import TargetError

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _parse_block(target: str) -> Optional[Network]:
    if "/" not in target:
        return None

    try:
        net = ipaddress.ip_network(target.strip(), strict=False)
    except ValueError as e:
        raise TargetError(f"bad CIDR {target!r}: {e}") from e

    if net.num_addresses > MAX_BLOCK_ADDRESSES:
        raise TargetError(
            f"CIDR {target!r} has {net.num_addresses} addresses (limit {MAX_BLOCK_ADDRESSES})"
        )
    return net


def count_targets(target: str) -> int:
    net = _parse_block(target)
    if net is None:
        return 1
    n = net.num_addresses
    return n - 2 if n > 2 else n


def iter_targets(target: str) -> Iterator[str]:
    """
    Lazy form of expand_targets(). The target is validated when this is
    called, not when iteration starts.
    """
    net = _parse_block(target)
    if net is None:
        return iter([target])
    n = net.num_addresses
    addrs = islice(net, 1, n - 1) if n > 2 else iter(net)
    return (str(ip) for ip in addrs)


def expand_targets(target: str) -> List[str]:
    """
    Supports:
      - Single address or hostname: "172.20.0.10" (returned as-is, not validated)
      - CIDR: "172.20.0.0/24" (host bits are masked off)

    Blocks with more than two addresses drop the network and broadcast
    address; /31 and /32 style blocks are returned whole.
    """
    return list(iter_targets(target))
