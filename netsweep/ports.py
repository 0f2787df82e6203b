from __future__ import annotations

import re
from typing import Iterable, List, Set

from .config import MAX_PORT
from .errors import PortSpecError

_INT = re.compile(r"[+-]?[0-9]+")


def _to_int(token: str, spec_part: str) -> int:
    token = token.strip()
    if not _INT.fullmatch(token):
        raise PortSpecError(f"bad port: {spec_part}")
    return int(token)


def parse_ports(spec: str) -> List[int]:
    """
    Parses a port specification string into a sorted list of unique ports.
    Supports:
    - Single ports: "80"
    - Ranges: "1-1024" (reversed bounds like "100-50" are swapped)
    - Comma-separated: "22,80,443"
    - Mixed: "1-1024,8080,9000-9005"

    No bounds are enforced here; see validate_ports().
    """
    ports: Set[int] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2:
                raise PortSpecError(f"bad range: {part}")
            start = _to_int(bounds[0], part)
            end = _to_int(bounds[1], part)
            if start > end:
                start, end = end, start
            ports.update(range(start, end + 1))
        else:
            ports.add(_to_int(part, part))

    return sorted(ports)


def validate_ports(ports: Iterable[int]) -> None:
    for p in ports:
        if p < 0 or p > MAX_PORT:
            raise PortSpecError(f"port out of range: {p}")
