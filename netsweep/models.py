from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT_MS
from .errors import RequestError


@dataclass(frozen=True)
class PortOutcome:
    port: int
    is_open: bool
    service: Optional[str] = None
    banner: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "port": self.port,
            "open": self.is_open,
            "service": self.service,
            "banner": self.banner,
        }


@dataclass(frozen=True)
class HostOutcome:
    address: str
    open_ports: Tuple[PortOutcome, ...] = ()

    @property
    def alive(self) -> bool:
        return len(self.open_ports) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "alive": self.alive,
            "open_ports": [p.to_dict() for p in self.open_ports],
        }


@dataclass(frozen=True)
class ScanReport:
    target: str
    ports_spec: str
    alive_hosts: Tuple[HostOutcome, ...] = ()
    dead_hosts: Tuple[HostOutcome, ...] = ()
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    @property
    def alive_count(self) -> int:
        return len(self.alive_hosts)

    @property
    def dead_count(self) -> int:
        return len(self.dead_hosts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated": self.generated_at.isoformat(),
            "target": self.target,
            "ports_scanned": self.ports_spec,
            "notes": self.notes,
            "alive_hosts": [h.to_dict() for h in self.alive_hosts],
            "dead_hosts": [h.to_dict() for h in self.dead_hosts],
        }


def _optional_positive_int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if isinstance(value, bool):
        raise RequestError(f"{key} must be a positive integer")
    # 0 means "unset", the same as leaving the field out
    if value is None or value == 0:
        return None
    if not isinstance(value, int) or value < 0:
        raise RequestError(f"{key} must be a positive integer")
    return value


@dataclass(frozen=True)
class ScanRequest:
    """
    Normalized scan input.

    port_concurrency falls back to concurrency when unset, so one knob drives
    both the host and the port fan-out unless the caller splits them.
    max_connections, when set, caps connection attempts across the whole scan.
    """

    target: str
    ports: str
    concurrency: int = DEFAULT_CONCURRENCY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    grab_banner: bool = False
    port_concurrency: Optional[int] = None
    max_connections: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.target, str) or not self.target.strip():
            raise RequestError("target is required")
        if not isinstance(self.ports, str) or not self.ports.strip():
            raise RequestError("ports is required")
        for name in ("concurrency", "timeout_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise RequestError(f"{name} must be a positive integer")
        for name in ("port_concurrency", "max_connections"):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise RequestError(f"{name} must be a positive integer")

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def effective_port_concurrency(self) -> int:
        return self.port_concurrency or self.concurrency

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanRequest":
        """Build a request from decoded JSON, applying defaults for unset knobs."""
        if not isinstance(data, Mapping):
            raise RequestError("request body must be a JSON object")

        grab_banner = data.get("grab_banner")
        if grab_banner is None:
            grab_banner = False
        if not isinstance(grab_banner, bool):
            raise RequestError("grab_banner must be a boolean")

        concurrency = _optional_positive_int(data, "concurrency")
        timeout_ms = _optional_positive_int(data, "timeout_ms")
        return cls(
            target=data.get("target") or "",
            ports=data.get("ports") or "",
            concurrency=concurrency or DEFAULT_CONCURRENCY,
            timeout_ms=timeout_ms or DEFAULT_TIMEOUT_MS,
            grab_banner=grab_banner,
            port_concurrency=_optional_positive_int(data, "port_concurrency"),
            max_connections=_optional_positive_int(data, "max_connections"),
        )
