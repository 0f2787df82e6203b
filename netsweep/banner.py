from __future__ import annotations

import socket
from typing import Optional, Tuple

from .config import BANNER_PEEK_BYTES, BANNER_TIMEOUT_S


# Checked in declaration order; the first marker found in the banner wins.
FINGERPRINTS: Tuple[Tuple[str, str], ...] = (
    ("OpenSSH", "SSH server"),
    ("Apache", "Apache HTTP Server"),
    ("nginx", "nginx HTTP Server"),
    ("MySQL", "MySQL service"),
    ("PostgreSQL", "PostgreSQL service"),
)


def grab_banner(
    sock: socket.socket,
    n: int = BANNER_PEEK_BYTES,
    timeout: float = BANNER_TIMEOUT_S,
) -> str:
    """
    Called only after connect() succeeds.
    Peeks at whatever the service sends first without consuming it.
    Timeouts and read errors give an empty banner.
    """
    try:
        sock.settimeout(timeout)
        data = sock.recv(n, socket.MSG_PEEK)
    except OSError:
        return ""
    return data.decode(errors="ignore").strip()


def match_service(banner: str) -> Optional[str]:
    if not banner:
        return None
    text = banner.lower()
    for marker, service in FINGERPRINTS:
        if marker.lower() in text:
            return service
    return None
