from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CONCURRENCY = 200
DEFAULT_TIMEOUT_MS = 1000

# Banner grab uses its own deadline, independent of the connect timeout
BANNER_TIMEOUT_S = 2.0
BANNER_PEEK_BYTES = 512

MAX_PORT = 65535

# Largest address block expand_targets() will enumerate (an IPv4 /8)
MAX_BLOCK_ADDRESSES = 1 << 24

# Connection threads shared by every host of one scan
MAX_CONNECT_THREADS = 512

# Futures kept queued per worker before submission waits for completions
PENDING_PER_WORKER = 4
MIN_PENDING = 100

DEFAULT_DB_PATH = "data/netsweep.db"
DEFAULT_LOG_PATH: Optional[str] = None
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8585


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    log_path: Optional[str] = DEFAULT_LOG_PATH
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_settings() -> Settings:
    """Build Settings from NETSWEEP_* environment variables."""
    port = os.environ.get("NETSWEEP_PORT")
    return Settings(
        db_path=os.environ.get("NETSWEEP_DB_PATH", DEFAULT_DB_PATH),
        log_path=os.environ.get("NETSWEEP_LOG_PATH") or DEFAULT_LOG_PATH,
        host=os.environ.get("NETSWEEP_HOST", DEFAULT_HOST),
        port=int(port) if port else DEFAULT_PORT,
    )
