import json
import logging
import os
import time
from typing import Any, Dict, Optional

LOGGER_NAME = "netsweep"


def _has_file_handler(logger: logging.Logger, path: str) -> bool:
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == path
        for h in logger.handlers
    )


def create_logger(log_path: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Return the shared "netsweep" logger. Safe to call repeatedly: the console
    handler is added once, and each distinct log_path gets one file handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Events are already JSON; no prefix
    formatter = logging.Formatter("%(message)s")

    # FileHandler subclasses StreamHandler, so match the exact type
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    if log_path:
        path = os.path.abspath(log_path)
        if not _has_file_handler(logger, path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
            fh = logging.FileHandler(path)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def log_event(logger: logging.Logger, event: str, fields: Dict[str, Any]) -> None:
    payload = {"ts": now_iso(), "event": event, **fields}
    logger.info(json.dumps(payload, ensure_ascii=False))
