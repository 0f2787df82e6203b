import json
import logging

import pytest

from netsweep.logger import LOGGER_NAME, create_logger, log_event


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    logger.handlers = []
    yield
    for h in logger.handlers:
        h.close()
    logger.handlers = saved


def test_each_log_path_gets_a_file_handler(clean_logger, tmp_path):
    first = tmp_path / "a" / "first.log"
    second = tmp_path / "b" / "second.log"

    create_logger(str(first))
    logger = create_logger(str(second))
    log_event(logger, "scan_started", {"target": "10.0.0.0/30"})

    for path in (first, second):
        line = path.read_text(encoding="utf-8").strip()
        payload = json.loads(line)
        assert payload["event"] == "scan_started"
        assert payload["target"] == "10.0.0.0/30"
        assert payload["ts"].endswith("Z")


def test_repeat_calls_do_not_duplicate_handlers(clean_logger, tmp_path):
    path = str(tmp_path / "scan.log")
    create_logger(path)
    logger = create_logger(path)
    create_logger()

    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    console = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    assert len(file_handlers) == 1
    assert len(console) == 1
